"""Exceptions raised by the show catalog and the playback coordinator."""


class ShakedownError(Exception):
    """Base exception for catalog and playback errors."""
    pass


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CatalogError(ShakedownError):
    """Base exception for catalog load and lookup errors."""
    pass


class SchemaError(CatalogError):
    """Raised when a catalog document is malformed or missing required fields."""
    pass


class EmptyDatasetError(CatalogError):
    """Raised when the enriched-show document contains no shows."""
    pass


class NotFoundError(CatalogError):
    """Raised by outer layers when a show lookup finds nothing."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No show matches '{identifier}'")
        self.identifier = identifier


# ---------------------------------------------------------------------------
# Playback
# ---------------------------------------------------------------------------

class PlaybackError(ShakedownError):
    """Base exception for playback transport errors."""
    pass


class InvalidStateError(PlaybackError):
    """Raised when a transport command is not valid in the current state."""
    pass


class OutOfRangeError(PlaybackError):
    """Raised when a track index falls outside the loaded show."""

    def __init__(self, index: int, track_count: int) -> None:
        super().__init__(
            f"Track index {index} out of range for show with {track_count} tracks"
        )
        self.index = index
        self.track_count = track_count
