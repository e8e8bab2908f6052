"""
Data Models for the Show Catalog

Typed records for the two catalog documents (category index and enriched
shows) plus the playback session snapshot shared with observers.
"""

from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .identifiers import ShowDate, try_parse_date


# ---------------------------------------------------------------------------
# Recording provenance
# ---------------------------------------------------------------------------

class SourceType(str, Enum):
    SOUNDBOARD = "soundboard"
    AUDIENCE = "audience"
    MATRIX = "matrix"
    OTHER = "other"


_SOURCE_TYPE_ALIASES: dict[str, SourceType] = {
    "sbd": SourceType.SOUNDBOARD,
    "soundboard": SourceType.SOUNDBOARD,
    "aud": SourceType.AUDIENCE,
    "audience": SourceType.AUDIENCE,
    "matrix": SourceType.MATRIX,
    "mtx": SourceType.MATRIX,
    "other": SourceType.OTHER,
}


def normalise_source_type(raw: Any) -> SourceType:
    """Map document spellings (SBD, AUD, MATRIX, ...) onto ``SourceType``."""
    if isinstance(raw, SourceType):
        return raw
    if not isinstance(raw, str):
        return SourceType.OTHER
    return _SOURCE_TYPE_ALIASES.get(raw.strip().lower(), SourceType.OTHER)


# ---------------------------------------------------------------------------
# Show records
# ---------------------------------------------------------------------------

class Location(BaseModel):
    """Where a show took place."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    venue: str = Field(..., description="Venue name")
    city: str = Field(..., description="City")
    state: str = Field(..., description="State or province code")


class RecordingInfo(BaseModel):
    """Recording provenance and archive popularity."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    source_type: SourceType = Field(SourceType.OTHER, description="soundboard, audience, matrix, other")
    avg_rating: float = Field(0.0, ge=0.0, description="Average archive review rating")
    downloads: int = Field(0, ge=0, description="Archive download count")
    download_rate: float = Field(0.0, description="Downloads per day since upload")
    num_reviews: int = Field(0, ge=0, description="Number of archive reviews")
    added_date: Optional[str] = Field(None, description="Date the recording was added to the archive")

    @field_validator("source_type", mode="before")
    @classmethod
    def _map_source_type(cls, v: Any) -> SourceType:
        return normalise_source_type(v)


class ShowMetadata(BaseModel):
    """Descriptive free-text metadata for a show."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    title: str = Field("", description="Archive title")
    collection: Tuple[str, ...] = Field(default_factory=tuple, description="Archive collections")
    source: Optional[str] = Field(None, description="Source chain description")
    lineage: Optional[str] = Field(None, description="Transfer lineage")
    notes: Optional[str] = Field(None, description="Taper / archive notes")
    setlist: Optional[str] = Field(None, description="Free-text setlist")
    video_url: Optional[str] = Field(None, description="Externally hosted video reference")


class Track(BaseModel):
    """One audio item within a show's local sequence."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    title: str = Field(..., description="Song title")
    filename: str = Field(..., description="Audio filename (stable playback key)")
    length: str = Field("", description="Duration string, e.g. '7:32'")
    position: int = Field(0, ge=0, alias="track_number", description="1-based position in the show")

    def duration_seconds(self) -> int:
        """Parse ``length`` ('SS', 'MM:SS' or 'HH:MM:SS'); 0 when unparseable."""
        parts = self.length.strip().split(":") if self.length else []
        if not parts:
            return 0
        total = 0
        try:
            for part in parts:
                total = total * 60 + int(float(part))
        except ValueError:
            return 0
        return max(0, total)


class Show(BaseModel):
    """One recorded performance. Immutable once loaded."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    identifier: str = Field(..., min_length=1, description="Date-coded show identifier")
    score: float = Field(..., description="Computed quality score")
    location: Location
    recording_info: RecordingInfo = Field(default_factory=RecordingInfo)
    metadata: ShowMetadata = Field(default_factory=ShowMetadata)
    tracks: Tuple[Track, ...] = Field(..., description="Ordered track sequence")

    @field_validator("tracks", mode="after")
    @classmethod
    def _renumber_tracks(cls, tracks: Tuple[Track, ...]) -> Tuple[Track, ...]:
        # Numbered tracks first (stable), then unnumbered ones in document order.
        ordered = sorted(
            enumerate(tracks),
            key=lambda pair: (pair[1].position == 0, pair[1].position, pair[0]),
        )
        return tuple(
            t if t.position == i else t.model_copy(update={"position": i})
            for i, (_, t) in enumerate(ordered, start=1)
        )

    @property
    def date(self) -> Optional[ShowDate]:
        return try_parse_date(self.identifier)

    @property
    def title(self) -> str:
        if self.metadata.title:
            return self.metadata.title
        show_date = self.date
        prefix = show_date.isoformat() if show_date else self.identifier
        return f"{prefix} - {self.location.venue}"

    @property
    def track_count(self) -> int:
        return len(self.tracks)

    def total_duration_seconds(self) -> int:
        return sum(t.duration_seconds() for t in self.tracks)


# ---------------------------------------------------------------------------
# Category index
# ---------------------------------------------------------------------------

class FacetName(str, Enum):
    """Known facet dimensions, valued by their document key."""

    RATING = "by_rating"
    ERA = "by_era"
    ICONIC_VENUE = "by_iconic_venue"
    VENUE_TYPE = "by_venue_type"
    RECORDING = "by_recording"
    REGION = "by_region"
    STATE = "by_state"
    SEASON = "by_season"
    DECADE = "by_decade"
    YEAR = "by_year"
    MONTH = "by_month"
    NOTABLE = "notable_performances"
    SPECIAL = "special_shows"


FacetBuckets = Mapping[str, FrozenSet[str]]

_EMPTY_BUCKETS: FacetBuckets = MappingProxyType({})


class CategoryIndex(BaseModel):
    """
    Generic facet map: facet name -> bucket value -> show identifiers.

    Unknown facet names are preserved as-is; typed accessors live on
    ``Catalog`` as plain functions over this map.
    """

    model_config = ConfigDict(frozen=True)

    format_version: int = 0
    description: str = ""
    generated_at: str = ""
    facets: Mapping[str, FacetBuckets] = Field(default_factory=dict, validate_default=True)

    @field_validator("facets", mode="after")
    @classmethod
    def _freeze_facets(cls, facets: Mapping[str, FacetBuckets]) -> Mapping[str, FacetBuckets]:
        # Read-only views all the way down; the index is shared between readers.
        return MappingProxyType({
            name: MappingProxyType({value: frozenset(ids) for value, ids in buckets.items()})
            for name, buckets in facets.items()
        })

    def facet(self, name: Union[FacetName, str]) -> FacetBuckets:
        key = name.value if isinstance(name, FacetName) else name
        return self.facets.get(key, _EMPTY_BUCKETS)

    def bucket(self, name: Union[FacetName, str], value: str) -> FrozenSet[str]:
        return self.facet(name).get(value, frozenset())

    @property
    def unknown_facets(self) -> List[str]:
        known = {f.value for f in FacetName}
        return sorted(k for k in self.facets if k not in known)


# ---------------------------------------------------------------------------
# Raw document shapes
# ---------------------------------------------------------------------------

class CategoryDocument(BaseModel):
    """Top level of ``show_categories.json``."""

    model_config = ConfigDict(extra="ignore")

    format_version: int = 0
    description: str = ""
    generated_at: str = ""
    categories: Dict[str, Any]


class EnrichedShowsDocument(BaseModel):
    """Top level of ``enriched_shows.json``."""

    model_config = ConfigDict(extra="ignore")

    last_updated: str = ""
    stats: Dict[str, Any] = Field(default_factory=dict)
    best_shows: Dict[str, Show]


# ---------------------------------------------------------------------------
# Playback session
# ---------------------------------------------------------------------------

class SourceKind(str, Enum):
    NONE = "none"
    LOCAL = "local"
    EXTERNAL = "external"


class TransportStatus(str, Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackSession(BaseModel):
    """Snapshot of the coordinator's state; a new snapshot per transition."""

    model_config = ConfigDict(frozen=True)

    kind: SourceKind = SourceKind.NONE
    status: TransportStatus = TransportStatus.STOPPED
    show: Optional[Show] = None
    index: int = Field(0, ge=0, description="Current track index (local only)")
    reference: Optional[str] = Field(None, description="Video reference (external only)")

    @property
    def is_idle(self) -> bool:
        return self.kind is SourceKind.NONE

    @property
    def current_track(self) -> Optional[Track]:
        if self.kind is not SourceKind.LOCAL or self.show is None:
            return None
        return self.show.tracks[self.index]
