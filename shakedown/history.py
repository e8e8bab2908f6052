"""
Listening History and Favorites

The catalog never owns persistence. Anything that satisfies the small
``HistoryStore`` contract (has / add / remove / list by identifier) can back
history: a key-value store, a user-defaults file, a database table.
``InMemoryHistoryStore`` is the reference implementation.

``ListeningHistory`` layers the listening rules on top of four stores:
recently played (deduplicated, newest first, capped), favorites, and
completed / partially played shows.
"""

from typing import Iterable, List, Optional, Protocol, runtime_checkable

from loguru import logger

from .catalog import Catalog
from .models import Show


MAX_RECENT_SHOWS = 50


@runtime_checkable
class HistoryStore(Protocol):
    """Key-value contract for persisting show identifiers."""

    def has(self, identifier: str) -> bool: ...

    def add(self, identifier: str) -> None: ...

    def remove(self, identifier: str) -> None: ...

    def list(self) -> List[str]: ...


class InMemoryHistoryStore:
    """Insertion-ordered identifier set. ``add`` of an existing id is a no-op."""

    def __init__(self, identifiers: Optional[Iterable[str]] = None) -> None:
        self._items: dict[str, None] = dict.fromkeys(identifiers or ())

    def has(self, identifier: str) -> bool:
        return identifier in self._items

    def add(self, identifier: str) -> None:
        self._items.setdefault(identifier, None)

    def remove(self, identifier: str) -> None:
        self._items.pop(identifier, None)

    def list(self) -> List[str]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


class ListeningHistory:
    """Recent / favorite / completed / partial tracking over ``HistoryStore``s."""

    def __init__(
        self,
        recent: Optional[HistoryStore] = None,
        favorites: Optional[HistoryStore] = None,
        completed: Optional[HistoryStore] = None,
        partial: Optional[HistoryStore] = None,
        max_recent: int = MAX_RECENT_SHOWS,
    ) -> None:
        self.recent_store = recent if recent is not None else InMemoryHistoryStore()
        self.favorite_store = favorites if favorites is not None else InMemoryHistoryStore()
        self.completed_store = completed if completed is not None else InMemoryHistoryStore()
        self.partial_store = partial if partial is not None else InMemoryHistoryStore()
        self.max_recent = max_recent

    # ------------------------------------------------------------------
    # Recently played
    # ------------------------------------------------------------------

    def record_played(self, show: Show) -> None:
        """Move ``show`` to the front of the recent list, trimming the tail."""
        ordered = [i for i in self.recent_store.list() if i != show.identifier]
        ordered.insert(0, show.identifier)
        # Rebuild so stores that keep insertion order reflect newest-first.
        for identifier in self.recent_store.list():
            self.recent_store.remove(identifier)
        for identifier in ordered[: self.max_recent]:
            self.recent_store.add(identifier)
        logger.debug(f"History: recorded {show.identifier} ({len(ordered)} recent)")

    def recent_identifiers(self) -> List[str]:
        return self.recent_store.list()

    def recent(self, catalog: Catalog) -> List[Show]:
        return _resolve(catalog, self.recent_store.list())

    def clear_recent(self) -> None:
        for identifier in self.recent_store.list():
            self.recent_store.remove(identifier)

    # ------------------------------------------------------------------
    # Favorites
    # ------------------------------------------------------------------

    def is_favorite(self, identifier: str) -> bool:
        return self.favorite_store.has(identifier)

    def add_favorite(self, identifier: str) -> None:
        self.favorite_store.add(identifier)

    def remove_favorite(self, identifier: str) -> None:
        self.favorite_store.remove(identifier)

    def toggle_favorite(self, show: Show) -> bool:
        """Flip favorite status; returns the new status."""
        if self.favorite_store.has(show.identifier):
            self.favorite_store.remove(show.identifier)
            return False
        self.favorite_store.add(show.identifier)
        return True

    def favorites(self, catalog: Catalog) -> List[Show]:
        return _resolve(catalog, self.favorite_store.list())

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def mark_partial(self, show: Show) -> None:
        """Mark a show as partially played, unless it is already completed."""
        if self.completed_store.has(show.identifier):
            return
        self.partial_store.add(show.identifier)

    def mark_completed(self, show: Show) -> None:
        self.completed_store.add(show.identifier)
        self.partial_store.remove(show.identifier)

    def is_completed(self, identifier: str) -> bool:
        return self.completed_store.has(identifier)

    def is_partial(self, identifier: str) -> bool:
        return self.partial_store.has(identifier)

    def reset(self) -> None:
        """Clear every store."""
        for store in (self.recent_store, self.favorite_store,
                      self.completed_store, self.partial_store):
            for identifier in store.list():
                store.remove(identifier)
        logger.info("History: all listening stats reset")


def _resolve(catalog: Catalog, identifiers: Iterable[str]) -> List[Show]:
    shows = []
    for identifier in identifiers:
        show = catalog.get_all_shows().get(identifier)
        if show is None:
            logger.warning(f"History: {identifier} is no longer in the catalog, skipping")
            continue
        shows.append(show)
    return shows
