"""
Show Catalog Index: the read-only aggregate root over the loaded documents.

Owns the enriched shows (re-keyed by each show's own identifier) and the
category index, and answers every browsing query: identifier lookup with
fragment fallback, random picks, "on this day" anniversaries, date ranges
and faceted buckets (era, venue, rating, region, ...).

Built once by ``loader.load`` and never mutated afterwards, so a single
instance can be shared across threads and tasks without locking.

Usage:
    catalog = load(category_bytes, enriched_bytes)
    show    = catalog.get_show("gd77-05-08")
    today   = catalog.shows_on_this_day(date.today())
    eras    = catalog.by_era(ERA_PIGPEN)
"""

import random
from collections import defaultdict
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Union

from loguru import logger

from .identifiers import ShowDate, parse_date, try_parse_date
from .models import CategoryIndex, FacetBuckets, FacetName, Show

# ---------------------------------------------------------------------------
# Well-known bucket names
# ---------------------------------------------------------------------------

RATING_FIVE_STARS = "5_stars"
RATING_FOUR_STARS = "4_stars"

ERA_PIGPEN = "pigpen"
ERA_KEITH = "keith"
ERA_BRENT = "brent"
ERA_VINCE = "vince"

VENUE_FILLMORE = "fillmore"
VENUE_WINTERLAND = "winterland"

VENUE_TYPE_STADIUMS = "stadiums"
VENUE_TYPE_THEATERS = "theaters"
VENUE_TYPE_CLUBS = "clubs"

RECORDING_SOUNDBOARDS = "soundboards"
RECORDING_AUDIENCES = "audiences"
RECORDING_MATRIX = "matrix"

REGIONS = ("northeast", "midwest", "south", "west")
SEASONS = ("spring", "summer", "fall", "winter")

SPECIAL_FIRST_SHOW = "first_show"
SPECIAL_LAST_SHOW = "last_show"

DateLike = Union[date, datetime, str, ShowDate]


def _as_show_date(value: DateLike) -> ShowDate:
    """Coerce a date, datetime, ShowDate or date-bearing string to ``ShowDate``."""
    if isinstance(value, ShowDate):
        return value
    if isinstance(value, datetime):
        return ShowDate(value.year, value.month, value.day)
    if isinstance(value, date):
        return ShowDate(value.year, value.month, value.day)
    if isinstance(value, str):
        return parse_date(value.strip())
    raise TypeError(f"Expected a date or date string, got {type(value).__name__}")


class Catalog:
    """Faceted, read-only index over the loaded shows."""

    def __init__(
        self,
        shows: Mapping[str, Show],
        categories: Optional[CategoryIndex] = None,
        last_updated: str = "",
        stats: Optional[Dict[str, Any]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.categories = categories or CategoryIndex()
        self.last_updated = last_updated
        self.stats: Mapping[str, Any] = MappingProxyType(dict(stats or {}))
        self._rng = rng or random.Random()

        self._by_document_key: Dict[str, Show] = dict(shows)
        self._by_identifier: Dict[str, Show] = {}
        self._by_month_day: Dict[Tuple[int, int], List[str]] = defaultdict(list)
        self._dates: Dict[str, ShowDate] = {}

        self._build_indices()

    def _build_indices(self) -> None:
        duplicates = 0
        for key, show in self._by_document_key.items():
            if show.identifier in self._by_identifier:
                duplicates += 1
                logger.warning(
                    f"Catalog: duplicate identifier {show.identifier} "
                    f"(document key {key}); keeping the first record"
                )
                continue
            self._by_identifier[show.identifier] = show

        self._identifiers: List[str] = sorted(self._by_identifier)

        undated = 0
        for identifier in self._identifiers:
            parsed = try_parse_date(identifier)
            if parsed is None:
                undated += 1
                continue
            self._dates[identifier] = parsed
            self._by_month_day[parsed.month_day].append(identifier)

        if undated:
            logger.warning(f"Catalog: {undated} show identifiers carry no parseable date")
        logger.debug(
            f"Catalog indexed: {len(self._identifiers)} shows, "
            f"{duplicates} duplicates dropped, {len(self._by_month_day)} calendar days"
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_show(self, identifier: str) -> Optional[Show]:
        """
        Exact lookup by identifier or document key, then fragment fallback.

        The fallback returns the lexicographically smallest identifier that
        contains ``identifier`` as a substring, so date-only fragments such
        as ``"1977-05-08"`` resolve deterministically.
        """
        if not identifier:
            return None
        show = self._by_identifier.get(identifier) or self._by_document_key.get(identifier)
        if show is not None:
            return show
        for candidate in self._identifiers:
            if identifier in candidate:
                return self._by_identifier[candidate]
        return None

    def get_all_shows(self) -> Mapping[str, Show]:
        """Every show keyed by its own ``identifier`` (read-only view)."""
        return MappingProxyType(self._by_identifier)

    @property
    def identifiers(self) -> List[str]:
        return list(self._identifiers)

    def show_date(self, identifier: str) -> Optional[ShowDate]:
        return self._dates.get(identifier)

    # ------------------------------------------------------------------
    # Random / anniversary selection
    # ------------------------------------------------------------------

    def random_show(self) -> Optional[Show]:
        """Uniform pick over all shows; None for an empty catalog."""
        if not self._identifiers:
            return None
        return self._by_identifier[self._rng.choice(self._identifiers)]

    def shows_on_this_day(self, reference_date: DateLike) -> List[Show]:
        """Every show whose month-day matches ``reference_date``, any year."""
        ref = _as_show_date(reference_date)
        return [self._by_identifier[i] for i in self._by_month_day.get(ref.month_day, [])]

    def random_show_on_this_day(self, reference_date: Optional[DateLike] = None) -> Optional[Show]:
        """Random pick among ``shows_on_this_day``; defaults to today."""
        shows = self.shows_on_this_day(reference_date or date.today())
        if not shows:
            return None
        return self._rng.choice(shows)

    def shows_in_range(self, start: DateLike, end: DateLike) -> List[Show]:
        """Shows dated within [start, end], ordered by date then identifier."""
        lo, hi = _as_show_date(start), _as_show_date(end)
        if lo > hi:
            lo, hi = hi, lo
        matched = [(d, i) for i, d in self._dates.items() if lo <= d <= hi]
        return [self._by_identifier[i] for _, i in sorted(matched)]

    # ------------------------------------------------------------------
    # Facets
    # ------------------------------------------------------------------

    def facet(self, name: Union[FacetName, str]) -> FacetBuckets:
        """Raw bucket mapping for any facet, known or not; empty when absent."""
        return self.categories.facet(name)

    def facet_bucket(self, name: Union[FacetName, str], value: str) -> FrozenSet[str]:
        return self.categories.bucket(name, value)

    def by_rating(self, tier: str = RATING_FIVE_STARS) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.RATING, tier)

    def by_era(self, era: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.ERA, era)

    def by_venue(self, venue: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.ICONIC_VENUE, venue)

    def by_venue_type(self, kind: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.VENUE_TYPE, kind)

    def by_recording(self, kind: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.RECORDING, kind)

    def by_region(self, region: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.REGION, region)

    def by_season(self, season: str) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.SEASON, season)

    def by_state(self) -> FacetBuckets:
        return self.facet(FacetName.STATE)

    def by_decade(self) -> FacetBuckets:
        return self.facet(FacetName.DECADE)

    def by_year(self) -> FacetBuckets:
        return self.facet(FacetName.YEAR)

    def by_month(self) -> FacetBuckets:
        return self.facet(FacetName.MONTH)

    def notable_performances(self) -> Dict[str, List[str]]:
        """Notable-performance tag -> identifiers, sorted per tag."""
        return {tag: sorted(ids) for tag, ids in self.facet(FacetName.NOTABLE).items()}

    def special_shows(self) -> FacetBuckets:
        return self.facet(FacetName.SPECIAL)

    def first_shows(self) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.SPECIAL, SPECIAL_FIRST_SHOW)

    def last_shows(self) -> FrozenSet[str]:
        return self.facet_bucket(FacetName.SPECIAL, SPECIAL_LAST_SHOW)

    def shows_for_facet(self, name: Union[FacetName, str], value: str) -> List[Show]:
        """Resolve a facet bucket to show records; unknown identifiers are skipped."""
        resolved = []
        for identifier in sorted(self.facet_bucket(name, value)):
            show = self._by_identifier.get(identifier) or self._by_document_key.get(identifier)
            if show is not None:
                resolved.append(show)
        return resolved

    # ------------------------------------------------------------------
    # Browsing helpers
    # ------------------------------------------------------------------

    def search(self, query: str = "", limit: int = 50) -> List[Show]:
        """Case-insensitive substring search over identifier, venue, city, state and title."""
        q = query.strip().lower()
        if not q:
            return [self._by_identifier[i] for i in self._identifiers[:limit]]

        results = []
        for identifier in self._identifiers:
            show = self._by_identifier[identifier]
            loc = show.location
            if (q in identifier.lower()
                    or q in loc.venue.lower()
                    or q in loc.city.lower()
                    or q in loc.state.lower()
                    or q in show.metadata.title.lower()):
                results.append(show)
                if len(results) >= limit:
                    break
        return results

    def top_rated(self, limit: int = 10) -> List[Show]:
        """Highest-scoring shows, ties broken by identifier."""
        ranked = sorted(self._by_identifier.values(), key=lambda s: (-s.score, s.identifier))
        return ranked[:limit]

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._by_identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._by_identifier

    def __repr__(self) -> str:
        return f"Catalog({len(self)} shows, {len(self.categories.facets)} facets)"
