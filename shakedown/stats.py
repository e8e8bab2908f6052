"""
Catalog statistics: a summary of the loaded collection built from the data.

Everything is computed from the shows and facets actually present; nothing is
hardcoded. The result is a plain dict suitable for JSON serialisation.
"""

import statistics
from collections import Counter
from typing import Any

from .catalog import Catalog


def _distribution(values: list) -> dict:
    """Count, range, mean and quartiles of ``values``; empty dict when there are none."""
    if not values:
        return {}
    if len(values) > 1:
        p25, p50, p75 = statistics.quantiles(values, n=4, method="inclusive")
    else:
        p25 = p50 = p75 = values[0]
    return {
        "count":  len(values),
        "min":    round(min(values), 2),
        "max":    round(max(values), 2),
        "avg":    round(statistics.fmean(values), 2),
        "median": round(p50, 2),
        "p25":    round(p25, 2),
        "p75":    round(p75, 2),
    }


def build_catalog_summary(catalog: Catalog, top_venues: int = 20) -> dict[str, Any]:
    """
    Scan every show and facet and compute a collection summary.

    Returns:
        Dict with show/track counts, date range, per-source / per-year /
        per-state counts, top venues, score and rating distributions, facet
        bucket sizes and the enriched document's own ``stats`` block.
    """
    source_types: Counter = Counter()
    years:        Counter = Counter()
    states:       Counter = Counter()
    venues:       Counter = Counter()
    scores:       list[float] = []
    ratings:      list[float] = []
    track_counts: list[int]   = []
    durations:    list[int]   = []
    dates:        list[str]   = []

    for identifier, show in catalog.get_all_shows().items():
        source_types[show.recording_info.source_type.value] += 1
        if show.location.state:
            states[show.location.state] += 1
        if show.location.venue:
            venues[show.location.venue] += 1
        scores.append(show.score)
        if show.recording_info.avg_rating > 0:
            ratings.append(show.recording_info.avg_rating)
        track_counts.append(show.track_count)
        total = show.total_duration_seconds()
        if total > 0:
            durations.append(total)

        show_date = catalog.show_date(identifier)
        if show_date is not None:
            years[show_date.year] += 1
            dates.append(show_date.isoformat())

    facet_sizes = {
        facet: {value: len(ids) for value, ids in sorted(buckets.items())}
        for facet, buckets in sorted(catalog.categories.facets.items())
    }

    return {
        "show_count":   len(catalog),
        "track_count":  sum(track_counts),
        "last_updated": catalog.last_updated,
        "date_range": (
            {"min": min(dates), "max": max(dates)} if dates else {}
        ),
        "source_types": dict(source_types.most_common()),
        "years":        dict(sorted(years.items())),
        "states":       dict(states.most_common()),
        "top_venues": [
            {"venue": v, "count": c} for v, c in venues.most_common(top_venues)
        ],
        "score":              _distribution(scores),
        "avg_rating":         _distribution(ratings),
        "tracks_per_show":    _distribution(track_counts),
        "duration_seconds":   _distribution(durations),
        "facets":             facet_sizes,
        "document_stats":     dict(catalog.stats),
    }
