"""Shared catalog document builders for the test suite."""

import json
import random

import pytest

from shakedown.loader import load


CORNELL = "gd77-05-08.sbd.hicks.4982"
BICKERSHAW = "gd1972-05-08.aud.bickershaw"
ALLENTOWN = "1979-05-08_agricultural_hall"
FILLMORE = "gd69-02-27.sbd.fillmore"
NASSAU = "gd1990-03-29.sbd.nassau"

# (document key, identifier, venue, city, state, score, source type)
SHOW_ROWS = [
    ("gd77-05-08", CORNELL, "Barton Hall, Cornell University", "Ithaca", "NY", 9.8, "SBD"),
    ("1972-05-08", BICKERSHAW, "Bickershaw Festival", "Wigan", "UK", 8.7, "AUD"),
    ("1979-05-08", ALLENTOWN, "Agricultural Hall", "Allentown", "PA", 8.1, "MATRIX"),
    ("gd69-02-27", FILLMORE, "Fillmore West", "San Francisco", "CA", 9.6, "SBD"),
    ("1990-03-29", NASSAU, "Nassau Coliseum", "Uniondale", "NY", 9.4, "cassette"),
]


def make_track(number, title=None, length="5:00"):
    return {
        "title": title or f"Song {number}",
        "filename": f"track{number:02d}.mp3",
        "length": length,
        "track_number": number,
    }


def make_show(identifier, venue="Venue", city="City", state="ST", score=9.0,
              source_type="SBD", track_count=3, **extra):
    record = {
        "identifier": identifier,
        "score": score,
        "location": {"venue": venue, "city": city, "state": state},
        "recording_info": {
            "source_type": source_type,
            "avg_rating": 4.5,
            "downloads": 1000,
            "download_rate": 1.5,
            "num_reviews": 12,
            "added_date": "2004-01-01",
        },
        "metadata": {
            "title": "",
            "collection": ["GratefulDead"],
            "notes": None,
        },
        "tracks": [make_track(n) for n in range(1, track_count + 1)],
    }
    record.update(extra)
    return record


def make_enriched_document(rows=SHOW_ROWS):
    return {
        "last_updated": "2024-06-01T00:00:00Z",
        "stats": {"progress": {"total_shows": len(rows)}, "errors": []},
        "best_shows": {
            key: make_show(identifier, venue, city, state, score, source)
            for key, identifier, venue, city, state, score, source in rows
        },
    }


def make_category_document():
    return {
        "format_version": 2,
        "description": "Show categories",
        "generated_at": "2024-06-01",
        "categories": {
            "by_rating": {"5_stars": [CORNELL, FILLMORE], "4_stars": [NASSAU]},
            "by_era": {"pigpen": [FILLMORE, BICKERSHAW], "keith": [CORNELL],
                       "brent": [NASSAU, ALLENTOWN]},
            "by_iconic_venue": {"fillmore": [FILLMORE]},
            "by_venue_type": {"theaters": [FILLMORE], "stadiums": [NASSAU]},
            "by_recording": {"soundboards": [CORNELL, FILLMORE, NASSAU],
                             "audiences": [BICKERSHAW], "matrix": [ALLENTOWN]},
            "by_region": {"northeast": [CORNELL, NASSAU, ALLENTOWN], "west": [FILLMORE]},
            "by_state": {"NY": [CORNELL, NASSAU], "CA": [FILLMORE], "PA": [ALLENTOWN]},
            "by_season": {"spring": [CORNELL, BICKERSHAW, ALLENTOWN, NASSAU],
                          "winter": [FILLMORE]},
            "by_decade": {"1960s": [FILLMORE], "1970s": [CORNELL, BICKERSHAW, ALLENTOWN],
                          "1990s": [NASSAU]},
            "by_year": {"1969": [FILLMORE], "1977": [CORNELL]},
            "by_month": {"05": [CORNELL, BICKERSHAW, ALLENTOWN]},
            "notable_performances": {"cornell": [CORNELL],
                                     "dark_star": [FILLMORE, BICKERSHAW, "gd99-01-01.missing"]},
            "special_shows": {"first_show": [FILLMORE], "last_show": [NASSAU]},
            "by_taper": {"hicks": [CORNELL]},
            "encores": [CORNELL, NASSAU],
        },
    }


def to_bytes(document):
    return json.dumps(document).encode("utf-8")


@pytest.fixture
def enriched_bytes():
    return to_bytes(make_enriched_document())


@pytest.fixture
def category_bytes():
    return to_bytes(make_category_document())


@pytest.fixture
def catalog(category_bytes, enriched_bytes):
    return load(category_bytes, enriched_bytes)


@pytest.fixture
def seeded_catalog(catalog):
    catalog._rng = random.Random(1977)
    return catalog
