"""Unit tests for the catalog loader."""

import asyncio
import json

import pytest

from shakedown.config import Settings
from shakedown.exceptions import EmptyDatasetError, SchemaError
from shakedown.loader import load, load_async, load_files, parse_category_index
from shakedown.models import FacetName, SourceType

from conftest import (
    CORNELL,
    NASSAU,
    make_category_document,
    make_enriched_document,
    make_show,
    make_track,
    to_bytes,
)


class TestLoad:
    def test_loads_all_shows(self, catalog):
        assert len(catalog) == 5

    def test_rekeys_by_identifier(self, catalog):
        shows = catalog.get_all_shows()
        assert CORNELL in shows
        assert "gd77-05-08" not in shows
        for identifier, show in shows.items():
            assert show.identifier == identifier

    def test_passes_through_stats(self, catalog):
        assert catalog.stats["progress"]["total_shows"] == 5
        assert catalog.last_updated == "2024-06-01T00:00:00Z"

    def test_source_type_mapping(self, catalog):
        shows = catalog.get_all_shows()
        assert shows[CORNELL].recording_info.source_type is SourceType.SOUNDBOARD
        assert shows[NASSAU].recording_info.source_type is SourceType.OTHER

    def test_missing_category_document_gives_empty_index(self, enriched_bytes):
        catalog = load(None, enriched_bytes)
        assert len(catalog) == 5
        assert catalog.categories.facets == {}
        assert catalog.by_era("pigpen") == frozenset()

    def test_blank_category_document_gives_empty_index(self, enriched_bytes):
        catalog = load(b"   ", enriched_bytes)
        assert catalog.categories.facets == {}

    def test_unknown_keys_tolerated(self, category_bytes):
        doc = make_enriched_document()
        doc["generator"] = "scraper v3"
        for record in doc["best_shows"].values():
            record["future_field"] = {"nested": True}
            record["location"]["country"] = "US"
            record["tracks"][0]["bitrate"] = 320
        catalog = load(category_bytes, to_bytes(doc))
        assert len(catalog) == 5

    def test_str_input_accepted(self):
        doc = make_enriched_document()
        catalog = load(json.dumps(make_category_document()), json.dumps(doc))
        assert len(catalog) == 5


class TestSchemaErrors:
    @pytest.mark.parametrize("missing", ["identifier", "score", "location", "tracks"])
    def test_missing_mandatory_show_key(self, missing):
        doc = make_enriched_document()
        del doc["best_shows"]["gd77-05-08"][missing]
        with pytest.raises(SchemaError) as exc_info:
            load(None, to_bytes(doc))
        assert missing in str(exc_info.value)

    def test_mistyped_score(self):
        doc = make_enriched_document()
        doc["best_shows"]["gd77-05-08"]["score"] = "excellent"
        with pytest.raises(SchemaError):
            load(None, to_bytes(doc))

    def test_missing_best_shows(self):
        with pytest.raises(SchemaError):
            load(None, to_bytes({"last_updated": "x", "stats": {}}))

    def test_invalid_json(self):
        with pytest.raises(SchemaError):
            load(None, b"{not json")

    def test_invalid_category_json(self, enriched_bytes):
        with pytest.raises(SchemaError):
            load(b"[1, 2", enriched_bytes)

    def test_category_document_without_categories(self, enriched_bytes):
        with pytest.raises(SchemaError):
            load(to_bytes({"format_version": 1}), enriched_bytes)

    def test_category_bucket_with_non_string_ids(self, enriched_bytes):
        doc = make_category_document()
        doc["categories"]["by_era"]["pigpen"] = [{"id": 1}]
        with pytest.raises(SchemaError):
            load(to_bytes(doc), enriched_bytes)

    def test_enriched_document_not_an_object(self):
        with pytest.raises(SchemaError):
            load(None, b"[]")


class TestEmptyDataset:
    def test_empty_best_shows(self, category_bytes):
        with pytest.raises(EmptyDatasetError):
            load(category_bytes, to_bytes({"last_updated": "", "stats": {}, "best_shows": {}}))

    def test_none_enriched(self, category_bytes):
        with pytest.raises(EmptyDatasetError):
            load(category_bytes, None)


class TestTrackOrdering:
    def test_positions_contiguous_from_one(self, catalog):
        for show in catalog.get_all_shows().values():
            assert [t.position for t in show.tracks] == list(range(1, show.track_count + 1))

    def test_out_of_order_tracks_sorted(self):
        record = make_show("gd77-05-09.sbd", track_count=0)
        record["tracks"] = [make_track(3, "Morning Dew"), make_track(1, "Promised Land"),
                            make_track(2, "Sugaree")]
        doc = {"best_shows": {"a": record}}
        show = load(None, to_bytes(doc)).get_show("gd77-05-09.sbd")
        assert [t.title for t in show.tracks] == ["Promised Land", "Sugaree", "Morning Dew"]
        assert [t.position for t in show.tracks] == [1, 2, 3]

    def test_gapped_numbers_renumbered(self):
        record = make_show("gd77-05-09.sbd", track_count=0)
        record["tracks"] = [make_track(2), make_track(5), make_track(9)]
        show = load(None, to_bytes({"best_shows": {"a": record}})).get_show("gd77-05-09.sbd")
        assert [t.position for t in show.tracks] == [1, 2, 3]
        assert [t.filename for t in show.tracks] == ["track02.mp3", "track05.mp3", "track09.mp3"]

    def test_unnumbered_tracks_keep_document_order_after_numbered(self):
        record = make_show("gd77-05-09.sbd", track_count=0)
        record["tracks"] = [
            {"title": "Tuning", "filename": "z.mp3"},
            make_track(1, "Scarlet Begonias"),
            {"title": "Crowd", "filename": "a.mp3"},
        ]
        show = load(None, to_bytes({"best_shows": {"a": record}})).get_show("gd77-05-09.sbd")
        assert [t.title for t in show.tracks] == ["Scarlet Begonias", "Tuning", "Crowd"]


class TestCategoryParsing:
    def test_known_facets(self, catalog):
        assert catalog.categories.format_version == 2
        assert CORNELL in catalog.categories.facet(FacetName.RATING)["5_stars"]

    def test_unknown_facet_preserved(self, catalog):
        assert "by_taper" in catalog.categories.unknown_facets
        assert catalog.facet("by_taper")["hicks"] == frozenset({CORNELL})

    def test_flat_list_facet(self, catalog):
        assert catalog.facet("encores") == {"encores": frozenset({CORNELL, NASSAU})}

    def test_unknown_facet_with_other_shape_skipped(self, enriched_bytes):
        doc = make_category_document()
        doc["categories"]["meta"] = {"count": 5}
        doc["categories"]["generator"] = "v3"
        catalog = load(to_bytes(doc), enriched_bytes)
        assert catalog.facet("meta") == {}
        assert catalog.facet("generator") == {}
        assert catalog.by_era("keith") == frozenset({CORNELL})

    def test_known_facet_with_other_shape_rejected(self, enriched_bytes):
        doc = make_category_document()
        doc["categories"]["by_era"] = {"count": 5}
        with pytest.raises(SchemaError):
            load(to_bytes(doc), enriched_bytes)

    def test_parse_category_index_none(self):
        assert parse_category_index(None).facets == {}


class TestLoadFiles:
    def test_reads_configured_paths(self, tmp_path, category_bytes, enriched_bytes):
        (tmp_path / "cats.json").write_bytes(category_bytes)
        (tmp_path / "shows.json").write_bytes(enriched_bytes)
        settings = Settings(categories_path=tmp_path / "cats.json", shows_path=tmp_path / "shows.json")
        catalog = load_files(settings)
        assert len(catalog) == 5
        assert catalog.by_era("keith") == frozenset({CORNELL})

    def test_missing_category_file(self, tmp_path, enriched_bytes):
        (tmp_path / "shows.json").write_bytes(enriched_bytes)
        settings = Settings(categories_path=tmp_path / "nope.json", shows_path=tmp_path / "shows.json")
        assert load_files(settings).categories.facets == {}

    def test_missing_show_file(self, tmp_path):
        settings = Settings(categories_path=tmp_path / "a.json", shows_path=tmp_path / "b.json")
        with pytest.raises(EmptyDatasetError):
            load_files(settings)


class TestLoadAsync:
    def test_background_load(self, category_bytes, enriched_bytes):
        catalog = asyncio.run(load_async(category_bytes, enriched_bytes))
        assert len(catalog) == 5
