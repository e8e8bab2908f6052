"""Tests for the catalog summary."""

from shakedown.stats import _distribution, build_catalog_summary


def test_distribution_empty():
    assert _distribution([]) == {}


def test_distribution_values():
    result = _distribution([4, 1, 3, 2])
    assert result["count"] == 4
    assert result["min"] == 1
    assert result["max"] == 4
    assert result["avg"] == 2.5
    assert (result["p25"], result["median"], result["p75"]) == (1.75, 2.5, 3.25)


def test_distribution_single_value():
    result = _distribution([7])
    assert result["p25"] == result["median"] == result["p75"] == 7


class TestCatalogSummary:
    def test_counts(self, catalog):
        summary = build_catalog_summary(catalog)
        assert summary["show_count"] == 5
        assert summary["track_count"] == 15
        assert summary["last_updated"] == "2024-06-01T00:00:00Z"

    def test_date_range(self, catalog):
        summary = build_catalog_summary(catalog)
        assert summary["date_range"] == {"min": "1969-02-27", "max": "1990-03-29"}

    def test_breakdowns(self, catalog):
        summary = build_catalog_summary(catalog)
        assert summary["source_types"]["soundboard"] == 2
        assert summary["years"] == {1969: 1, 1972: 1, 1977: 1, 1979: 1, 1990: 1}
        assert summary["states"]["NY"] == 2
        assert len(summary["top_venues"]) == 5

    def test_top_venues_limit(self, catalog):
        assert len(build_catalog_summary(catalog, top_venues=2)["top_venues"]) == 2

    def test_distributions(self, catalog):
        summary = build_catalog_summary(catalog)
        assert summary["score"]["max"] == 9.8
        assert summary["score"]["min"] == 8.1
        assert summary["duration_seconds"]["avg"] == 900

    def test_facet_sizes(self, catalog):
        facets = build_catalog_summary(catalog)["facets"]
        assert facets["by_era"] == {"brent": 2, "keith": 1, "pigpen": 2}
        assert facets["notable_performances"]["dark_star"] == 3

    def test_document_stats_passed_through(self, catalog):
        assert build_catalog_summary(catalog)["document_stats"]["progress"]["total_shows"] == 5
