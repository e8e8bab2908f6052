"""Unit tests for show identifier date parsing."""

import pytest

from shakedown.identifiers import (
    IdentifierScheme,
    ShowDate,
    detect_scheme,
    month_day,
    parse_date,
    try_parse_date,
)


class TestDetectScheme:
    def test_prefixed_two_digit_year(self):
        assert detect_scheme("gd77-05-08.sbd.hicks.4982") is IdentifierScheme.PREFIXED

    def test_prefixed_four_digit_year(self):
        assert detect_scheme("gd1977-05-08.sbd.miller") is IdentifierScheme.PREFIXED

    def test_iso(self):
        assert detect_scheme("1977-05-08_barton_hall") is IdentifierScheme.ISO

    def test_no_date(self):
        assert detect_scheme("cornell_bootleg") is None
        assert detect_scheme("") is None


class TestParseDate:
    def test_two_digit_year_maps_to_1900s(self):
        assert parse_date("gd77-05-08.sbd.hicks.4982") == ShowDate(1977, 5, 8)

    def test_four_digit_prefixed(self):
        assert parse_date("gd1990-03-29.sbd.nassau") == ShowDate(1990, 3, 29)

    def test_iso(self):
        assert parse_date("1969-02-27_fillmore") == ShowDate(1969, 2, 27)

    def test_schemes_agree(self):
        assert parse_date("gd77-05-08") == parse_date("1977-05-08") == parse_date("gd1977-05-08")

    def test_bare_date(self):
        assert parse_date("1977-05-08") == ShowDate(1977, 5, 8)

    def test_invalid_calendar_date(self):
        with pytest.raises(ValueError):
            parse_date("gd77-02-30.sbd")

    def test_no_date_raises(self):
        with pytest.raises(ValueError):
            parse_date("not-a-show")

    def test_try_parse_returns_none(self):
        assert try_parse_date("not-a-show") is None
        assert try_parse_date("gd77-13-01") is None

    def test_ordering_is_chronological(self):
        dates = [parse_date(i) for i in ("gd1990-03-29", "gd69-02-27", "1977-05-08")]
        assert sorted(dates) == [ShowDate(1969, 2, 27), ShowDate(1977, 5, 8), ShowDate(1990, 3, 29)]


class TestShowDate:
    def test_month_day(self):
        assert month_day("gd77-05-08.sbd") == (5, 8)
        assert month_day("1979-05-08_allentown") == (5, 8)

    def test_month_day_none(self):
        assert month_day("unknown") is None

    def test_isoformat(self):
        assert ShowDate(1977, 5, 8).isoformat() == "1977-05-08"

    def test_to_date(self):
        assert ShowDate(1977, 5, 8).to_date().weekday() == 6  # a Sunday
