"""Tests for utility functions."""

from datetime import date, datetime, timedelta, timezone

import pytest

from increment.utils.dates import (
    as_utc,
    format_datetime,
    is_same_local_day,
    parse_datetime,
    parse_optional_datetime,
    utc_day,
)
from increment.utils.exercise_utils import (
    format_set_strings,
    names_match,
    normalize_exercise_name,
    parse_set_strings,
)


class TestNormalizeExerciseName:
    """Tests for normalize_exercise_name function."""

    def test_lowercase_and_strip(self):
        """Test basic normalization."""
        assert normalize_exercise_name("  Bench Press  ") == "bench press"

    def test_abbreviation_expansion(self):
        """Test abbreviation expansion."""
        assert normalize_exercise_name("BB") == "barbell"
        assert normalize_exercise_name("OHP") == "overhead press"

    def test_inline_abbreviation(self):
        """Test abbreviation expansion within name."""
        assert normalize_exercise_name("DB Row") == "dumbbell row"

    def test_extra_whitespace(self):
        assert normalize_exercise_name("Bench   Press") == "bench press"

    def test_names_match(self):
        assert names_match("BB Row", "barbell row")
        assert not names_match("Bench Press", "Incline Bench Press")


class TestParseSetStrings:
    """Tests for comma-separated set decoding."""

    def test_equal_lengths(self):
        assert parse_set_strings("225, 225, 220", "5, 5, 4") == [
            (225.0, 5),
            (225.0, 5),
            (220.0, 4),
        ]

    def test_missing_values_default_to_zero(self):
        assert parse_set_strings("100", "10, 8") == [(100.0, 10), (0.0, 8)]

    def test_invalid_values_default_to_zero(self):
        assert parse_set_strings("abc, 95", "x, 6") == [(0.0, 0), (95.0, 6)]

    def test_empty_positions_skipped(self):
        assert parse_set_strings("100, , 90", "5, , 5") == [(100.0, 5), (90.0, 5)]

    def test_none(self):
        assert parse_set_strings(None, None) == []

    def test_format(self):
        assert format_set_strings([(225.0, 5), (222.5, 3)]) == ("225, 222.5", "5, 3")
        assert format_set_strings([]) == ("", "")


class TestDates:
    """Tests for datetime helpers."""

    def test_parse_z_suffix(self):
        value = parse_datetime("2024-02-01T10:00:00Z")
        assert value == datetime(2024, 2, 1, 10, tzinfo=timezone.utc)

    def test_parse_offset_converted_to_utc(self):
        value = parse_datetime("2024-02-01T23:30:00-05:00")
        assert value.tzinfo == timezone.utc
        assert value.day == 2
        assert value.hour == 4

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_datetime("yesterday")
        with pytest.raises(ValueError):
            parse_datetime(12345)

    def test_optional(self):
        assert parse_optional_datetime(None) is None
        assert parse_optional_datetime("") is None

    def test_naive_treated_as_utc(self):
        assert as_utc(datetime(2024, 1, 1, 12)) == datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    def test_format_round_trip(self):
        value = datetime(2024, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))
        assert parse_datetime(format_datetime(value)) == value

    def test_utc_day(self):
        value = datetime(2024, 2, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        assert utc_day(value) == date(2024, 2, 2)

    def test_same_local_day(self):
        value = datetime(2024, 2, 1, 12, tzinfo=timezone.utc)
        assert is_same_local_day(value, value)
        assert not is_same_local_day(value, value + timedelta(days=2))
