"""Tests for calendar date normalization."""

from datetime import date, datetime, timedelta, timezone

import pytest

from app.dates import normalize_date, to_iso
from app.errors import InvalidDateError


def test_date_only_string_is_utc_midnight():
    assert normalize_date("2024-03-01") == datetime(2024, 3, 1, tzinfo=timezone.utc)


def test_date_only_renders_with_millis_and_z():
    assert to_iso(normalize_date("2024-03-01")) == "2024-03-01T00:00:00.000Z"


@pytest.mark.parametrize("value", ["2024-03-01T00:00:00", "2024-03-01T00:00:00.000Z", "2024-03-01T00:00:00+00:00"])
def test_utc_midnight_keeps_calendar_date(value):
    assert normalize_date(value) == datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-03-01T00:00:00+05:30", datetime(2024, 2, 29, 18, 30, tzinfo=timezone.utc)),
        ("2024-03-01T00:00:00-08:00", datetime(2024, 3, 1, 8, 0, tzinfo=timezone.utc)),
    ],
)
def test_offset_midnight_is_a_real_instant(value, expected):
    assert normalize_date(value) == expected


def test_evening_to_offset_midnight_stays_ordered():
    start = normalize_date("2024-03-01T22:00:00-05:00")
    end = normalize_date("2024-03-02T00:00:00-05:00")
    assert start == datetime(2024, 3, 2, 3, 0, tzinfo=timezone.utc)
    assert end == datetime(2024, 3, 2, 5, 0, tzinfo=timezone.utc)
    assert end > start


def test_full_timestamp_is_converted_to_utc():
    assert normalize_date("2024-03-01T10:30:00+02:00") == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


def test_naive_timestamp_is_read_as_utc():
    result = normalize_date("2024-03-01T10:00:00")
    assert result == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)
    assert result.utcoffset() == timedelta(0)


def test_accepts_date_and_datetime_objects():
    assert normalize_date(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    aware = datetime(2024, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert normalize_date(aware) == datetime(2024, 3, 1, 17, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", ["", "   ", "not-a-date", "2024-13-45", None, 12345])
def test_unparseable_input_raises(value):
    with pytest.raises(InvalidDateError):
        normalize_date(value)


def test_to_iso_truncates_to_milliseconds():
    value = datetime(2024, 3, 1, 8, 30, 15, 123456, tzinfo=timezone.utc)
    assert to_iso(value) == "2024-03-01T08:30:15.123Z"
    assert to_iso(None) is None
