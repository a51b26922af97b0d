# ABOUTME: Unit tests for timestamp conversion and time display helpers.
# ABOUTME: Covers ISO-8601 UTC formatting and parsing, scrubber times, and durations.

from datetime import datetime, timedelta, timezone

import pytest

from shelf.core.timefmt import (
    ensure_utc,
    format_duration,
    format_iso,
    format_scrubber_time,
    from_timestamp,
    parse_iso,
)


class TestIso:
    def test_format_uses_z_suffix(self) -> None:
        value = datetime(2024, 3, 1, 12, 30, 0, tzinfo=timezone.utc)
        assert format_iso(value) == "2024-03-01T12:30:00Z"

    def test_format_converts_to_utc(self) -> None:
        value = datetime(2024, 3, 1, 14, 30, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_iso(value) == "2024-03-01T12:30:00Z"

    def test_naive_datetime_treated_as_utc(self) -> None:
        assert format_iso(datetime(2024, 3, 1, 12, 0, 0)) == "2024-03-01T12:00:00Z"

    def test_fractional_seconds_round_trip(self) -> None:
        value = datetime(2024, 3, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert parse_iso(format_iso(value)) == value

    def test_parse_z_suffix(self) -> None:
        parsed = parse_iso("2023-11-05T08:15:00Z")
        assert parsed == datetime(2023, 11, 5, 8, 15, tzinfo=timezone.utc)
        assert parsed.tzinfo is not None

    def test_parse_offset_normalizes_to_utc(self) -> None:
        parsed = parse_iso("2023-11-05T10:15:00+02:00")
        assert parsed == datetime(2023, 11, 5, 8, 15, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_parse_garbage_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_iso("last tuesday")

    def test_parse_out_of_range_raises_value_error(self) -> None:
        with pytest.raises(ValueError, match="out of range"):
            parse_iso("0001-01-01T00:00:00+05:00")

    def test_ensure_utc_keeps_instant(self) -> None:
        local = datetime(2024, 1, 1, 0, 0, tzinfo=timezone(timedelta(hours=-5)))
        assert ensure_utc(local) == local
        assert ensure_utc(local).hour == 5

    def test_from_timestamp_is_aware(self) -> None:
        assert from_timestamp(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)


class TestScrubberTime:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "0:00"),
            (59.9, "0:59"),
            (65, "1:05"),
            (3599, "59:59"),
            (3600, "1:00:00"),
            (3725, "1:02:05"),
            (-4, "0:00"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_scrubber_time(seconds) == expected


class TestDuration:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [
            (0, "--"),
            (-1, "--"),
            (59, "0m"),
            (48 * 60, "48m"),
            (5 * 3600 + 12 * 60 + 30, "5h 12m"),
            (10 * 3600, "10h 0m"),
        ],
    )
    def test_format(self, seconds: float, expected: str) -> None:
        assert format_duration(seconds) == expected
