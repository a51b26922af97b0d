# ABOUTME: Timestamp conversion and display formatting shared across Shelf.
# ABOUTME: ISO-8601 UTC round-tripping for storage/backups plus scrubber and duration strings.

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def from_timestamp(seconds: float) -> datetime:
    """Convert a POSIX timestamp (e.g. st_mtime) to an aware UTC datetime."""
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def format_iso(value: datetime) -> str:
    """Format as ISO-8601 in UTC with a 'Z' suffix.

    Fractional seconds are kept when present so a value survives a
    format/parse round trip unchanged.
    """
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string into an aware UTC datetime.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp.
    """
    text = value.strip()
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except OverflowError:
        raise ValueError(f"Timestamp out of range: {value!r}") from None


def format_scrubber_time(seconds: float) -> str:
    """Format a position like a player scrubber: h:mm:ss, or m:ss under an hour."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_duration(seconds: float) -> str:
    """Compact book length: '5h 12m', or '48m' under an hour."""
    if seconds <= 0:
        return "--"
    total_minutes = int(seconds) // 60
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"
