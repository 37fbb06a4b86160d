"""Datetime helpers.

Domain datetimes are timezone-aware (UTC) when created by increment. Values
read from older documents may be naive; those are treated as UTC.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix allowed) into an aware datetime.

    Raises:
        ValueError: if the value is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        raise ValueError(f"Cannot parse timestamp: {value!r}")
    return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def format_datetime(value: datetime) -> str:
    """Format a datetime as ISO-8601 in UTC."""
    return as_utc(value).isoformat()


def parse_optional_datetime(value: str | datetime | None) -> datetime | None:
    if value is None or value == "":
        return None
    return parse_datetime(value)


def format_optional_datetime(value: datetime | None) -> str | None:
    return format_datetime(value) if value else None


def local_day(value: datetime) -> date:
    """Calendar day of ``value`` in the device's local timezone."""
    if value.tzinfo is None:
        return value.date()
    return value.astimezone().date()


def utc_day(value: datetime) -> date:
    """Calendar day of ``value`` in UTC (the remote store's day boundary)."""
    return as_utc(value).date()


def is_same_local_day(value: datetime, other: datetime | date) -> bool:
    """Check whether ``value`` falls on the same local calendar day as ``other``."""
    if isinstance(other, datetime):
        other = local_day(other)
    return local_day(value) == other
