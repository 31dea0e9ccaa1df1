"""UTC datetime utilities."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    Use this instead of datetime.now() or datetime.utcnow() so that every
    timestamp written to the reservation store is timezone-aware.
    """
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to timezone-aware UTC.

    Naive values are assumed to already be in UTC (SQLite returns naive
    datetimes even for timezone-aware columns).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
