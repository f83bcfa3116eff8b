"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system are timezone-aware UTC. Usage periods
are calendar months in UTC, formatted YYYY-MM.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current UTC datetime with timezone info."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    Naive values are assumed to be UTC; aware values are converted.
    Use at persistence boundaries (SQLite returns naive datetimes).
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def usage_period(now: datetime | None = None) -> str:
    """Return the usage period (YYYY-MM) containing now."""
    now = ensure_utc(now) or utc_now()
    return f"{now.year:04d}-{now.month:02d}"


def next_month_start(now: datetime | None = None) -> datetime:
    """Return midnight UTC on the first day of the month after now."""
    now = ensure_utc(now) or utc_now()
    if now.month == 12:
        return datetime(now.year + 1, 1, 1, tzinfo=UTC)
    return datetime(now.year, now.month + 1, 1, tzinfo=UTC)
