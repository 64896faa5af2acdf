"""UTC timestamp helpers shared by the domain, persistence and service layers.

Stored timestamps use a fixed-width ISO 8601 layout with microseconds and a
``Z`` suffix, so comparing two stored strings lexically gives the same answer
as comparing the datetimes they encode.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Coerce a datetime to timezone-aware UTC.

    Naive datetimes are assumed to already be in UTC; aware datetimes in
    another zone are converted.

    Args:
        dt: Datetime to coerce (None passes through)

    Returns:
        UTC datetime or None
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for a string column.

    Example:
        >>> to_storage(datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00.000000Z'
    """
    dt = ensure_utc(dt)
    if dt is None:
        return None
    return dt.strftime(STORAGE_FORMAT)


def from_storage(value: Optional[str]) -> Optional[datetime]:
    """Parse a stored timestamp back into a UTC datetime.

    Accepts values written with or without microseconds. Empty strings are
    treated as missing.
    """
    if not value:
        return None

    raw = value.rstrip("Z")
    try:
        parsed = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        parsed = datetime.strptime(raw, "%Y-%m-%dT%H:%M:%S")
    return parsed.replace(tzinfo=timezone.utc)


def cutoff_before(now: datetime, window_seconds: int) -> datetime:
    """Return the instant ``window_seconds`` before ``now`` (in UTC)."""
    return ensure_utc(now) - timedelta(seconds=window_seconds)
