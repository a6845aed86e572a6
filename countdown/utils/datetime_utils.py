"""
Timezone-aware datetime utilities.

Milestone timestamps are stored as the strings they were supplied as, so
every consumer goes through parse_timestamp() to get a UTC datetime or None.
"""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# UTC timezone constant
UTC = timezone.utc


def now_utc() -> datetime:
    """
    Get current UTC datetime (timezone-aware).

    Returns:
        datetime: Current UTC time with tzinfo set to UTC
    """
    return datetime.now(UTC)


@lru_cache()
def _zone(name: str):
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return UTC


def parse_timestamp(value: Any, default_timezone: str = "UTC") -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp to a UTC timezone-aware datetime.

    Handles:
    - strings with 'Z' suffix (UTC): "2024-01-20T09:00:00Z"
    - strings with an offset: "2024-01-20T09:00:00+09:00"
    - naive strings, read in default_timezone: "2024-01-20T09:00"
    - datetime objects (naive ones read in default_timezone)

    Args:
        value: Raw timestamp (usually a string)
        default_timezone: IANA zone for naive values

    Returns:
        UTC datetime, or None if the value cannot be parsed
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value.strip():
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=_zone(default_timezone))
    try:
        return dt.astimezone(UTC)
    except (OverflowError, ValueError):
        # Offsets at the edges of the datetime range (e.g. 0001-01-01T00:00+01:00)
        return None


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is timezone-aware and in UTC.

    Args:
        dt: datetime to convert (can be None, naive, or timezone-aware)

    Returns:
        Optional[datetime]: UTC timezone-aware datetime, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume UTC
        return dt.replace(tzinfo=UTC)

    # Already timezone-aware - convert to UTC
    return dt.astimezone(UTC)


def to_iso(dt: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with a 'Z' suffix."""
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")
