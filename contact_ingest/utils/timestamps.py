"""Timestamp utilities for UTC handling.

Import sessions and the persistence collaborator stamp times in UTC only:
- Getting current UTC time
- Converting timezone-naive values to timezone-aware UTC
- Formatting and parsing the ISO 8601 strings stored in the contacts table
"""

from datetime import datetime, timezone
from typing import Optional

_STORAGE_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO 8601 UTC string with a 'Z' suffix.

    Args:
        dt: Datetime to format (naive values are treated as UTC)

    Returns:
        String such as '2025-11-04T10:30:00.000000Z', or None if dt is None
    """
    if dt is None:
        return None
    return ensure_utc(dt).strftime(_STORAGE_FORMAT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a string produced by format_timestamp back into a UTC datetime.

    Accepts values with or without microseconds. Empty values yield None.

    Args:
        value: ISO 8601 string with a trailing 'Z'

    Returns:
        Timezone-aware UTC datetime, or None
    """
    if not value:
        return None

    stripped = value.rstrip("Z")
    try:
        dt = datetime.strptime(stripped, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(stripped, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)
