"""
UTC-first datetime utilities for HealthVault API.

- All datetimes are stored and processed in UTC
- Database storage: ISO 8601 strings with microseconds (keeps creation order stable)
- API responses: ISO 8601 strings with 'Z' suffix
"""
import logging
from datetime import datetime, timezone
from typing import Optional, Union

logger = logging.getLogger(__name__)

DB_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Get current datetime in UTC with timezone info."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Union[str, datetime]) -> datetime:
    """
    Parse an ISO 8601 datetime value to a UTC datetime.

    Raises:
        ValueError: If the value cannot be parsed.

    Examples:
        >>> parse_datetime("2024-01-15T10:30:00Z")
        datetime.datetime(2024, 1, 15, 10, 30, tzinfo=datetime.timezone.utc)
    """
    if isinstance(value, datetime):
        return to_utc(value)

    if not isinstance(value, str):
        raise ValueError(f"Expected datetime or string, got {type(value).__name__}")

    value = value.strip()
    # Python < 3.11 fromisoformat does not accept the 'Z' suffix
    if value.endswith('Z'):
        value = value[:-1] + '+00:00'
    try:
        return to_utc(datetime.fromisoformat(value))
    except ValueError:
        raise ValueError(f"Cannot parse datetime: '{value}'")


def parse_datetime_safe(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse datetime, returning None (and logging) if parsing fails or input is None."""
    if value is None:
        return None
    try:
        return parse_datetime(value)
    except ValueError as e:
        logger.warning(f"Failed to parse datetime '{value}': {e}")
        return None


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with UTC timezone and millisecond precision.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00.000Z'
    """
    utc_dt = to_utc(dt)
    return utc_dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def to_db_string(dt: datetime) -> str:
    """Convert datetime to the string format used for SQLite storage."""
    return to_utc(dt).strftime(DB_TIMESTAMP_FORMAT)


def from_db_string(value: Optional[str]) -> Optional[datetime]:
    """Parse a datetime string read from SQLite storage."""
    return parse_datetime_safe(value)
