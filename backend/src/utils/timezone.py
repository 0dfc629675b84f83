"""
Location History Import - Timezone Utilities
Provides UTC datetime handling for archived records.

All timestamps are stored as naive UTC datetimes. Archives carry ISO-8601
strings with or without offsets (``2024-01-01T10:00:00Z``,
``2024-01-01T12:00:00+02:00``, ``2024-01-01 10:00:00 UTC``) and these are
normalized here so natural-key comparisons line up with stored values.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

UTC_TZ = timezone.utc

# Natural keys compare at second precision
KEY_TIMESTAMP_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def utc_now() -> datetime:
    """
    Get current time as a naive UTC datetime.

    Returns:
        datetime: Current UTC time without tzinfo, matching stored columns
    """
    return datetime.now(UTC_TZ).replace(tzinfo=None)


def parse_datetime(value: Any) -> Optional[datetime]:
    """
    Parse an archived timestamp into a naive UTC datetime.

    Args:
        value: ISO-8601 string, epoch seconds, or datetime

    Returns:
        Naive UTC datetime, or None for blank values

    Raises:
        ValueError: If the value cannot be interpreted as a timestamp
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value, UTC_TZ)
    elif isinstance(value, str):
        text = value.strip()
        try:
            parsed = date_parser.isoparse(text)
        except ValueError:
            # Non-ISO renderings such as "2024-01-01 10:00:00 UTC"
            parsed = date_parser.parse(text)
    else:
        raise ValueError(f"Invalid timestamp: {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC_TZ).replace(tzinfo=None)
    return parsed


def to_key_timestamp(value: Any) -> Optional[str]:
    """
    Normalize a timestamp for natural-key comparison.

    Unparseable values fall back to their string form so a malformed
    reference simply fails to match instead of raising.
    """
    if value is None or value == '':
        return None
    try:
        parsed = parse_datetime(value)
    except (ValueError, TypeError, OverflowError):
        return str(value)
    return parsed.strftime(KEY_TIMESTAMP_FORMAT)


def to_iso8601(value: Optional[datetime]) -> Optional[str]:
    """Render a stored naive UTC datetime as an ISO-8601 string."""
    if value is None:
        return None
    return value.strftime(KEY_TIMESTAMP_FORMAT)
