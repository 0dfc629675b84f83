"""
User Data Importer - Record Attribute Helpers
Turns untyped archive records into ORM constructor arguments.
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Iterable, Mapping, Optional, Type

from sqlalchemy import inspect
from sqlalchemy.types import Boolean, DateTime, Float, Integer, JSON, String

from models.base import Base
from utils.timezone import parse_datetime

# Fields exports carry for bookkeeping only; never copied onto new rows
BOOKKEEPING_FIELDS = frozenset({'id', 'user_id', 'created_at', 'updated_at'})

WKT_POINT = re.compile(r"^\s*POINT\s*\(\s*(\S+)\s+(\S+)\s*\)\s*$", re.IGNORECASE)


def is_blank(value: Any) -> bool:
    """True for None, empty/whitespace strings and empty collections."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple, set)):
        return len(value) == 0
    return False


def missing_fields(record: Mapping[str, Any], required: Iterable[str]) -> list:
    """Names of required fields that are blank in the record."""
    return [name for name in required if is_blank(record.get(name))]


def to_float(value: Any) -> float:
    """
    Coerce a coordinate or measurement to float.

    Raises:
        ValueError: For booleans and non-numeric strings
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid number: {value!r}")
    return float(value)


def lonlat_wkt(longitude: Any, latitude: Any) -> str:
    """Build the WKT position string stored on points and places."""
    return f"POINT({to_float(longitude)} {to_float(latitude)})"


def normalize_wkt_point(value: str) -> str:
    """
    Re-emit an archived ``POINT(lon lat)`` string in the lonlat_wkt form, so
    ``POINT(13 52)`` and ``POINT(13.0 52.0)`` store the same position.

    Raises:
        ValueError: If the string is not a two-coordinate WKT point
    """
    match = WKT_POINT.match(value)
    if match is None:
        raise ValueError(f"Invalid WKT point: {value!r}")
    return lonlat_wkt(match.group(1), match.group(2))


def column_map(model: Type[Base]) -> Dict[str, Any]:
    """Mapped attribute name -> Column for a model."""
    return {prop.key: prop.columns[0] for prop in inspect(model).column_attrs}


def coerce_value(column, value: Any) -> Any:
    """
    Convert a decoded JSON value to the column's Python type.

    Raises:
        ValueError: If the value cannot represent the column type
    """
    if value is None:
        return None

    column_type = column.type
    if isinstance(column_type, DateTime):
        return parse_datetime(value)
    if isinstance(column_type, JSON):
        return value
    if isinstance(column_type, Boolean):
        if isinstance(value, str):
            return value.strip().lower() in ('true', '1', 'yes', 'on')
        return bool(value)
    if isinstance(column_type, Integer):
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str) and not value.strip():
            return None
        return int(float(value)) if isinstance(value, str) else int(value)
    if isinstance(column_type, Float):
        if isinstance(value, str) and not value.strip():
            return None
        return to_float(value)
    if isinstance(column_type, String):
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value if isinstance(value, str) else str(value)
    return value


def build_attributes(
    model: Type[Base],
    record: Mapping[str, Any],
    exclude: Iterable[str] = BOOKKEEPING_FIELDS,
    renames: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Keep the record fields the model knows, typed for their columns.

    Unknown fields (reference payloads, attributes from newer exporters)
    are dropped silently.

    Args:
        model: Target ORM class
        record: Raw archive record
        exclude: Field names never copied
        renames: Archive field name -> attribute name

    Returns:
        Constructor keyword arguments

    Raises:
        ValueError: If a value cannot be coerced to its column type
    """
    columns = column_map(model)
    excluded = set(exclude)
    renames = renames or {}
    attributes = {}

    for field_name, value in record.items():
        if field_name in excluded:
            continue
        attr = renames.get(field_name, field_name)
        column = columns.get(attr)
        if column is None or column.primary_key:
            continue
        try:
            coerced = coerce_value(column, value)
        except (TypeError, OverflowError) as e:
            raise ValueError(f"Invalid value for {field_name}: {value!r}") from e
        # NULL into a NOT NULL column: let the column default apply instead
        if coerced is None and not column.nullable:
            continue
        attributes[attr] = coerced

    return attributes


def timestamp_to_epoch(value: Any) -> int:
    """
    Coerce a point timestamp to epoch seconds.

    Accepts epoch numbers, numeric strings and ISO-8601 strings.

    Raises:
        ValueError: If the value is not a timestamp
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(float(text))
        except ValueError:
            parsed = parse_datetime(text)
            return int((parsed - datetime(1970, 1, 1)).total_seconds())
    raise ValueError(f"Invalid timestamp: {value!r}")
