"""Value type inference.

Maps a single parsed value to the most specific field type. String values are
tested against an ordered list of patterns; the first match wins and is never
revisited.
"""

import re
from datetime import date, datetime, time, timezone
from typing import Any

from site_schema_mcp.inference.fields import Field, FieldType

COLOR_PATTERN = re.compile(r"^#(?:[A-Fa-f0-9]{3}){1,2}$")
HTML_PATTERN = re.compile(r"<[a-zA-Z]+\s*/>|</?[a-zA-Z]+>")
MARKDOWN_PATTERN = re.compile(
    r"^#+\s|^>\s|^-\s|^\*\s|^\+\s|\*\*[\s\S]+\*\*|__[\s\S]+__|```", re.MULTILINE
)
IMAGE_PATTERN = re.compile(r"\.(?:svg|png|jpg|jpeg)$")
DATE_PATTERN = re.compile(r"^([12]\d{3}-(0?[1-9]|1[0-2])-(0?[1-9]|[12]\d|3[01]))")
# ISO-8601 reduced precision: year, or year and month
REDUCED_DATE_PATTERN = re.compile(r"^[12]\d{3}(?:-(?:0[1-9]|1[0-2]))?$")


def infer_scalar_type(value: str) -> FieldType:
    """Infer the field type of a string value.

    Args:
        value: String value from a parsed document.

    Returns:
        One of color, markdown, text, image, date, datetime or string.
    """
    if COLOR_PATTERN.match(value):
        return "color"
    if HTML_PATTERN.search(value) or MARKDOWN_PATTERN.search(value):
        return "markdown"
    if "\n" in value.strip():
        return "text"
    if IMAGE_PATTERN.search(value):
        return "image"
    date_type = _infer_date_type(value)
    if date_type:
        return date_type
    return "string"


def _infer_date_type(value: str) -> FieldType | None:
    """Classify ISO-8601 and YYYY-MM-DD prefixed strings as date or datetime."""
    if REDUCED_DATE_PATTERN.match(value):
        return "date"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        match = DATE_PATTERN.match(value)
        if not match:
            return None
        # A bare date with unpadded parts is still a calendar date
        return "date" if match.group(0) == value else "datetime"
    return _datetime_type(parsed)


def _datetime_type(value: datetime) -> FieldType:
    # Naive timestamps are taken as UTC
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return "date" if value.time() == time(0, 0) else "datetime"


def infer_value_field(value: Any) -> Field | None:
    """Infer an anonymous field definition for a scalar value.

    YAML loaders decode unquoted timestamps into date and datetime objects, so
    those are classified here as well.

    Args:
        value: Scalar value from a parsed document.

    Returns:
        Field without name, or None when no type can be inferred (e.g. null).
    """
    if isinstance(value, str):
        return Field(type=infer_scalar_type(value))
    # bool before number, bool is an int subclass
    if isinstance(value, bool):
        return Field(type="boolean")
    if isinstance(value, int):
        return Field(type="number", subtype="int")
    if isinstance(value, float):
        return Field(type="number", subtype="int" if value.is_integer() else "float")
    if isinstance(value, datetime):
        return Field(type=_datetime_type(value))
    if isinstance(value, date):
        return Field(type="date")
    # TOML local times have no field type of their own
    if isinstance(value, time):
        return Field(type="string")
    return None
