"""
camelCase response serialization.
Keys go through Pydantic's alias generator so responses use the same names as the request schema aliases.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel


def to_camel_key(s: str) -> str:
    """Convert a single snake_case key to camelCase (first letter lower)."""
    return to_camel(s)


def json_value(value: Any) -> Any:
    """Enums by value, dates as ISO strings, Decimals as strings (no float rounding)."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def dict_keys_to_camel(obj: Any) -> Any:
    """Recursively convert dict keys from snake_case to camelCase and leaf values to JSON types."""
    if isinstance(obj, dict):
        return {to_camel_key(k): dict_keys_to_camel(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [dict_keys_to_camel(x) for x in obj]
    return json_value(obj)
