"""Shared utilities for the backend."""
from utils.case import dict_keys_to_camel, json_value, to_camel_key

__all__ = [
    "to_camel_key",
    "json_value",
    "dict_keys_to_camel",
]
