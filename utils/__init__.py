"""Shared utilities for the backend."""
from utils.case import (
    dict_keys_to_camel,
    dict_keys_to_snake,
    isoformat,
    money_to_response,
    to_camel_key,
    to_response,
    to_snake_key,
)
from utils.log import configure_logging

__all__ = [
    "to_camel_key",
    "to_snake_key",
    "dict_keys_to_camel",
    "dict_keys_to_snake",
    "isoformat",
    "money_to_response",
    "to_response",
    "configure_logging",
]
