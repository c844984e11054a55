"""
Case conversion and value rendering for API responses.
Uses Pydantic's alias_generators for consistency with schema validation.
"""
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic.alias_generators import to_camel, to_snake

from services.money import Money


def to_camel_key(s: str) -> str:
    """snake_case -> camelCase (first letter lower)."""
    return to_camel(s)


def to_snake_key(s: str) -> str:
    return to_snake(s)


def dict_keys_to_camel(obj: Any) -> Any:
    """Recursively convert dict keys from snake_case to camelCase for API responses."""
    if isinstance(obj, dict):
        return {to_camel_key(k): dict_keys_to_camel(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_camel(x) for x in obj]
    return obj


def dict_keys_to_snake(obj: Any) -> Any:
    """Recursively convert dict keys from camelCase to snake_case for API input normalization."""
    if isinstance(obj, dict):
        return {to_snake_key(k): dict_keys_to_snake(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [dict_keys_to_snake(x) for x in obj]
    return obj


def money_to_response(m: Optional[Money]) -> Optional[dict[str, Any]]:
    """Minor units stay authoritative; ``display`` is the only major-unit rendering."""
    if m is None:
        return None
    return {"amount": m.amount, "currency": m.currency, "display": m.to_display_string()}


def isoformat(value: Optional[Any]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def to_response(obj: Any) -> Any:
    """Render a snake_case structure of domain values (Money, enums, dates) as camelCase JSON."""
    if isinstance(obj, Money):
        return money_to_response(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, dict):
        return {to_camel_key(k): to_response(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_response(x) for x in obj]
    return obj
