# strategy_hub/strategy_engine/validation.py
"""
Strategy validation utilities.
Bounds shared by user input and generated drafts, plus coercion helpers for
data that did not come through a request model.
"""
import math
from enum import Enum
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ..utils.error_handler import ValidationFailedError, field_errors_from_pydantic

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 2000
MAX_TAGS = 10

E = TypeVar("E", bound=Enum)
M = TypeVar("M", bound=BaseModel)


def validate_payload(model: Type[M], payload: Any) -> M:
    """
    Validate a raw payload against a request model.

    Raises:
        ValidationFailedError: listing every invalid field, not just the first
    """
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailedError(field_errors_from_pydantic(e.errors()))


def clamp_text(value: Any, max_length: int, default: str = "") -> str:
    """Coerce to a stripped string no longer than max_length."""
    if value is None:
        return default
    text = str(value).strip()
    return (text or default)[:max_length]


def derived_name(base: str, suffix: str) -> str:
    """Name for a strategy derived from another, kept within NAME_MAX_LENGTH."""
    room = NAME_MAX_LENGTH - len(suffix)
    return f"{base[:room].rstrip()}{suffix}"


def clean_tags(tags: Any, limit: int = MAX_TAGS) -> List[str]:
    """Keep at most `limit` non-empty string tags; anything else yields []."""
    if not isinstance(tags, list):
        return []
    cleaned = [str(t).strip() for t in tags if isinstance(t, (str, int, float)) and str(t).strip()]
    return cleaned[:limit]


def has_non_finite(value: Any) -> bool:
    """True when NaN or +/-Infinity appears anywhere in a JSON-like value."""
    if isinstance(value, float):
        return not math.isfinite(value)
    if isinstance(value, dict):
        return any(has_non_finite(v) for v in value.values())
    if isinstance(value, (list, tuple)):
        return any(has_non_finite(v) for v in value)
    return False


def clean_parameters(parameters: Any) -> Dict[str, Any]:
    """A mapping that serialises to strict JSON, else {}."""
    if not isinstance(parameters, dict) or has_non_finite(parameters):
        return {}
    return parameters


def coerce_enum(enum_cls: Type[E], value: Any, default: E) -> E:
    """Return the enum member whose value equals `value`, else `default`."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return default
