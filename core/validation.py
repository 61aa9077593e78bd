"""Primitive input checks applied to every caller-supplied value.

Every check either returns the accepted value or raises `InvalidParamsError`
naming the offending field. Nothing here touches the automation target.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, List

from config import DEFAULT_LIMITS
from core.errors import InvalidParamsError

_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")

# Script-control constructs that must never appear in user text.
DANGEROUS_PATTERNS = (
    re.compile(r"tell\s+application", re.IGNORECASE),
    re.compile(r"end\s+tell", re.IGNORECASE),
    re.compile(r"set\s+\w+\s+to", re.IGNORECASE),
    re.compile(r"do\s*shell\s*script", re.IGNORECASE),
    re.compile(r"osascript", re.IGNORECASE),
    re.compile(r"Application\s*\(\s*['\"]", re.IGNORECASE),
)


def contains_dangerous_pattern(text: str) -> bool:
    return any(pattern.search(text) for pattern in DANGEROUS_PATTERNS)


def validate_string(value: Any, field_name: str, max_length: int = DEFAULT_LIMITS.max_string_length) -> str:
    if not isinstance(value, str):
        raise InvalidParamsError(f"{field_name} must be a string", field_name)
    if not value.strip():
        raise InvalidParamsError(f"{field_name} cannot be empty", field_name)
    if len(value) > max_length:
        raise InvalidParamsError(f"{field_name} cannot exceed {max_length} characters", field_name)
    if contains_dangerous_pattern(value):
        raise InvalidParamsError(f"{field_name} contains potentially dangerous script patterns", field_name)
    return value.strip()


def validate_array(
    value: Any,
    field_name: str,
    max_items: int = DEFAULT_LIMITS.max_array_length,
    *,
    item_max_length: int = DEFAULT_LIMITS.max_item_length,
) -> List[str]:
    """Validate a list of short strings (tags, checklist lines, to-do titles).

    The per-item cap is independent of the caller's string limit.
    """
    if not isinstance(value, list):
        raise InvalidParamsError(f"{field_name} must be an array", field_name)
    if len(value) > max_items:
        raise InvalidParamsError(f"{field_name} cannot exceed {max_items} items", field_name)
    return [validate_string(item, f"{field_name} item", item_max_length) for item in value]


def validate_date(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise InvalidParamsError(f"{field_name} must be a string in YYYY-MM-DD format", field_name)
    if not _DATE_PATTERN.fullmatch(value):
        raise InvalidParamsError(f"{field_name} must be in YYYY-MM-DD format", field_name)
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise InvalidParamsError(f"{field_name} is not a valid date", field_name) from None
    return value


def validate_integer(value: Any, field_name: str, minimum: int = 1, maximum: int = 1000) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParamsError(f"{field_name} must be an integer", field_name)
    if value < minimum or value > maximum:
        raise InvalidParamsError(f"{field_name} must be between {minimum} and {maximum}", field_name)
    return value


def validate_enum(value: Any, allowed_values: Iterable[str], field_name: str) -> str:
    allowed = list(allowed_values)
    if not isinstance(value, str) or value not in allowed:
        raise InvalidParamsError(
            f"Invalid {field_name}: {value}. Must be one of: {', '.join(allowed)}",
            field_name,
        )
    return value


__all__ = [
    "DANGEROUS_PATTERNS",
    "contains_dangerous_pattern",
    "validate_string",
    "validate_array",
    "validate_date",
    "validate_integer",
    "validate_enum",
]
