"""Map caller arguments onto the Things field set (see `core.naming`)."""

from __future__ import annotations

from typing import Any, Dict, Optional

from config import DEFAULT_LIMITS, ServerLimits
from core.errors import InvalidParamsError
from core.naming import (
    KIND_ARRAY,
    KIND_DATE,
    KIND_FLAG,
    KIND_NOTES,
    NAMING_CONTRACT,
    FieldMapping,
)
from core.validation import validate_array, validate_date, validate_string


def _convert(mapping: FieldMapping, source: str, value: Any, limits: ServerLimits) -> Any:
    if mapping.kind == KIND_FLAG:
        return bool(value)
    if mapping.kind == KIND_DATE:
        return validate_date(value, source)
    if mapping.kind == KIND_ARRAY:
        return validate_array(value, source, limits.max_array_length, item_max_length=limits.max_item_length)
    if mapping.kind == KIND_NOTES:
        return validate_string(value, source, limits.max_notes_length)
    return validate_string(value, source, limits.max_string_length)


def map_parameters(
    raw_args: Any,
    extra_fields: Optional[Dict[str, Any]] = None,
    *,
    limits: ServerLimits = DEFAULT_LIMITS,
) -> Dict[str, Any]:
    """Validate `raw_args` and return only the recognised, present fields.

    A source counts as present when its key is set to anything but None;
    flags are emitted whenever the caller sent the key, null included.
    `extra_fields` are merged last, unvalidated.
    """
    if raw_args is None:
        raw_args = {}
    if not isinstance(raw_args, dict):
        raise InvalidParamsError("arguments must be an object", "arguments")

    mapped: Dict[str, Any] = {}
    for mapping in NAMING_CONTRACT:
        for source in mapping.sources:
            value = raw_args.get(source)
            if value is None and not (mapping.kind == KIND_FLAG and source in raw_args):
                continue
            mapped[mapping.internal_name] = _convert(mapping, source, value, limits)
            break

    for key, value in (extra_fields or {}).items():
        mapped[key] = value
    return {k: v for k, v in mapped.items() if v is not None}


__all__ = ["map_parameters"]
