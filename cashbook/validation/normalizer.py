"""
Input Normalization

Turns whatever the data-entry form hands over into BaseFields.

Form values arrive keyed by python name, by storage key or by the
legacy keys of the first release; missing keys count as zero. Each
value goes through coerce_amount(), permissive unless strict mode is
on (CASHBOOK_STRICT_NUMERIC_INPUT).
"""

from typing import Any, Mapping, Optional

from cashbook.config import get_settings
from cashbook.engine import coerce_amount
from cashbook.models.record import (
    BASE_FIELD_NAMES,
    LEGACY_KEYS,
    STORAGE_KEYS,
    BaseFields,
)


def _lookup(raw: Mapping[str, Any], name: str) -> Any:
    for key in (name, STORAGE_KEYS[name], LEGACY_KEYS[name]):
        if key in raw:
            return raw[key]
    return None


def normalize_base_fields(
    raw: Mapping[str, Any],
    strict: Optional[bool] = None,
) -> BaseFields:
    """
    Build BaseFields from a loosely-typed mapping.

    Args:
        raw: Form or file values for the five base fields
        strict: Override the configured strict_numeric_input setting

    Raises:
        InvalidNumericInputError: In strict mode, for the first field
            that is missing or not a finite number
    """
    if strict is None:
        strict = get_settings().app.strict_numeric_input

    values = {
        name: coerce_amount(_lookup(raw, name), strict=strict, field=name)
        for name in BASE_FIELD_NAMES
    }
    return BaseFields(**values)
