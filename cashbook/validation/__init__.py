"""Validation and input normalization package."""

from cashbook.engine import InvalidNumericInputError, coerce_amount
from cashbook.validation.normalizer import normalize_base_fields
from cashbook.validation.validator import RecordValidator

__all__ = [
    "InvalidNumericInputError",
    "RecordValidator",
    "coerce_amount",
    "normalize_base_fields",
]
