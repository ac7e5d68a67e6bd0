"""Reconciliation engine package."""

from cashbook.engine.amounts import (
    CENT,
    ZERO,
    InvalidNumericInputError,
    coerce_amount,
    exact_context,
    round_to_cents,
)
from cashbook.engine.reconciliation import (
    BalanceStatus,
    ReconciliationResult,
    classify,
    compute,
    compute_fields,
    is_balanced,
)

__all__ = [
    "CENT",
    "ZERO",
    "BalanceStatus",
    "InvalidNumericInputError",
    "ReconciliationResult",
    "classify",
    "coerce_amount",
    "compute",
    "compute_fields",
    "exact_context",
    "is_balanced",
    "round_to_cents",
]
