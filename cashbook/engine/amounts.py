"""
Monetary Amount Handling

All money in the system is a Decimal. Inputs arrive from form fields,
JSON files and tests as strings, ints, floats or nothing at all, and
they are all funnelled through coerce_amount() before any arithmetic.

DESIGN DECISION: Coercion is permissive by default. An empty or
non-numeric field counts as zero, the same way an empty number field
behaves on the data-entry form. Strict mode raises instead, for callers
that would rather stop the user than guess.
"""

from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
    getcontext,
    localcontext,
)
from typing import Any, Optional


ZERO = Decimal("0")
CENT = Decimal("0.01")


class InvalidNumericInputError(ValueError):
    """A value could not be read as a finite decimal amount."""

    def __init__(self, value: Any, field: Optional[str] = None):
        self.value = value
        self.field = field
        target = f" for {field}" if field else ""
        super().__init__(f"Not a valid amount{target}: {value!r}")


def _to_decimal(value: Any) -> Optional[Decimal]:
    """Best-effort conversion; None means the value is not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        # str() keeps the shortest repr, so 0.1 stays 0.1
        return Decimal(str(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return Decimal(text)
        except InvalidOperation:
            return None
    return None


def coerce_amount(
    value: Any,
    strict: bool = False,
    field: Optional[str] = None,
) -> Decimal:
    """
    Convert a raw input into a finite Decimal.

    Args:
        value: Anything a form or file might hand us
        strict: Raise instead of falling back to zero
        field: Field name, used in the error message

    Returns:
        The amount, or Decimal("0") for missing/non-numeric input

    Raises:
        InvalidNumericInputError: In strict mode, for anything that is
            not a finite number (empty input included)
    """
    amount = _to_decimal(value)

    if amount is None or not amount.is_finite():
        if strict:
            raise InvalidNumericInputError(value, field)
        return ZERO

    return amount


def exact_context(*values: Decimal) -> Context:
    """
    A copy of the current context wide enough that adding the given
    values together, or rounding any of them to cents, loses nothing.

    The default 28 digits run out around 1e26, where quantize() starts
    raising InvalidOperation instead of rounding.
    """
    context = getcontext().copy()
    finite = [v for v in values if v.is_finite() and v]
    if not finite:
        return context

    top = max(v.adjusted() for v in finite)
    bottom = min(min(v.as_tuple().exponent for v in finite), CENT.as_tuple().exponent)
    # +3 leaves room for carries out of the sums
    context.prec = min(MAX_PREC, max(context.prec, top - bottom + 3))
    context.Emax = min(MAX_EMAX, max(context.Emax, top + 3))
    context.Emin = max(MIN_EMIN, min(context.Emin, bottom - 1))
    return context


def round_to_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places, at any magnitude."""
    with localcontext(exact_context(value)):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
