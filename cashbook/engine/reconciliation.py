"""
Reconciliation Engine

Pure arithmetic for the end-of-day count:

    profit      = opening cash + income - expenses
    discrepancy = profit - (cash on hand + bank balance)

A positive discrepancy means the counted funds fall short of what the
day should have produced; a negative one means more was counted than
expected.

Nothing here touches storage or logging. compute() is cheap enough to
call on every keystroke.
"""

from decimal import Decimal, localcontext
from enum import Enum
from typing import Any, NamedTuple

from cashbook.engine.amounts import ZERO, coerce_amount, exact_context, round_to_cents


class BalanceStatus(str, Enum):
    """How the counted funds compare to the expected profit."""
    BALANCED = "balanced"
    SURPLUS = "surplus"      # profit exceeds counted funds
    SHORTFALL = "shortfall"  # counted funds exceed profit


class ReconciliationResult(NamedTuple):
    """Derived values for one set of base fields."""
    profit: Decimal
    discrepancy: Decimal

    @property
    def is_balanced(self) -> bool:
        return is_balanced(self.discrepancy)

    @property
    def status(self) -> BalanceStatus:
        return classify(self.discrepancy)


def compute(
    opening_cash: Any = ZERO,
    income: Any = ZERO,
    expenses: Any = ZERO,
    cash_on_hand: Any = ZERO,
    bank_balance: Any = ZERO,
) -> ReconciliationResult:
    """
    Compute profit and discrepancy from the five base fields.

    Inputs go through permissive coercion, so None, "" and junk all
    count as zero. Use the normalizer first if strict input is wanted.
    """
    opening_cash = coerce_amount(opening_cash)
    income = coerce_amount(income)
    expenses = coerce_amount(expenses)
    cash_on_hand = coerce_amount(cash_on_hand)
    bank_balance = coerce_amount(bank_balance)

    with localcontext(exact_context(opening_cash, income, expenses, cash_on_hand, bank_balance)):
        profit = opening_cash + income - expenses
        total_counted = cash_on_hand + bank_balance
        discrepancy = profit - total_counted

    return ReconciliationResult(profit=profit, discrepancy=discrepancy)


def compute_fields(fields: Any) -> ReconciliationResult:
    """compute() for anything exposing the five base-field attributes."""
    return compute(
        opening_cash=fields.opening_cash,
        income=fields.income,
        expenses=fields.expenses,
        cash_on_hand=fields.cash_on_hand,
        bank_balance=fields.bank_balance,
    )


def is_balanced(discrepancy: Any) -> bool:
    """
    True when the discrepancy is zero to the cent.

    Compares the rounded value rather than the raw one, so a float-born
    residue like 1e-13 does not flag a correct count as unbalanced.
    """
    return round_to_cents(coerce_amount(discrepancy)) == ZERO


def classify(discrepancy: Any) -> BalanceStatus:
    rounded = round_to_cents(coerce_amount(discrepancy))
    if rounded == ZERO:
        return BalanceStatus.BALANCED
    if rounded > ZERO:
        return BalanceStatus.SURPLUS
    return BalanceStatus.SHORTFALL
