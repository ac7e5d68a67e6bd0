"""Tests for the reconciliation engine and amount coercion."""

from decimal import Decimal

import pytest

from cashbook.engine import (
    BalanceStatus,
    InvalidNumericInputError,
    classify,
    coerce_amount,
    compute,
    is_balanced,
    round_to_cents,
)


class TestCompute:
    """Tests for compute()."""

    def test_balanced_day(self):
        """Opening 100, income 500, expenses 200 against 350 cash + 50 bank."""
        result = compute(100, 500, 200, 350, 50)
        assert result.profit == Decimal("400")
        assert result.discrepancy == Decimal("0")
        assert result.is_balanced is True
        assert result.status == BalanceStatus.BALANCED

    def test_money_missing_from_count(self):
        """Only 300 cash counted: profit exceeds counted funds by 50."""
        profit, discrepancy = compute(100, 500, 200, 300, 50)
        assert profit == Decimal("400")
        assert discrepancy == Decimal("50")
        assert is_balanced(discrepancy) is False
        assert classify(discrepancy) == BalanceStatus.SURPLUS

    def test_more_counted_than_expected(self):
        """Counting more than the day produced gives a negative discrepancy."""
        result = compute(100, 500, 200, 420, 50)
        assert result.discrepancy == Decimal("-70")
        assert result.status == BalanceStatus.SHORTFALL

    def test_additions_are_order_independent(self):
        """Swapping the addends gives exactly the same result."""
        a = compute(Decimal("0.1"), Decimal("0.2"), 0, Decimal("0.3"), Decimal("0.7"))
        b = compute(Decimal("0.2"), Decimal("0.1"), 0, Decimal("0.7"), Decimal("0.3"))
        assert a == b

    def test_float_inputs_do_not_leave_residue(self):
        """0.1 + 0.2 against 0.3 counted balances exactly."""
        result = compute(0.1, 0.2, 0, 0.3, 0)
        assert result.profit == Decimal("0.3")
        assert result.discrepancy == Decimal("0")

    def test_missing_and_junk_inputs_count_as_zero(self):
        """Empty form fields behave like zeros."""
        result = compute(None, "", "abc", float("nan"), "500")
        assert result.profit == Decimal("0")
        assert result.discrepancy == Decimal("-500")

    def test_defaults_are_zero(self):
        """Calling with nothing is a balanced empty day."""
        assert compute() == (Decimal("0"), Decimal("0"))

    def test_repeatable(self):
        """Same inputs, same outputs, every time."""
        results = {compute("12.34", "56.78", "9.10", "11.12", "13.14") for _ in range(50)}
        assert len(results) == 1


class TestIsBalanced:
    """Tests for the cents-tolerant balance check."""

    @pytest.mark.parametrize("value", [
        Decimal("0"),
        Decimal("0.004"),
        Decimal("-0.004"),
        0.1 + 0.2 - 0.3,
        "0.00",
    ])
    def test_rounds_to_zero(self, value):
        assert is_balanced(value) is True

    @pytest.mark.parametrize("value", [
        Decimal("0.005"),
        Decimal("-0.005"),
        Decimal("0.01"),
        Decimal("50"),
    ])
    def test_does_not_round_to_zero(self, value):
        assert is_balanced(value) is False

    def test_round_to_cents_half_up(self):
        assert round_to_cents(Decimal("2.345")) == Decimal("2.35")
        assert round_to_cents(Decimal("-2.345")) == Decimal("-2.35")


class TestLargeAmounts:
    """Tests for figures wider than the default 28-digit context."""

    def test_huge_discrepancy_is_not_balanced(self):
        result = compute(opening_cash="1e27")
        assert result.discrepancy == Decimal("1e27")
        assert is_balanced(result.discrepancy) is False
        assert classify(result.discrepancy) == BalanceStatus.SURPLUS

    def test_huge_shortfall(self):
        assert classify(Decimal("-1e30")) == BalanceStatus.SHORTFALL

    def test_sums_are_exact(self):
        """Test that cents are not rounded away next to a huge amount."""
        result = compute(opening_cash="1e27", income="0.01")
        assert result.profit == Decimal("1000000000000000000000000000.01")

    def test_huge_balanced_day(self):
        result = compute(opening_cash="1e27", income="0.01",
                         cash_on_hand="1e27", bank_balance="0.01")
        assert result.discrepancy == Decimal("0")
        assert result.is_balanced is True

    def test_round_to_cents(self):
        value = Decimal("123456789012345678901234567.895")
        assert round_to_cents(value) == Decimal("123456789012345678901234567.90")


class TestCoerceAmount:
    """Tests for permissive and strict coercion."""

    @pytest.mark.parametrize("raw,expected", [
        (Decimal("12.50"), Decimal("12.50")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        ("  42.5 ", Decimal("42.5")),
        ("1e3", Decimal("1000")),
        ("-3", Decimal("-3")),
    ])
    def test_numeric_values(self, raw, expected):
        assert coerce_amount(raw) == expected

    @pytest.mark.parametrize("raw", [
        None, "", "   ", "abc", "1,000.00", "$5",
        float("nan"), float("inf"), "Infinity", "NaN",
        True, [], {},
    ])
    def test_non_numeric_becomes_zero(self, raw):
        assert coerce_amount(raw) == Decimal("0")

    @pytest.mark.parametrize("raw", [None, "", "abc", float("inf"), False])
    def test_strict_mode_raises(self, raw):
        with pytest.raises(InvalidNumericInputError):
            coerce_amount(raw, strict=True)

    def test_strict_error_names_field(self):
        with pytest.raises(InvalidNumericInputError, match="income") as exc_info:
            coerce_amount("lots", strict=True, field="income")
        assert exc_info.value.value == "lots"
        assert exc_info.value.field == "income"

    def test_error_is_a_value_error(self):
        assert issubclass(InvalidNumericInputError, ValueError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
