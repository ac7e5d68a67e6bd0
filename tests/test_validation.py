"""Tests for settings, input normalization and the two-stage validator."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from pydantic import ValidationError

from cashbook.config import AppSettings, StorageSettings, get_settings, validate_all_settings
from cashbook.models.record import BaseFields
from cashbook.validation import (
    InvalidNumericInputError,
    RecordValidator,
    normalize_base_fields,
)

from conftest import DAY, make_fields


class TestSettings:
    """Tests for pydantic-settings configuration."""

    def test_storage_defaults(self, tmp_path):
        """Test slot and audit paths under the configured data dir."""
        settings = StorageSettings()
        assert settings.backend == "json"
        assert settings.slot_path == Path(tmp_path / "data" / "daily_cash_records.json")
        assert settings.audit_log_path == Path(tmp_path / "data" / "audit_log.jsonl")

    def test_env_override(self, monkeypatch):
        """Test that CASHBOOK_STORAGE_* variables are read."""
        monkeypatch.setenv("CASHBOOK_STORAGE_SLOT_NAME", "shop_two")
        monkeypatch.setenv("CASHBOOK_STORAGE_BACKEND", "memory")
        settings = StorageSettings()
        assert settings.slot_name == "shop_two"
        assert settings.slot_path.name == "shop_two.json"
        assert settings.backend == "memory"

    @pytest.mark.parametrize("name", ["a/b", "..", "c\\d"])
    def test_slot_name_cannot_be_a_path(self, name):
        """Test that slot names are plain file names."""
        with pytest.raises(ValidationError):
            StorageSettings(slot_name=name)

    def test_app_defaults(self):
        """Test application defaults."""
        settings = AppSettings()
        assert settings.strict_numeric_input is False
        assert settings.future_date_tolerance_days == 1

    def test_get_settings_is_cached(self):
        """Test that get_settings() returns the same object."""
        assert get_settings() is get_settings()

    def test_validate_all_settings(self, monkeypatch):
        """Test the startup check reports bad configuration."""
        assert validate_all_settings() == {"storage": True, "app": True}

        monkeypatch.setenv("CASHBOOK_STORAGE_BACKEND", "sqlite")
        status = validate_all_settings()
        assert status["storage"] is False
        assert "storage_error" in status
        assert status["app"] is True


class TestNormalizer:
    """Tests for normalize_base_fields()."""

    def test_permissive(self):
        """Test that missing and junk values become zero."""
        fields = normalize_base_fields(
            {"opening_cash": "100", "income": "", "expenses": None, "cash_on_hand": "abc"},
            strict=False,
        )
        assert fields == BaseFields(opening_cash=Decimal("100"))

    def test_accepts_any_key_style(self):
        """Test python, storage and legacy keys."""
        fields = normalize_base_fields(
            {"openingCash": 100, "ingresos": 500, "expenses": 200.0, "efectivo": "350", "banco": 50},
            strict=False,
        )
        assert fields == make_fields()

    def test_strict_raises(self):
        """Test strict mode rejects the first bad field."""
        with pytest.raises(InvalidNumericInputError) as exc_info:
            normalize_base_fields(
                {"opening_cash": 1, "income": "ten", "expenses": 1, "cash_on_hand": 1, "bank_balance": 1},
                strict=True,
            )
        assert exc_info.value.field == "income"

    def test_strict_rejects_missing_field(self):
        """Test that strict mode treats a missing amount as invalid."""
        with pytest.raises(InvalidNumericInputError):
            normalize_base_fields({"opening_cash": 1}, strict=True)

    def test_strict_from_settings(self, monkeypatch):
        """Test that strict defaults to CASHBOOK_STRICT_NUMERIC_INPUT."""
        monkeypatch.setenv("CASHBOOK_STRICT_NUMERIC_INPUT", "true")
        with pytest.raises(InvalidNumericInputError):
            normalize_base_fields({"opening_cash": "x"})

    def test_float_inputs_keep_their_decimal_value(self):
        """Test that 0.1 is read as 0.1, not its binary expansion."""
        fields = normalize_base_fields({"income": 0.1}, strict=False)
        assert fields.income == Decimal("0.1")


class TestRecordValidator:
    """Tests for RecordValidator."""

    @pytest.fixture
    def validator(self):
        return RecordValidator(AppSettings(max_amount_warning=10000, future_date_tolerance_days=1))

    def test_clean_day(self, validator):
        """Test a balanced day with plausible figures."""
        result = validator.validate(make_fields(), DAY)
        assert result.is_valid is True
        assert result.issues == []
        assert validator.get_user_friendly_summary(result) == "✅ All checks passed."

    def test_missing_date_blocks(self, validator):
        """Test that a count without a date cannot be saved."""
        result = validator.validate(make_fields(), None)
        assert result.schema_valid is False
        assert result.is_valid is False
        assert result.has_errors is True
        summary = validator.get_user_friendly_summary(result)
        assert "❌" in summary
        assert "date is required" in summary

    def test_all_zero_warns(self, validator):
        """Test that an empty form is flagged but allowed."""
        result = validator.validate(BaseFields(), DAY)
        assert result.schema_valid is True
        assert result.warnings == ["All amounts are zero"]

    def test_negative_amount_warns(self, validator):
        """Test that negative amounts are flagged."""
        result = validator.validate(make_fields(expenses="-5"), DAY)
        assert result.is_valid is True
        assert any("Expenses is negative" in w for w in result.warnings)

    def test_large_amount_warns(self, validator):
        """Test that amounts above the threshold are flagged."""
        result = validator.validate(make_fields(income="50000", cash_on_hand="49850"), DAY)
        assert any(issue.issue_type == "suspicious_value" for issue in result.issues)

    def test_future_date_warns(self, validator):
        """Test that a date beyond the tolerance is flagged."""
        future = datetime.now(timezone.utc) + timedelta(days=10)
        result = validator.validate(make_fields(), future)
        assert any(issue.issue_type == "future_date" for issue in result.issues)

    def test_tomorrow_is_tolerated(self, validator):
        """Test that a one-day lead is within tolerance."""
        tomorrow = datetime.now(timezone.utc) + timedelta(days=1)
        result = validator.validate(make_fields(), tomorrow)
        assert not any(issue.issue_type == "future_date" for issue in result.issues)

    def test_unbalanced_is_info_only(self, validator):
        """Test that a discrepancy never blocks a save."""
        result = validator.validate(make_fields(cash_on_hand="300"), DAY)
        assert result.is_valid is True
        assert result.warnings == []
        unbalanced = [i for i in result.issues if i.issue_type == "unbalanced"]
        assert len(unbalanced) == 1
        assert unbalanced[0].severity == "info"
        assert "50.00 short" in unbalanced[0].message

    def test_huge_discrepancy(self, validator):
        """Test that figures past 28 digits are still checked."""
        result = validator.validate(make_fields(cash_on_hand="-1e27"), DAY)
        unbalanced = [i for i in result.issues if i.issue_type == "unbalanced"]
        assert len(unbalanced) == 1
        assert "short" in unbalanced[0].message

    def test_loss_is_info_only(self, validator):
        """Test that a day closed at a loss is noted."""
        result = validator.validate(
            make_fields(opening_cash="0", income="100", expenses="300", cash_on_hand="0", bank_balance="-200"),
            DAY,
        )
        issue_types = {issue.issue_type for issue in result.issues}
        assert "loss" in issue_types
        assert "unbalanced" not in issue_types


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
