"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- A count date is present
- Something was actually entered

STAGE 2 - SEMANTIC VALIDATION:
- Negative amounts
- Count dates in the future
- Absurdly large amounts
- Days closed at a loss
- Unbalanced counts

IMPORTANT: Validation NEVER silently fixes issues, and stage 2 never
blocks a save. A register that does not balance is exactly what the
user needs to record; we just make sure they see it.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

from cashbook.config import AppSettings, get_settings
from cashbook.engine import ZERO, BalanceStatus, round_to_cents
from cashbook.models.record import (
    BASE_FIELD_NAMES,
    BaseFields,
    ValidationIssue,
    ValidationResult,
)


FIELD_LABELS = {
    "opening_cash": "Opening cash",
    "income": "Income",
    "expenses": "Expenses",
    "cash_on_hand": "Cash on hand",
    "bank_balance": "Bank balance",
}


class RecordValidator:
    """
    Validates a day's entries before they are saved.

    Stage 1: Schema validation (blocking)
    Stage 2: Semantic validation (warnings only)
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        fields: BaseFields,
        date: Optional[datetime],
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if date is None:
            issues.append(ValidationIssue(
                field="date",
                issue_type="missing",
                message="A date is required for every count",
                severity="error",
                suggested_fix="Pick the day this count belongs to",
            ))

        if all(getattr(fields, name) == ZERO for name in BASE_FIELD_NAMES):
            issues.append(ValidationIssue(
                field="amounts",
                issue_type="empty",
                message="All amounts are zero",
                severity="warning",
                suggested_fix="Check that the figures were entered",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        fields: BaseFields,
        date: datetime,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []
        today = datetime.now(timezone.utc).date()

        for name in BASE_FIELD_NAMES:
            amount = getattr(fields, name)
            if amount < ZERO:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="negative",
                    message=f"{FIELD_LABELS[name]} is negative ({amount:,.2f})",
                    severity="warning",
                    suggested_fix="Enter amounts as positive numbers",
                ))

        # Absurd amount check
        max_amount = Decimal(str(self._settings.max_amount_warning))
        for name in BASE_FIELD_NAMES:
            amount = getattr(fields, name)
            if abs(amount) > max_amount:
                issues.append(ValidationIssue(
                    field=name,
                    issue_type="suspicious_value",
                    message=f"{FIELD_LABELS[name]} ({amount:,.2f}) seems unusually high",
                    severity="warning",
                    suggested_fix="Please verify this amount is correct",
                ))

        count_day = date.astimezone(timezone.utc).date() if date.tzinfo else date.date()
        max_future = today + timedelta(days=self._settings.future_date_tolerance_days)
        if count_day > max_future:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Count date ({count_day}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        profit = fields.profit
        if profit < ZERO:
            issues.append(ValidationIssue(
                field="profit",
                issue_type="loss",
                message=f"Expenses exceed opening cash plus income by {profit.copy_negate():,.2f}",
                severity="info",
            ))

        status = fields.status
        if status is not BalanceStatus.BALANCED:
            gap = round_to_cents(fields.discrepancy).copy_abs()
            if status is BalanceStatus.SURPLUS:
                message = f"Counted funds are {gap:,.2f} short of the expected profit"
            else:
                message = f"Counted funds exceed the expected profit by {gap:,.2f}"
            issues.append(ValidationIssue(
                field="discrepancy",
                issue_type="unbalanced",
                message=message,
                severity="info",
                suggested_fix="Recount the cash and check the bank balance",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(
        self,
        fields: BaseFields,
        date: Optional[datetime],
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            fields: Normalized base fields
            date: Date of the count

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        # Stage 1: Schema validation
        schema_valid, schema_issues = self._validate_schema(fields, date)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(fields, date)
            all_issues.extend(semantic_issues)

        warnings = [
            issue.message for issue in all_issues if issue.severity == "warning"
        ]

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed."

        lines = []

        if not result.schema_valid:
            lines.append("❌ This count cannot be saved yet:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
