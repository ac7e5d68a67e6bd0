"""
Core Data Models for Cashbook

These models define the schema of one day's cash reconciliation.
They are designed to:
1. Enforce type safety at runtime
2. Keep derived values impossible to set by hand
3. Be serializable for storage and logging
4. Read older files written before the schema carried a version

DESIGN DECISION: Records are frozen. profit and discrepancy are
properties computed from the five base fields, so they cannot drift
out of sync with them. Editing a record means building a new one.
"""

import datetime as dt
from decimal import Decimal, localcontext
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)

from cashbook.engine import (
    ZERO,
    BalanceStatus,
    ReconciliationResult,
    compute_fields,
    exact_context,
)


BASE_FIELD_NAMES = (
    "opening_cash",
    "income",
    "expenses",
    "cash_on_hand",
    "bank_balance",
)

# Python attribute -> key used in the storage slot
STORAGE_KEYS = {
    "opening_cash": "openingCash",
    "income": "income",
    "expenses": "expenses",
    "cash_on_hand": "cashOnHand",
    "bank_balance": "bankBalance",
}

# Keys written by the first, unversioned release of the register
LEGACY_KEYS = {
    "date": "fecha",
    "opening_cash": "cajaInicial",
    "income": "ingresos",
    "expenses": "gastos",
    "cash_on_hand": "efectivo",
    "bank_balance": "banco",
    "profit": "utilidad",
    "discrepancy": "diferencia",
}


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _amount_field(name: str, description: str) -> Any:
    return Field(
        default=ZERO,
        validation_alias=AliasChoices(name, STORAGE_KEYS[name], LEGACY_KEYS[name]),
        description=description,
    )


# =============================================================================
# BASE FIELDS - the five numbers a user types in
# =============================================================================

class BaseFields(BaseModel):
    """
    The user-entered side of a reconciliation.

    Accepts python names, storage keys (camelCase) or legacy keys,
    so the same model reads form input and old files alike.
    """
    model_config = ConfigDict(frozen=True)

    opening_cash: Decimal = _amount_field(
        "opening_cash", "Cash in the register at the start of the day"
    )
    income: Decimal = _amount_field(
        "income", "Total receipts for the day"
    )
    expenses: Decimal = _amount_field(
        "expenses", "Total disbursements for the day"
    )
    cash_on_hand: Decimal = _amount_field(
        "cash_on_hand", "Cash physically counted at the end of the day"
    )
    bank_balance: Decimal = _amount_field(
        "bank_balance", "Funds confirmed in the bank account"
    )

    @field_validator(*BASE_FIELD_NAMES)
    @classmethod
    def must_be_finite(cls, v: Decimal) -> Decimal:
        """NaN and infinities never reach the engine."""
        if not v.is_finite():
            raise ValueError("Amount must be a finite number")
        return v

    @property
    def profit(self) -> Decimal:
        return self.result.profit

    @property
    def discrepancy(self) -> Decimal:
        return self.result.discrepancy

    @property
    def result(self) -> ReconciliationResult:
        return compute_fields(self)

    @property
    def is_balanced(self) -> bool:
        return self.result.is_balanced

    @property
    def status(self) -> BalanceStatus:
        return self.result.status

    def base_fields(self) -> "BaseFields":
        """Just the five inputs, e.g. to fill an edit form."""
        return BaseFields(**{name: getattr(self, name) for name in BASE_FIELD_NAMES})


# =============================================================================
# RECONCILIATION RECORD
# =============================================================================

class ReconciliationRecord(BaseFields):
    """
    One day's cash reconciliation, as stored.

    Records are addressed by position in the store; the id is a stable
    handle that survives reordering and deletions around the record.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable record identifier",
    )
    date: dt.datetime = Field(
        ...,
        validation_alias=AliasChoices("date", LEGACY_KEYS["date"]),
        description="Logical date of the count (UTC)",
    )
    created_at: dt.datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("created_at", "createdAt"),
    )
    updated_at: dt.datetime = Field(
        default_factory=_utcnow,
        validation_alias=AliasChoices("updated_at", "updatedAt"),
    )

    @field_validator("date", "created_at", "updated_at", mode="before")
    @classmethod
    def promote_calendar_date(cls, v: Any) -> Any:
        """A bare calendar date means midnight UTC on that day."""
        if isinstance(v, dt.date) and not isinstance(v, dt.datetime):
            return dt.datetime.combine(v, dt.time.min, tzinfo=dt.timezone.utc)
        return v

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def assume_utc(cls, v: dt.datetime) -> dt.datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=dt.timezone.utc)
        return v

    @classmethod
    def create(
        cls,
        fields: BaseFields,
        date: Optional[dt.datetime] = None,
    ) -> "ReconciliationRecord":
        """Build a new record from validated base fields."""
        return cls(
            **fields.base_fields().model_dump(),
            date=date if date is not None else _utcnow(),
        )

    def with_base_fields(
        self,
        fields: BaseFields,
        date: Optional[dt.datetime] = None,
    ) -> "ReconciliationRecord":
        """
        Return this record with all five base fields replaced.

        The date is kept unless a new one is given. id and created_at
        never change; updated_at is bumped.
        """
        return ReconciliationRecord(
            **fields.base_fields().model_dump(),
            id=self.id,
            date=date if date is not None else self.date,
            created_at=self.created_at,
            updated_at=_utcnow(),
        )

    def to_storage_dict(self) -> dict:
        """
        Convert to the mapping written to the storage slot.

        Amounts become JSON numbers (decimal strings past double
        precision); timestamps are ISO-8601 strings.
        """
        data = {
            "id": str(self.id),
            "date": self.date.isoformat(),
        }
        for name in BASE_FIELD_NAMES:
            data[STORAGE_KEYS[name]] = _to_number(getattr(self, name))
        data["profit"] = _to_number(self.profit)
        data["discrepancy"] = _to_number(self.discrepancy)
        data["createdAt"] = self.created_at.isoformat()
        data["updatedAt"] = self.updated_at.isoformat()
        return data

    def to_log_dict(self) -> dict:
        """Compact form for structured logs."""
        return {
            "record_id": str(self.id),
            "date": self.date.date().isoformat(),
            "profit": str(self.profit),
            "discrepancy": str(self.discrepancy),
            "status": self.status.value,
        }


def _to_number(value: Decimal) -> Union[int, float, str]:
    """
    JSON-ready amount.

    Whole amounts become ints and amounts a double holds exactly become
    floats. Anything wider is kept as its decimal text so that it reads
    back unchanged.
    """
    with localcontext(exact_context(value)):
        if value == value.to_integral_value():
            return int(value)
    as_float = float(value)
    if Decimal(repr(as_float)) == value:
        return as_float
    return str(value)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'not_finite', 'negative', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (every amount finite, date present)
    Stage 2: Semantic validation (plausibility checks, warnings only)
    """

    validated_at: dt.datetime = Field(
        default_factory=_utcnow
    )

    schema_valid: bool = Field(
        ...,
        description="Did schema validation pass?"
    )
    semantic_valid: bool = Field(
        ...,
        description="Did semantic validation pass?"
    )
    is_valid: bool = Field(
        ...,
        description="Overall validation result"
    )

    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )

    # Warnings don't block but should be shown
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
