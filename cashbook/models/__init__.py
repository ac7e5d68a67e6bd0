"""
Data Models Package

This package contains all Pydantic models used in the Cashbook system.
All data flowing through the system must conform to these schemas.
"""

from cashbook.models.record import (
    BASE_FIELD_NAMES,
    LEGACY_KEYS,
    STORAGE_KEYS,
    BaseFields,
    ReconciliationRecord,
    ValidationIssue,
    ValidationResult,
)
from cashbook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "BASE_FIELD_NAMES",
    "LEGACY_KEYS",
    "STORAGE_KEYS",
    "BaseFields",
    "ReconciliationRecord",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
