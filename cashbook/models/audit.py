"""
Audit Models for Cashbook

Every change to the register is logged for audit purposes.
This provides:
1. Complete traceability of edits and deletions
2. Debugging information when a stored file goes bad
3. A history that survives the records themselves being deleted

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each step of the create / edit / delete lifecycle has its own type.
    """
    # Record lifecycle
    RECORD_CREATED = "record_created"
    RECORD_UPDATED = "record_updated"
    RECORD_DELETED = "record_deleted"
    DELETION_CANCELLED = "deletion_cancelled"

    # Storage
    COLLECTION_LOADED = "collection_loaded"
    STORAGE_CORRUPTION_DETECTED = "storage_corruption_detected"
    STORAGE_WRITE_FAILED = "storage_write_failed"
    POSITION_OUT_OF_RANGE = "position_out_of_range"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation of the register creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'record', 'collection')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one edit session)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """One line of the append-only audit file."""
        return json.dumps(self.to_log_dict(), ensure_ascii=False)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_created(record_id, position, ...)
        event = AuditEventBuilder.record_deleted(record_id, position, ...)
    """

    @staticmethod
    def record_created(
        record_id: UUID,
        position: int,
        profit: str,
        discrepancy: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_CREATED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record saved at position {position}",
            details={
                "position": position,
                "profit": profit,
                "discrepancy": discrepancy,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_updated(
        record_id: UUID,
        position: int,
        changes: dict[str, dict[str, str]],
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_UPDATED,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record at position {position} edited ({len(changes)} fields changed)",
            details={
                "position": position,
                "changes": changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_deleted(
        record_id: UUID,
        position: int,
        snapshot: dict,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Record at position {position} deleted",
            details={
                "position": position,
                "snapshot": snapshot,
            },
            is_user_action=True,
        )

    @staticmethod
    def deletion_cancelled(
        position: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETION_CANCELLED,
            entity_type="record",
            correlation_id=correlation_id,
            description=f"Deletion of position {position} requested without confirmation",
            details={"position": position},
            is_user_action=True,
        )

    @staticmethod
    def collection_loaded(
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COLLECTION_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Loaded {record_count} records",
            details={"record_count": record_count},
        )

    @staticmethod
    def storage_corruption_detected(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_CORRUPTION_DETECTED,
            severity=AuditSeverity.CRITICAL,
            entity_type="collection",
            correlation_id=correlation_id,
            description="Stored records could not be read",
            error_code="storage_corruption",
            error_message=error_message,
        )

    @staticmethod
    def storage_write_failed(
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_WRITE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="collection",
            correlation_id=correlation_id,
            description=f"Saving records failed during {operation}",
            error_code="storage_write_failed",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def position_out_of_range(
        operation: str,
        position: int,
        length: int,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.POSITION_OUT_OF_RANGE,
            severity=AuditSeverity.WARNING,
            entity_type="record",
            correlation_id=correlation_id,
            description=f"{operation.capitalize()} targeted missing position {position}",
            error_code="position_out_of_range",
            details={
                "operation": operation,
                "position": position,
                "length": length,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
