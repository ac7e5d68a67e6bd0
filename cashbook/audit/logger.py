"""
Audit Logger

DESIGN DECISION: Every change to the register is logged.
This provides:
1. Complete traceability of edits and deletions
2. Debugging capability when a stored file goes bad
3. A record of deleted days after they are gone

The audit logger:
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from cashbook.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from cashbook.models.record import BASE_FIELD_NAMES, ReconciliationRecord
from cashbook.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(debug: bool = False) -> None:
    """Route the stdlib root logger to stderr at the right level."""
    logging.basicConfig(
        format="%(message)s",
        level=logging.DEBUG if debug else logging.INFO,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), if configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_record_created(
        self,
        record: ReconciliationRecord,
        position: int,
        correlation_id: UUID,
    ) -> None:
        """Log a newly saved record."""
        event = AuditEventBuilder.record_created(
            record_id=record.id,
            position=position,
            profit=str(record.profit),
            discrepancy=str(record.discrepancy),
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_record_updated(
        self,
        before: ReconciliationRecord,
        after: ReconciliationRecord,
        position: int,
        correlation_id: UUID,
    ) -> None:
        """Log an edit, with old and new value of every changed field."""
        changes = {}
        for name in (*BASE_FIELD_NAMES, "profit", "discrepancy"):
            old: Decimal = getattr(before, name)
            new: Decimal = getattr(after, name)
            if old != new:
                changes[name] = {"from": str(old), "to": str(new)}
        if before.date != after.date:
            changes["date"] = {"from": before.date.isoformat(), "to": after.date.isoformat()}

        event = AuditEventBuilder.record_updated(
            record_id=after.id,
            position=position,
            changes=changes,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_record_deleted(
        self,
        record: ReconciliationRecord,
        position: int,
        correlation_id: UUID,
    ) -> None:
        """Log a deletion, keeping a snapshot of what was removed."""
        event = AuditEventBuilder.record_deleted(
            record_id=record.id,
            position=position,
            snapshot=record.to_storage_dict(),
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_deletion_cancelled(
        self,
        position: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.deletion_cancelled(
            position=position,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_collection_loaded(
        self,
        record_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.collection_loaded(
            record_count=record_count,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_storage_corruption(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.storage_corruption_detected(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_storage_write_failed(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.storage_write_failed(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_position_out_of_range(
        self,
        operation: str,
        position: int,
        length: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.position_out_of_range(
            operation=operation,
            position=position,
            length=length,
            correlation_id=correlation_id,
        )
        self.log(event)

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., opening the edit form).
    Pass it through all subsequent operations.
    """
    return uuid4()
