"""
Main Orchestrator for Cashbook

This module ties together all the components and defines the
end-to-end flows the front end calls into:
1. Live preview (inputs → profit / discrepancy)
2. Submit (inputs + date → validate → save → balanced?)
3. Edit (display index → edit buffer → recompute → overwrite)
4. Delete (display index → confirmation → remove)

DESIGN DECISION: The front end lists records newest first, the store
keeps them oldest first. The translation between the two happens
here and only here:

    position = len(records) - 1 - display_index
"""

import datetime as dt
from typing import Any, Callable, Mapping, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from cashbook.audit import AuditLogger, create_correlation_id
from cashbook.config import get_settings
from cashbook.engine import ReconciliationResult, compute_fields, round_to_cents
from cashbook.models.record import BaseFields, ReconciliationRecord
from cashbook.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    PositionOutOfRangeError,
    StorageCorruptionError,
    StorageError,
    create_audit_storage,
    create_record_storage,
)
from cashbook.store import RecordStore
from cashbook.validation import RecordValidator, normalize_base_fields


logger = structlog.get_logger(__name__)


class DeletionNotConfirmedError(Exception):
    """A delete reached the flow without the user confirming it."""
    pass


class ReconciliationFlow:
    """
    Orchestrates the daily reconciliation flows.

    Every method works in display order (newest first), since that is
    what the user is looking at.
    """

    def __init__(
        self,
        store: RecordStore,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        strict_numeric_input: Optional[bool] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._strict = strict_numeric_input

    @property
    def store(self) -> RecordStore:
        return self._store

    def load(self, correlation_id: Optional[UUID] = None) -> list[ReconciliationRecord]:
        """
        Read the stored collection; call once at startup.

        Corruption is audited and re-raised so the front end can tell
        the user instead of quietly starting from an empty register.
        """
        try:
            records = self._store.load()
        except StorageCorruptionError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_corruption(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_collection_loaded(
                record_count=len(records),
                correlation_id=correlation_id,
            )
        return records

    # -------------------------------------------------------------------------
    # Display order
    # -------------------------------------------------------------------------

    def list_for_display(self) -> list[ReconciliationRecord]:
        """Records newest first."""
        return list(reversed(self._store.records))

    def display_to_position(self, display_index: int) -> int:
        """
        Translate a newest-first index into a creation-order position.

        Raises:
            PositionOutOfRangeError: display_index outside [0, len)
        """
        length = len(self._store)
        if isinstance(display_index, bool) or not isinstance(display_index, int):
            raise TypeError(f"Display index must be an int, got {type(display_index).__name__}")
        if display_index < 0 or display_index >= length:
            raise PositionOutOfRangeError(display_index, length, "display")
        return length - 1 - display_index

    # -------------------------------------------------------------------------
    # Flows
    # -------------------------------------------------------------------------

    def preview(self, **base_inputs: Any) -> ReconciliationResult:
        """
        Derived values for the form as it stands.

        Always permissive: a half-typed field counts as zero while
        the user is still typing.
        """
        fields = normalize_base_fields(base_inputs, strict=False)
        return compute_fields(fields)

    def submit(
        self,
        base_inputs: Mapping[str, Any],
        date: Optional[dt.datetime],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[ReconciliationRecord], ReconciliationRecord, bool, str]:
        """
        Save a new day's count.

        Returns:
            (records, record, is_balanced, message)

        Raises:
            InvalidNumericInputError: strict mode and a non-numeric input
            ValueError: the inputs fail schema validation (no date given)
            StorageError: the write failed
        """
        correlation_id = correlation_id or create_correlation_id()

        fields = normalize_base_fields(base_inputs, strict=self._strict)

        validation = self._validator.validate(fields, date)
        if not validation.schema_valid:
            raise ValueError(self._validator.get_user_friendly_summary(validation))
        for warning in validation.warnings:
            logger.warning("submission_warning", message=warning, correlation_id=str(correlation_id))

        record = ReconciliationRecord.create(fields, date=date)
        records = self._mutate(
            "append",
            lambda: self._store.append(record),
            correlation_id,
        )

        if self._audit_logger:
            self._audit_logger.log_record_created(
                record=record,
                position=len(records) - 1,
                correlation_id=correlation_id,
            )

        prefix = "✅ Saved. " if record.is_balanced else "⚠️ Saved. "
        return records, record, record.is_balanced, prefix + balance_message(record)

    def load_for_edit(self, display_index: int) -> BaseFields:
        """The five inputs of a record, to pre-fill the edit form."""
        position = self.display_to_position(display_index)
        return self._store.get(position).base_fields()

    def submit_edit(
        self,
        display_index: int,
        base_inputs: Mapping[str, Any],
        date: Optional[dt.datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[ReconciliationRecord], ReconciliationRecord, str]:
        """
        Overwrite a record's base fields and recompute it.

        Returns:
            (records, updated_record, message)
        """
        correlation_id = correlation_id or create_correlation_id()

        position = self._resolve(display_index, "update", correlation_id)
        fields = normalize_base_fields(base_inputs, strict=self._strict)
        before = self._store.get(position)

        records = self._mutate(
            "update",
            lambda: self._store.update(position, fields, date=date),
            correlation_id,
        )
        after = records[position]

        if self._audit_logger:
            self._audit_logger.log_record_updated(
                before=before,
                after=after,
                position=position,
                correlation_id=correlation_id,
            )

        return records, after, "✅ Record updated. " + balance_message(after)

    def delete(
        self,
        display_index: int,
        confirmed: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> list[ReconciliationRecord]:
        """
        Delete a record. The front end must have asked the user first.

        Raises:
            DeletionNotConfirmedError: confirmed is not True
        """
        correlation_id = correlation_id or create_correlation_id()

        position = self._resolve(display_index, "remove", correlation_id)

        if confirmed is not True:
            if self._audit_logger:
                self._audit_logger.log_deletion_cancelled(
                    position=position,
                    correlation_id=correlation_id,
                )
            raise DeletionNotConfirmedError(
                f"Deletion of position {position} was not confirmed"
            )

        removed = self._store.get(position)
        records = self._mutate(
            "remove",
            lambda: self._store.remove(position),
            correlation_id,
        )

        if self._audit_logger:
            self._audit_logger.log_record_deleted(
                record=removed,
                position=position,
                correlation_id=correlation_id,
            )

        return records

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _resolve(self, display_index: int, operation: str, correlation_id: UUID) -> int:
        try:
            return self.display_to_position(display_index)
        except PositionOutOfRangeError as e:
            if self._audit_logger:
                self._audit_logger.log_position_out_of_range(
                    operation=operation,
                    position=e.position,
                    length=e.length,
                    correlation_id=correlation_id,
                )
            raise

    def _mutate(
        self,
        operation: str,
        action: Callable[[], list[ReconciliationRecord]],
        correlation_id: UUID,
    ) -> list[ReconciliationRecord]:
        try:
            return action()
        except PositionOutOfRangeError as e:
            if self._audit_logger:
                self._audit_logger.log_position_out_of_range(
                    operation=operation,
                    position=e.position,
                    length=e.length,
                    correlation_id=correlation_id,
                )
            raise
        except StorageCorruptionError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_corruption(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_storage_write_failed(
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except Exception as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": operation},
                    correlation_id=correlation_id,
                )
            raise


def balance_message(record: BaseFields) -> str:
    """One-line feedback on whether the count balances."""
    if record.is_balanced:
        return "The figures balance."
    return f"There is a discrepancy of {round_to_cents(record.discrepancy):,.2f}."


def create_app_components(
    use_storage: bool = True,
) -> tuple[ReconciliationFlow, RecordStore]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured storage backend.
                    Set to False to keep everything in memory.

    Raises:
        StorageError: use_storage is set and the storage settings are invalid

    Returns:
        (reconciliation_flow, record_store)
    """
    settings = get_settings()

    if use_storage:
        try:
            storage_settings = settings.storage
        except ValidationError as e:
            logger.error("storage_not_configured", error=str(e))
            raise StorageError(f"Storage is not configured correctly: {e}") from e
        record_storage = create_record_storage(storage_settings)
        audit_logger = AuditLogger(create_audit_storage(storage_settings))
    else:
        record_storage = InMemoryRecordStorage()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    store = RecordStore(record_storage)
    flow = ReconciliationFlow(
        store=store,
        audit_logger=audit_logger,
        strict_numeric_input=settings.app.strict_numeric_input,
    )

    return flow, store
