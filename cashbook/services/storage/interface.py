"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the register in a local JSON file today
2. Use in-memory storage for testing
3. Move to an embedded database later
4. Keep business logic decoupled from storage implementation

The record interface is deliberately a single slot: the whole
collection is read at once and written at once. Position-based
editing lives above it, in the RecordStore.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence
from uuid import UUID

from cashbook.models.audit import AuditEvent
from cashbook.models.record import ReconciliationRecord


class RecordStorageInterface(ABC):
    """
    Abstract interface for the durable record slot.

    Any storage implementation (JSON file, SQLite, etc.)
    must implement these methods.
    """

    @abstractmethod
    def read_collection(self) -> list[ReconciliationRecord]:
        """
        Read the entire record collection.

        Returns:
            Records in creation order; empty if nothing was ever saved

        Raises:
            StorageCorruptionError: If stored data is present but malformed
            StorageError: If the slot cannot be read
        """
        pass

    @abstractmethod
    def write_collection(self, records: Sequence[ReconciliationRecord]) -> None:
        """
        Replace the stored collection with `records`.

        The write is all-or-nothing: on failure the previously
        stored collection must still be readable.

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one edit session).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageCorruptionError(StorageError):
    """Stored data is present but is not a well-formed record collection."""
    pass


class UnsupportedSchemaVersionError(StorageCorruptionError):
    """Stored data was written by a newer version of the application."""

    def __init__(self, version: int, supported: int):
        self.version = version
        self.supported = supported
        super().__init__(
            f"Stored records use schema version {version}; "
            f"this version reads up to {supported}"
        )


class PositionOutOfRangeError(StorageError, IndexError):
    """An edit or delete targeted a position that does not exist."""

    def __init__(self, position: int, length: int, operation: Optional[str] = None):
        self.position = position
        self.length = length
        self.operation = operation
        action = f"Cannot {operation} record" if operation else "No record"
        super().__init__(
            f"{action} at position {position}: collection has {length} records"
        )
