"""
In-Memory Storage

Used for tests and when no data directory is configured. The record
slot still holds serialized text and goes through the same codec as
the file backend, so a corrupt slot behaves the same way.
"""

from typing import Optional, Sequence
from uuid import UUID

from cashbook.models.audit import AuditEvent
from cashbook.models.record import ReconciliationRecord
from cashbook.services.storage.codec import dump_collection, load_collection
from cashbook.services.storage.interface import (
    AuditStorageInterface,
    RecordStorageInterface,
)


class InMemoryRecordStorage(RecordStorageInterface):
    """Record slot kept in a string."""

    def __init__(self, initial: Optional[str] = None):
        self._slot = initial
        self.write_count = 0

    @property
    def raw(self) -> Optional[str]:
        """The slot text as last written, or None if never written."""
        return self._slot

    def read_collection(self) -> list[ReconciliationRecord]:
        if self._slot is None:
            return []
        return load_collection(self._slot)

    def write_collection(self, records: Sequence[ReconciliationRecord]) -> None:
        self._slot = dump_collection(records)
        self.write_count += 1


class InMemoryAuditStorage(AuditStorageInterface):
    """Audit events kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return sorted(self._events, key=lambda e: e.timestamp, reverse=True)[:limit]
