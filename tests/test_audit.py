"""Tests for the AuditLogger service."""

from uuid import uuid4

import pytest

from cashbook.audit import AuditLogger, create_correlation_id
from cashbook.models.audit import AuditEventType, AuditSeverity
from cashbook.services.storage import InMemoryAuditStorage

from conftest import make_fields, make_record


class ExplodingAuditStorage(InMemoryAuditStorage):
    def append_event(self, event):
        raise RuntimeError("audit backend down")


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_without_storage(self):
        """Test that local-only logging reports success."""
        logger = AuditLogger()
        logger.log_collection_loaded(record_count=0)
        assert logger.storage is None

    def test_storage_failure_does_not_raise(self):
        """Test that a broken audit backend never breaks the main flow."""
        logger = AuditLogger(ExplodingAuditStorage())
        record = make_record()
        logger.log_record_created(record=record, position=0, correlation_id=uuid4())

    def test_record_created(self, audit_storage):
        logger = AuditLogger(audit_storage)
        record = make_record(cash_on_hand="300")
        correlation_id = create_correlation_id()

        logger.log_record_created(record=record, position=4, correlation_id=correlation_id)

        (event,) = audit_storage.events
        assert event.event_type == AuditEventType.RECORD_CREATED
        assert event.entity_id == record.id
        assert event.details == {"position": 4, "profit": "400", "discrepancy": "50"}

    def test_record_updated_lists_changes(self, audit_storage):
        """Test that an edit records the old and new value of each changed field."""
        logger = AuditLogger(audit_storage)
        before = make_record()
        after = before.with_base_fields(make_fields(cash_on_hand="300"))

        logger.log_record_updated(before=before, after=after, position=0, correlation_id=uuid4())

        (event,) = audit_storage.events
        changes = event.details["changes"]
        assert set(changes) == {"cash_on_hand", "discrepancy"}
        assert changes["cash_on_hand"] == {"from": "350", "to": "300"}

    def test_record_deleted_keeps_snapshot(self, audit_storage):
        """Test that a deleted record can be reconstructed from the log."""
        logger = AuditLogger(audit_storage)
        record = make_record()

        logger.log_record_deleted(record=record, position=2, correlation_id=uuid4())

        (event,) = audit_storage.events
        assert event.severity == AuditSeverity.WARNING
        assert event.details["snapshot"] == record.to_storage_dict()

    def test_correlation(self, audit_storage):
        """Test that related events can be found together."""
        logger = AuditLogger(audit_storage)
        correlation_id = create_correlation_id()

        logger.log_position_out_of_range("update", 9, 2, correlation_id)
        logger.log_storage_write_failed("update", "disk full", correlation_id)
        logger.log_error("ValueError", "boom")

        related = audit_storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in related] == [
            AuditEventType.POSITION_OUT_OF_RANGE,
            AuditEventType.STORAGE_WRITE_FAILED,
        ]

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
