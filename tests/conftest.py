"""Shared fixtures for the Cashbook test suite."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from cashbook.audit import AuditLogger
from cashbook.config import AppSettings, get_settings
from cashbook.models.record import BaseFields, ReconciliationRecord
from cashbook.orchestrator import ReconciliationFlow
from cashbook.services.storage import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    StorageError,
)
from cashbook.store import RecordStore
from cashbook.validation import RecordValidator


DAY = datetime(2024, 3, 1, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Keep every test away from a real .env and the user's data directory."""
    monkeypatch.chdir(tmp_path)
    for name in (
        "CASHBOOK_STORAGE_BACKEND",
        "CASHBOOK_STORAGE_SLOT_NAME",
        "CASHBOOK_STORAGE_AUDIT_LOG_NAME",
        "CASHBOOK_STRICT_NUMERIC_INPUT",
        "CASHBOOK_DEBUG_MODE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("CASHBOOK_STORAGE_DATA_DIR", str(tmp_path / "data"))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class FailingRecordStorage(InMemoryRecordStorage):
    """Reads fine, refuses every write."""

    def write_collection(self, records):
        raise StorageError("disk full")


def make_fields(
    opening_cash="100",
    income="500",
    expenses="200",
    cash_on_hand="350",
    bank_balance="50",
) -> BaseFields:
    return BaseFields(
        opening_cash=Decimal(opening_cash),
        income=Decimal(income),
        expenses=Decimal(expenses),
        cash_on_hand=Decimal(cash_on_hand),
        bank_balance=Decimal(bank_balance),
    )


def make_record(day: int = 1, **amounts) -> ReconciliationRecord:
    return ReconciliationRecord.create(
        make_fields(**amounts),
        date=datetime(2024, 3, day, tzinfo=timezone.utc),
    )


@pytest.fixture
def record_storage() -> InMemoryRecordStorage:
    return InMemoryRecordStorage()


@pytest.fixture
def store(record_storage) -> RecordStore:
    record_store = RecordStore(record_storage)
    record_store.load()
    return record_store


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def flow(store, audit_storage) -> ReconciliationFlow:
    return ReconciliationFlow(
        store=store,
        validator=RecordValidator(AppSettings()),
        audit_logger=AuditLogger(audit_storage),
        strict_numeric_input=False,
    )
