"""
Record Store

Owns the ordered record collection and keeps the storage slot in step
with it.

GUARANTEES:
- Order is creation order, oldest first; positions are zero-based
- Every mutation writes the full collection before it becomes visible
- A failed write or a bad position leaves the collection unchanged
- profit and discrepancy are recomputed on every create and edit

Callers that show records newest-first translate their display index
to a position themselves (see ReconciliationFlow); the store only
knows creation order.
"""

import datetime as dt
from typing import Any, Mapping, Optional, Union
from uuid import UUID

import structlog

from cashbook.models.record import BaseFields, LEGACY_KEYS, ReconciliationRecord
from cashbook.services.storage import (
    PositionOutOfRangeError,
    RecordStorageInterface,
)
from cashbook.validation.normalizer import normalize_base_fields


logger = structlog.get_logger(__name__)

FieldsInput = Union[BaseFields, Mapping[str, Any]]


class RecordStore:
    """
    Position-addressed CRUD over a single storage slot.
    """

    def __init__(self, storage: RecordStorageInterface):
        self._storage = storage
        self._records: list[ReconciliationRecord] = []
        self._loaded = False

    @property
    def storage(self) -> RecordStorageInterface:
        return self._storage

    @property
    def records(self) -> list[ReconciliationRecord]:
        """Snapshot of the collection in creation order."""
        self._ensure_loaded()
        return list(self._records)

    def __len__(self) -> int:
        self._ensure_loaded()
        return len(self._records)

    def load(self) -> list[ReconciliationRecord]:
        """
        (Re)read the whole collection from storage.

        Raises:
            StorageCorruptionError: Stored data is present but malformed.
                The in-memory collection is left as it was.
        """
        records = self._storage.read_collection()
        self._records = records
        self._loaded = True
        logger.info("collection_loaded", record_count=len(records))
        return list(records)

    def get(self, position: int) -> ReconciliationRecord:
        self._ensure_loaded()
        self._check_position(position, "read")
        return self._records[position]

    def index_of(self, record_id: UUID) -> Optional[int]:
        """Current position of a record, or None if it is gone."""
        self._ensure_loaded()
        for position, record in enumerate(self._records):
            if record.id == record_id:
                return position
        return None

    def append(self, record: ReconciliationRecord) -> list[ReconciliationRecord]:
        """
        Add a record as the new last element and persist.

        No deduplication: identical records are kept side by side.
        """
        self._ensure_loaded()
        updated = [*self._records, record]
        log_fields = record.to_log_dict()
        self._commit(updated, "append")
        logger.debug("record_appended", position=len(updated) - 1, **log_fields)
        return list(updated)

    def create(
        self,
        fields: FieldsInput,
        date: Optional[dt.datetime] = None,
    ) -> ReconciliationRecord:
        """Compute a record from base fields and append it."""
        record = ReconciliationRecord.create(_as_base_fields(fields), date=date)
        self.append(record)
        return record

    def update(
        self,
        position: int,
        new_base_fields: FieldsInput,
        date: Optional[dt.datetime] = None,
    ) -> list[ReconciliationRecord]:
        """
        Replace all five base fields of the record at `position`.

        Derived fields are recomputed from the new values. The date is
        kept unless passed explicitly (or present in a mapping).

        Raises:
            PositionOutOfRangeError: position outside [0, len)
            StorageError: the write failed
        """
        self._ensure_loaded()
        self._check_position(position, "update")

        if date is None and isinstance(new_base_fields, Mapping):
            date = _date_from_mapping(new_base_fields)

        current = self._records[position]
        replacement = current.with_base_fields(_as_base_fields(new_base_fields), date=date)

        updated = list(self._records)
        updated[position] = replacement
        log_fields = replacement.to_log_dict()
        self._commit(updated, "update")
        logger.debug("record_updated", position=position, **log_fields)
        return list(updated)

    def remove(self, position: int) -> list[ReconciliationRecord]:
        """
        Delete the record at `position`; later records shift down by one.

        Raises:
            PositionOutOfRangeError: position outside [0, len)
            StorageError: the write failed
        """
        self._ensure_loaded()
        self._check_position(position, "remove")

        removed = self._records[position]
        updated = self._records[:position] + self._records[position + 1:]
        self._commit(updated, "remove")
        logger.debug("record_removed", position=position, record_id=str(removed.id))
        return list(updated)

    def _ensure_loaded(self) -> None:
        # Never write over a slot we have not read
        if not self._loaded:
            self.load()

    def _check_position(self, position: int, operation: str) -> None:
        if isinstance(position, bool) or not isinstance(position, int):
            raise TypeError(f"Position must be an int, got {type(position).__name__}")
        if position < 0 or position >= len(self._records):
            raise PositionOutOfRangeError(position, len(self._records), operation)

    def _commit(self, updated: list[ReconciliationRecord], operation: str) -> None:
        try:
            self._storage.write_collection(updated)
        except Exception:
            logger.error("collection_write_failed", operation=operation, exc_info=True)
            raise
        self._records = updated


def _as_base_fields(fields: FieldsInput) -> BaseFields:
    if isinstance(fields, BaseFields):
        return fields.base_fields()
    return normalize_base_fields(fields)


def _date_from_mapping(fields: Mapping[str, Any]) -> Optional[Any]:
    for key in ("date", LEGACY_KEYS["date"]):
        if fields.get(key) is not None:
            return fields[key]
    return None
