"""
Storage Codec

Converts the record collection to and from the text held in a storage
slot. Every backend goes through here, so all of them agree on what a
corrupt slot looks like.

Current format (schema version 1):

    {"schema_version": 1, "records": [{"id": ..., "date": ..., ...}]}

Version 0 is the bare JSON array written by the first release, with
either camelCase or Spanish keys and no ids. It is read transparently;
the next save rewrites the slot as version 1.
"""

import json
from decimal import Decimal
from typing import Any, Sequence

import structlog
from pydantic import ValidationError

from cashbook.engine import coerce_amount, round_to_cents
from cashbook.models.record import (
    BASE_FIELD_NAMES,
    LEGACY_KEYS,
    STORAGE_KEYS,
    ReconciliationRecord,
)
from cashbook.services.storage.interface import (
    StorageCorruptionError,
    UnsupportedSchemaVersionError,
)


SCHEMA_VERSION = 1

logger = structlog.get_logger(__name__)


def dump_collection(records: Sequence[ReconciliationRecord]) -> str:
    """Serialize records into slot text."""
    envelope = {
        "schema_version": SCHEMA_VERSION,
        "records": [record.to_storage_dict() for record in records],
    }
    return json.dumps(envelope, ensure_ascii=False, indent=2)


def load_collection(text: str) -> list[ReconciliationRecord]:
    """
    Parse slot text into records.

    Blank text means nothing was ever saved.

    Raises:
        StorageCorruptionError: If the text is not a record collection
        UnsupportedSchemaVersionError: If it was written by a newer release
    """
    if not text.strip():
        return []

    try:
        data = json.loads(text, parse_float=Decimal)
    except json.JSONDecodeError as e:
        raise StorageCorruptionError(f"Stored records are not valid JSON: {e}") from e

    if isinstance(data, list):
        logger.warning("legacy_collection_format", record_count=len(data))
        return [_load_record(index, item, legacy=True) for index, item in enumerate(data)]

    if not isinstance(data, dict):
        raise StorageCorruptionError(
            f"Stored records must be an object or array, got {type(data).__name__}"
        )

    version = data.get("schema_version")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise StorageCorruptionError(f"Invalid schema version: {version!r}")
    if version > SCHEMA_VERSION:
        raise UnsupportedSchemaVersionError(version, SCHEMA_VERSION)

    raw_records = data.get("records")
    if not isinstance(raw_records, list):
        raise StorageCorruptionError("Stored collection has no 'records' list")

    return [_load_record(index, item, legacy=False) for index, item in enumerate(raw_records)]


def _load_record(index: int, item: Any, legacy: bool) -> ReconciliationRecord:
    if not isinstance(item, dict):
        raise StorageCorruptionError(
            f"Record {index} must be an object, got {type(item).__name__}"
        )

    if legacy:
        # The first release stored NaN inputs as null; those were zero on screen
        item = dict(item)
        for name in BASE_FIELD_NAMES:
            for key in (name, STORAGE_KEYS[name], LEGACY_KEYS[name]):
                if key in item:
                    item[key] = coerce_amount(item[key])
    else:
        # Version 1 always writes every amount; a missing one is damage, not zero
        for name in BASE_FIELD_NAMES:
            if not any(key in item for key in (name, STORAGE_KEYS[name])):
                raise StorageCorruptionError(f"Record {index} is missing {STORAGE_KEYS[name]!r}")

    try:
        record = ReconciliationRecord.model_validate(item)
    except ValidationError as e:
        raise StorageCorruptionError(
            f"Record {index} is malformed ({e.error_count()} errors): {e}"
        ) from e

    _check_stored_derived(index, item, record)
    return record


def _check_stored_derived(index: int, item: dict, record: ReconciliationRecord) -> None:
    """Stored derived values are ignored, but a mismatch is worth a warning."""
    for name, computed in (("profit", record.profit), ("discrepancy", record.discrepancy)):
        for key in (name, LEGACY_KEYS[name]):
            if key not in item:
                continue
            stored = coerce_amount(item[key])
            if round_to_cents(stored) != round_to_cents(computed):
                logger.warning(
                    "stored_derived_mismatch",
                    position=index,
                    record_id=str(record.id),
                    field=name,
                    stored=str(stored),
                    computed=str(computed),
                )
