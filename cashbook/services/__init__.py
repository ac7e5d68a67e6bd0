"""Services package."""

from cashbook.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryRecordStorage,
    JsonFileRecordStorage,
    JsonLinesAuditStorage,
    PositionOutOfRangeError,
    RecordStorageInterface,
    StorageCorruptionError,
    StorageError,
    UnsupportedSchemaVersionError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    "JsonFileRecordStorage",
    "JsonLinesAuditStorage",
    "PositionOutOfRangeError",
    "RecordStorageInterface",
    "StorageCorruptionError",
    "StorageError",
    "UnsupportedSchemaVersionError",
]
