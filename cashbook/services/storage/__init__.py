"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a local JSON file as the backend, but designed to be swappable.
"""

from cashbook.services.storage.interface import (
    AuditStorageInterface,
    PositionOutOfRangeError,
    RecordStorageInterface,
    StorageCorruptionError,
    StorageError,
    UnsupportedSchemaVersionError,
)
from cashbook.services.storage.codec import (
    SCHEMA_VERSION,
    dump_collection,
    load_collection,
)
from cashbook.services.storage.json_file import (
    JsonFileRecordStorage,
    JsonLinesAuditStorage,
)
from cashbook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)
from cashbook.services.storage.factory import (
    create_audit_storage,
    create_record_storage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStorageInterface",
    # Exceptions
    "PositionOutOfRangeError",
    "StorageCorruptionError",
    "StorageError",
    "UnsupportedSchemaVersionError",
    # Codec
    "SCHEMA_VERSION",
    "dump_collection",
    "load_collection",
    # JSON file implementation
    "JsonFileRecordStorage",
    "JsonLinesAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStorage",
    # Factories
    "create_audit_storage",
    "create_record_storage",
]
