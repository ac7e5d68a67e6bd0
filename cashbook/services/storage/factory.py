"""Build storage backends from settings."""

from typing import Optional

from cashbook.config import StorageSettings, get_settings
from cashbook.services.storage.interface import (
    AuditStorageInterface,
    RecordStorageInterface,
)
from cashbook.services.storage.json_file import (
    JsonFileRecordStorage,
    JsonLinesAuditStorage,
)
from cashbook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStorage,
)


def create_record_storage(
    settings: Optional[StorageSettings] = None,
) -> RecordStorageInterface:
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryRecordStorage()
    return JsonFileRecordStorage(settings.slot_path, fsync=settings.fsync)


def create_audit_storage(
    settings: Optional[StorageSettings] = None,
) -> AuditStorageInterface:
    settings = settings or get_settings().storage
    if settings.backend == "memory":
        return InMemoryAuditStorage()
    return JsonLinesAuditStorage(settings.audit_log_path)
