"""
JSON File Storage Implementation

DESIGN DECISION: A single JSON file per storage slot is the backend
because:
1. The register is single-user and small (one record per day)
2. No database setup required
3. The file is human-readable and easy to back up
4. Easy to export/migrate later

TRADEOFFS:
- The whole collection is rewritten on every change
- No locking: two processes writing the same slot means last writer wins

Writes go to a temp file in the same directory which then replaces
the slot with os.replace(), so a crash mid-write leaves the previous
collection intact.
"""

import os
import tempfile
from pathlib import Path
from typing import Sequence, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from cashbook.models.audit import AuditEvent
from cashbook.models.record import ReconciliationRecord
from cashbook.services.storage.codec import dump_collection, load_collection
from cashbook.services.storage.interface import (
    AuditStorageInterface,
    RecordStorageInterface,
    StorageCorruptionError,
    StorageError,
)


logger = structlog.get_logger(__name__)


class JsonFileRecordStorage(RecordStorageInterface):
    """
    Record slot backed by one JSON file.

    A missing file is an empty collection.
    """

    def __init__(self, path: Union[str, Path], fsync: bool = True):
        self._path = Path(path)
        self._fsync = fsync

    @property
    def path(self) -> Path:
        return self._path

    def read_collection(self) -> list[ReconciliationRecord]:
        """Read all records from the slot file."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except UnicodeDecodeError as e:
            raise StorageCorruptionError(f"Stored records are not UTF-8 text: {e}") from e
        except OSError as e:
            raise StorageError(f"Failed to read records from {self._path}: {e}") from e

        return load_collection(text)

    def write_collection(self, records: Sequence[ReconciliationRecord]) -> None:
        """Atomically replace the slot file."""
        payload = dump_collection(records)

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
            try:
                try:
                    handle = os.fdopen(fd, "w", encoding="utf-8")
                except BaseException:
                    os.close(fd)
                    raise
                with handle:
                    handle.write(payload)
                    handle.flush()
                    if self._fsync:
                        os.fsync(handle.fileno())
                os.replace(tmp_name, self._path)
            except BaseException:
                # Leave the previous slot untouched and clean up the temp file
                try:
                    os.unlink(tmp_name)
                except FileNotFoundError:
                    pass
                raise
        except OSError as e:
            raise StorageError(f"Failed to save records to {self._path}: {e}") from e

        if self._fsync:
            self._fsync_directory()

        logger.debug("collection_written", path=str(self._path), record_count=len(records))

    def _fsync_directory(self) -> None:
        """Flush the rename itself to disk."""
        # The new collection is already in place, so a failure here is not a failed save
        try:
            dir_fd = os.open(self._path.parent, os.O_RDONLY)
            try:
                os.fsync(dir_fd)
            finally:
                os.close(dir_fd)
        except OSError as e:
            logger.warning("directory_fsync_failed", path=str(self._path.parent), error=str(e))


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON event per line.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                path=str(self._path),
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    def _read_events(self) -> list[AuditEvent]:
        try:
            lines = self._path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(f"Failed to read audit log {self._path}: {e}") from e

        events = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                events.append(AuditEvent.model_validate_json(line))
            except ValidationError as e:
                logger.warning(
                    "audit_line_skipped",
                    path=str(self._path),
                    line=line_number,
                    error_count=e.error_count(),
                )
        return events

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        events = [
            event for event in self._read_events()
            if event.correlation_id == correlation_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by entity."""
        events = [
            event for event in self._read_events()
            if event.entity_type == entity_type and event.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        events = self._read_events()
        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
