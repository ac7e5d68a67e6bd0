"""Record store package."""

from cashbook.store.record_store import RecordStore

__all__ = ["RecordStore"]
