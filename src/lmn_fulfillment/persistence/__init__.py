"""Pluggable record stores for the delivery ledger."""

from __future__ import annotations

from lmn_fulfillment.persistence.file_backend import FileRecordStore
from lmn_fulfillment.persistence.memory_backend import MemoryRecordStore
from lmn_fulfillment.persistence.protocols import IRecordStore

__all__ = ["FileRecordStore", "IRecordStore", "MemoryRecordStore", "create_record_store"]


def create_record_store(config: object) -> IRecordStore:
    """Build the configured store from a ``PersistenceConfig``."""
    if getattr(config, "backend", "memory") == "file":
        return FileRecordStore(getattr(config, "store_path"))
    return MemoryRecordStore()
