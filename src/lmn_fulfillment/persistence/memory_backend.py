"""In-memory record store for tests and single-process runs."""

from __future__ import annotations

import copy
import logging
from typing import Any

log = logging.getLogger(__name__)


class MemoryRecordStore:
    """Stores records in a plain dict; nothing touches disk."""

    def __init__(self) -> None:
        self._store: dict[str, dict[str, Any]] = {}

    def put(self, key: str, record: dict[str, Any]) -> None:
        self._store[key] = copy.deepcopy(record)
        log.debug("Stored %s in memory", key)

    def get(self, key: str) -> dict[str, Any] | None:
        record = self._store.get(key)
        return copy.deepcopy(record) if record is not None else None

    def exists(self, key: str) -> bool:
        return key in self._store

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(k for k in self._store if k.startswith(prefix))
