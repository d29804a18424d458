"""File-based record store — one JSON file per key."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


class FileRecordStore:
    """Stores records as JSON files in a local directory.

    Writes go to a temp file and are renamed into place so a crash never
    leaves a half-written record.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._base.mkdir(parents=True, exist_ok=True)

    def _key_path(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._base / f"{safe_key}.json"

    def put(self, key: str, record: dict[str, Any]) -> None:
        path = self._key_path(key)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(record, default=str), encoding="utf-8")
        os.replace(tmp, path)
        log.debug("Stored %s at %s", key, path)

    def get(self, key: str) -> dict[str, Any] | None:
        path = self._key_path(key)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def exists(self, key: str) -> bool:
        return self._key_path(key).is_file()

    def delete(self, key: str) -> None:
        path = self._key_path(key)
        if path.is_file():
            path.unlink()

    def keys(self, prefix: str = "") -> list[str]:
        return sorted(p.stem for p in self._base.glob("*.json") if p.stem.startswith(prefix))
