"""Record store protocol used by the delivery ledger."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IRecordStore(Protocol):
    """Small JSON-record store (file, memory, etc.)."""

    def put(self, key: str, record: dict[str, Any]) -> None:
        """Save *record* under *key*, replacing any previous value."""
        ...

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the record for *key*, or ``None``."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def delete(self, key: str) -> None:
        """Delete *key* (no-op if absent)."""
        ...

    def keys(self, prefix: str = "") -> list[str]:
        """Sorted keys matching the optional prefix."""
        ...
