"""Output formatter protocol — the contract letter renderers implement."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IOutputFormatter(Protocol):
    """Protocol for letter renderers (PDF today)."""

    def format(self, letter: Any, **kwargs: Any) -> bytes:
        """Render the letter into output bytes."""
        ...

    def format_to_file(self, letter: Any, path: Path, **kwargs: Any) -> Path:
        """Render and write to a file. Returns the output path."""
        ...

    @property
    def content_type(self) -> str:
        """MIME type for the output format (e.g. 'application/pdf')."""
        ...


__all__ = ["IOutputFormatter"]
