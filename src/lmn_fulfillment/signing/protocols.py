"""Counter-signing service protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class ISignatureService(Protocol):
    """Protocol for external counter-signing services (SignWell, fakes)."""

    async def create_document(
        self,
        file_bytes: bytes,
        file_name: str,
        recipient_name: str,
        recipient_email: str,
        *,
        subject: str,
        message: str,
        document_name: str = "",
    ) -> str:
        """Submit a document for signature. Returns the provider document id.

        Raises DispatchError on any failure.
        """
        ...

    async def fetch_completed_document(self, document_id: str) -> bytes:
        """Download the signed PDF. Raises DispatchError on failure."""
        ...
