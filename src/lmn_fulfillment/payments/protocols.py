"""Read-only purchaser lookup keyed by signature document id."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lmn_fulfillment.models import PurchaserContact


@runtime_checkable
class IPurchaserDirectory(Protocol):
    """Reverse index from signature document id to purchaser contact.

    Implementations may search an external payment store or a local
    index; the correlator does not care which.
    """

    async def find_by_document_id(self, document_id: str) -> PurchaserContact | None:
        """Return the purchaser for *document_id*, or ``None`` if nothing correlates."""
        ...
