"""In-memory purchaser directory over plain payment-record dicts."""

from __future__ import annotations

from typing import Any

from lmn_fulfillment.models import PurchaserContact
from lmn_fulfillment.payments.contact import resolve_contact


class MemoryPurchaserDirectory:
    """Holds payment records in a list, for tests and local runs."""

    def __init__(
        self,
        records: list[dict[str, Any]] | None = None,
        *,
        document_key: str = "signwellDocumentGroupId",
        contact_key: str = "customerEmail",
    ) -> None:
        self._records = list(records or [])
        self._document_key = document_key
        self._contact_key = contact_key

    def add(self, record: dict[str, Any]) -> None:
        self._records.append(record)

    async def find_by_document_id(self, document_id: str) -> PurchaserContact | None:
        for record in self._records:
            metadata = record.get("metadata") or {}
            if metadata.get(self._document_key) == document_id:
                return resolve_contact(record, self._contact_key)
        return None
