"""Delivery ledger: remembers which signed documents were already emailed."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from lmn_fulfillment.persistence.protocols import IRecordStore

log = logging.getLogger(__name__)

_PREFIX = "delivered__"


class DeliveryLedger:
    """Idempotency record keyed by provider document id.

    Only successful deliveries are recorded, so a failed attempt stays
    eligible for the event source's retry.
    """

    def __init__(self, store: IRecordStore) -> None:
        self._store = store

    @staticmethod
    def _key(document_id: str) -> str:
        return f"{_PREFIX}{document_id}"

    def was_delivered(self, document_id: str) -> bool:
        return self._store.exists(self._key(document_id))

    def record_delivery(
        self,
        document_id: str,
        *,
        recipient: str,
        message_id: str = "",
        attached: bool = False,
    ) -> None:
        self._store.put(
            self._key(document_id),
            {
                "document_id": document_id,
                "recipient": recipient,
                "message_id": message_id,
                "attached": attached,
                "delivered_at": datetime.now(timezone.utc).isoformat(),
            },
        )
        log.debug("Recorded delivery of %s to %s", document_id, recipient)

    def get(self, document_id: str) -> dict[str, Any] | None:
        return self._store.get(self._key(document_id))
