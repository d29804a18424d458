"""Purchaser lookup via Stripe's PaymentIntent search."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import stripe

from lmn_fulfillment.core.config import PaymentConfig
from lmn_fulfillment.models import PurchaserContact
from lmn_fulfillment.payments.contact import field_of, resolve_contact

log = logging.getLogger(__name__)


class StripePurchaserDirectory:
    """Finds the PaymentIntent whose metadata names a signature document.

    The document id is written to the intent's metadata when the payment is
    created; this class only reads.
    """

    def __init__(self, config: PaymentConfig) -> None:
        self._config = config

    def _search(self, document_id: str) -> list[Any]:
        query = f"metadata['{self._config.document_key}']:'{_quote(document_id)}'"
        result = stripe.PaymentIntent.search(
            query=query,
            limit=1,
            expand=["data.customer"],
            api_key=self._config.secret_key,
        )
        return list(field_of(result, "data") or [])

    async def find_by_document_id(self, document_id: str) -> PurchaserContact | None:
        try:
            intents = await asyncio.to_thread(self._search, document_id)
        except stripe.StripeError as e:
            log.error("Stripe search failed for document %s: %s", document_id, e)
            return None

        if not intents:
            return None
        contact = resolve_contact(intents[0], self._config.contact_key)
        if contact is None:
            log.warning(
                "PaymentIntent %s references document %s but has no contact address",
                field_of(intents[0], "id"), document_id,
            )
        return contact


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")
