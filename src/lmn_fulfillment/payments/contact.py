"""Contact-address preference shared by purchaser directories."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lmn_fulfillment.models import PurchaserContact


def field_of(obj: Any, key: str) -> Any:
    """Read *key* from a mapping or an attribute-style API object."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def resolve_contact(payment: Any, contact_key: str) -> PurchaserContact | None:
    """Stored contact in metadata, then the billing customer, then the receipt address."""
    payment_id = str(field_of(payment, "id") or "")

    email = field_of(field_of(payment, "metadata"), contact_key)
    if email:
        return PurchaserContact(email=str(email), payment_id=payment_id, source="metadata")

    email = field_of(field_of(payment, "customer"), "email")
    if email:
        return PurchaserContact(email=str(email), payment_id=payment_id, source="customer")

    email = field_of(payment, "receipt_email")
    if email:
        return PurchaserContact(email=str(email), payment_id=payment_id, source="receipt")
    return None
