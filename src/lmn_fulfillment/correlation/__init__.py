"""Signature-completion correlation and idempotent delivery."""

from __future__ import annotations

from lmn_fulfillment.correlation.correlator import (
    COMPLETED_EVENT,
    CompletionCorrelator,
    CorrelationState,
    WebhookOutcome,
    verify_event_hash,
)
from lmn_fulfillment.correlation.ledger import DeliveryLedger

__all__ = [
    "COMPLETED_EVENT",
    "CompletionCorrelator",
    "CorrelationState",
    "DeliveryLedger",
    "WebhookOutcome",
    "verify_event_hash",
]
