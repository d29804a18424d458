"""Completion correlator: signed-document webhook → purchaser email.

One event walks a terminal state machine::

    received → ignored
    received → correlating → uncorrelated → done_without_delivery
    received → correlating → correlated → fetching → delivering → done

Nothing in here raises past ``handle``: lookup and ledger failures
end the event in a logged terminal state, and the caller always
acknowledges it.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lmn_fulfillment.correlation.ledger import DeliveryLedger
from lmn_fulfillment.core.config import MailConfig
from lmn_fulfillment.exceptions import CorrelationMiss, DeliveryError, DispatchError
from lmn_fulfillment.mail.protocols import Attachment, IMailer, MailMessage
from lmn_fulfillment.models import CompletionEvent
from lmn_fulfillment.payments.protocols import IPurchaserDirectory
from lmn_fulfillment.signing.protocols import ISignatureService

log = logging.getLogger(__name__)

COMPLETED_EVENT = "document_completed"


class CorrelationState(str, Enum):
    RECEIVED = "received"
    IGNORED = "ignored"
    CORRELATING = "correlating"
    CORRELATED = "correlated"
    UNCORRELATED = "uncorrelated"
    FETCHING = "fetching"
    DELIVERING = "delivering"
    DONE = "done"
    DONE_WITHOUT_DELIVERY = "done_without_delivery"


@dataclass
class WebhookOutcome:
    """Trace of one event through the state machine."""

    event_type: str
    document_id: str = ""
    states: list[CorrelationState] = field(default_factory=lambda: [CorrelationState.RECEIVED])
    recipient: str = ""
    attached: bool = False
    delivered: bool = False
    detail: str = ""

    @property
    def state(self) -> CorrelationState:
        return self.states[-1]

    def advance(self, state: CorrelationState, detail: str = "") -> WebhookOutcome:
        self.states.append(state)
        if detail:
            self.detail = detail
        return self


def verify_event_hash(event: CompletionEvent, secret: str) -> bool:
    """HMAC-SHA256 of ``"<type>@<time>"`` keyed by the webhook secret."""
    expected = hmac.new(
        secret.encode("utf-8"),
        f"{event.event_type}@{event.event_time}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, event.event_hash)


class CompletionCorrelator:
    """Resolves the purchaser for a completed signature and emails the result."""

    def __init__(
        self,
        purchasers: IPurchaserDirectory,
        signatures: ISignatureService,
        mailer: IMailer,
        ledger: DeliveryLedger,
        *,
        mail: MailConfig | None = None,
        webhook_secret: str = "",
    ) -> None:
        self._purchasers = purchasers
        self._signatures = signatures
        self._mailer = mailer
        self._ledger = ledger
        self._mail = mail or MailConfig()
        self._webhook_secret = webhook_secret

    async def handle(self, payload: dict[str, Any]) -> WebhookOutcome:
        event = CompletionEvent.from_payload(payload if isinstance(payload, dict) else {})
        outcome = WebhookOutcome(event_type=event.event_type, document_id=event.document_id)

        if self._webhook_secret and not verify_event_hash(event, self._webhook_secret):
            log.warning("Webhook %s for %s failed hash verification", event.event_type, event.document_id)
            return outcome.advance(CorrelationState.IGNORED, "event hash mismatch")

        if event.event_type != COMPLETED_EVENT:
            log.info("Ignoring webhook event %r for %s", event.event_type, event.document_id)
            return outcome.advance(CorrelationState.IGNORED, f"event type {event.event_type!r}")

        outcome.advance(CorrelationState.CORRELATING)
        if not event.document_id:
            log.error("Completion event carried no document id")
            return outcome.advance(CorrelationState.UNCORRELATED, "missing document id").advance(
                CorrelationState.DONE_WITHOUT_DELIVERY
            )

        try:
            delivered = self._ledger.was_delivered(event.document_id)
        except OSError as e:
            log.error("Delivery ledger unreadable for %s: %s", event.document_id, e)
            return outcome.advance(CorrelationState.DONE_WITHOUT_DELIVERY, f"ledger unavailable: {e}")
        if delivered:
            log.info("Document %s already delivered; skipping", event.document_id)
            return outcome.advance(CorrelationState.DONE_WITHOUT_DELIVERY, "already delivered")

        try:
            contact = await self._purchasers.find_by_document_id(event.document_id)
        except Exception as e:
            log.exception("Purchaser lookup for %s failed", event.document_id)
            return outcome.advance(CorrelationState.UNCORRELATED, f"purchaser lookup failed: {e}").advance(
                CorrelationState.DONE_WITHOUT_DELIVERY
            )
        if contact is None:
            miss = CorrelationMiss(event.document_id)
            log.error("%s; no email sent", miss)
            return outcome.advance(CorrelationState.UNCORRELATED, str(miss)).advance(
                CorrelationState.DONE_WITHOUT_DELIVERY
            )
        outcome.recipient = contact.email
        outcome.advance(CorrelationState.CORRELATED)
        log.info(
            "Document %s correlated to payment %s (%s address)",
            event.document_id, contact.payment_id or "?", contact.source,
        )

        outcome.advance(CorrelationState.FETCHING)
        attachments: list[Attachment] = []
        try:
            signed = await self._signatures.fetch_completed_document(event.document_id)
            attachments.append(Attachment(filename=_signed_file_name(event.document_id), content=signed))
        except DispatchError as e:
            log.warning("Signed PDF for %s unavailable, sending without attachment: %s",
                        event.document_id, e)
        outcome.attached = bool(attachments)

        outcome.advance(CorrelationState.DELIVERING)
        message = MailMessage(
            to=contact.email,
            subject=self._mail.subject,
            body=self._mail.body,
            attachments=attachments,
        )
        try:
            message_id = await self._mailer.send(message)
        except DeliveryError as e:
            log.error("Mail delivery for %s to %s failed: %s", event.document_id, contact.email, e)
            return outcome.advance(CorrelationState.DONE_WITHOUT_DELIVERY, f"delivery failed: {e}")

        outcome.delivered = True
        try:
            self._ledger.record_delivery(
                event.document_id,
                recipient=contact.email,
                message_id=message_id,
                attached=outcome.attached,
            )
        except OSError as e:
            log.error("Sent %s but could not record the delivery: %s", event.document_id, e)
            return outcome.advance(CorrelationState.DONE, f"delivery not recorded: {e}")
        return outcome.advance(CorrelationState.DONE)


def _signed_file_name(document_id: str) -> str:
    return f"Signed_LMN_{document_id}.pdf"
