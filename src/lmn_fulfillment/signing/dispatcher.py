"""Signature dispatcher: submit an assembled document to the counter-signer."""

from __future__ import annotations

import base64
import binascii
import logging

from lmn_fulfillment.core.config import SigningConfig
from lmn_fulfillment.exceptions import DispatchError
from lmn_fulfillment.models import Recipient, SignatureRequest
from lmn_fulfillment.signing.protocols import ISignatureService

log = logging.getLogger(__name__)


def decode_document(document: bytes | str) -> bytes:
    """Accept raw PDF bytes or their base64 text."""
    if isinstance(document, bytes):
        return document
    try:
        return base64.b64decode(document, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DispatchError(f"Document is not valid base64: {e}") from e


class SignatureDispatcher:
    """Records the provider-assigned id for one submitted letter."""

    def __init__(self, service: ISignatureService, config: SigningConfig | None = None) -> None:
        self._service = service
        self._config = config or SigningConfig()

    async def dispatch(
        self,
        document: bytes | str,
        recipient: Recipient,
        *,
        file_name: str,
        patient_name: str = "",
        business_name: str = "",
        subject: str | None = None,
        message: str | None = None,
    ) -> SignatureRequest:
        """Submit and return the ``SignatureRequest``. Raises ``DispatchError``."""
        file_bytes = decode_document(document)
        if not file_bytes:
            raise DispatchError("Refusing to dispatch an empty document")

        document_id = await self._service.create_document(
            file_bytes,
            file_name,
            recipient.name,
            recipient.email,
            subject=subject or self._config.subject,
            message=message or self._config.message,
            document_name=f"LMN for {patient_name}" if patient_name else file_name,
        )
        log.info("Dispatched %s for signature: document_id=%s", file_name, document_id)
        return SignatureRequest(
            document_id=document_id,
            recipient=recipient,
            file_name=file_name,
            business_name=business_name,
        )
