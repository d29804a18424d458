"""Resend email API client."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from lmn_fulfillment.core.config import MailConfig
from lmn_fulfillment.exceptions import DeliveryError
from lmn_fulfillment.mail.protocols import MailMessage

log = logging.getLogger(__name__)


class ResendMailer:
    """Sends transactional mail through ``POST /emails``."""

    def __init__(
        self,
        config: MailConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    async def send(self, message: MailMessage) -> str:
        payload: dict[str, Any] = {
            "from": self._config.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.body,
        }
        if message.attachments:
            payload["attachments"] = [
                {
                    "filename": a.filename,
                    "content": base64.b64encode(a.content).decode("ascii"),
                    "content_type": a.content_type,
                }
                for a in message.attachments
            ]

        try:
            async with httpx.AsyncClient(
                base_url=self._config.base_url.rstrip("/"),
                timeout=self._config.timeout,
                transport=self._transport,
                headers={"Authorization": f"Bearer {self._config.api_key}"},
            ) as client:
                response = await client.post("/emails", json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise DeliveryError(
                f"Resend rejected message ({e.response.status_code}): {e.response.text[:300]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DeliveryError(f"Resend request failed: {e}") from e

        message_id = str(body.get("id", "")) if isinstance(body, dict) else ""
        log.info("Mail sent to %s: id=%s attachments=%d", message.to, message_id, len(message.attachments))
        return message_id
