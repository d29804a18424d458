"""SignWell REST client."""

from __future__ import annotations

import base64
import logging
from typing import Any

import httpx

from lmn_fulfillment.core.config import SigningConfig
from lmn_fulfillment.exceptions import DispatchError

log = logging.getLogger(__name__)


class SignWellClient:
    """Creates signature documents and downloads completed PDFs.

    No retries: a failed submission is surfaced so the caller can rerun the
    pipeline from intake.
    """

    def __init__(
        self,
        config: SigningConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._config.base_url.rstrip("/"),
            timeout=self._config.timeout,
            transport=self._transport,
            headers={"X-Api-Key": self._config.api_key, "Accept": "application/json"},
        )

    def build_document_payload(
        self,
        file_bytes: bytes,
        file_name: str,
        recipient_name: str,
        recipient_email: str,
        *,
        subject: str,
        message: str,
        document_name: str = "",
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "test_mode": self._config.test_mode,
            "name": document_name or file_name,
            "subject": subject,
            "message": message,
            "draft": False,
            "reminders": self._config.reminders,
            "text_tags": self._config.text_tags,
            "recipients": [{"id": "1", "name": recipient_name, "email": recipient_email}],
            "files": [
                {
                    "name": file_name,
                    "file_base64": base64.b64encode(file_bytes).decode("ascii"),
                }
            ],
        }
        if not self._config.text_tags:
            # Without text tags the signer needs at least one explicit field
            payload["fields"] = [
                [
                    {
                        "x": 0,
                        "y": 0,
                        "page": 1,
                        "recipient_id": "1",
                        "type": "signature",
                        "required": True,
                    }
                ]
            ]
        return payload

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
        payload = self.build_document_payload(
            file_bytes,
            file_name,
            recipient_name,
            recipient_email,
            subject=subject,
            message=message,
            document_name=document_name,
        )
        try:
            async with self._client() as client:
                response = await client.post("/documents", json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            raise DispatchError(
                f"SignWell rejected document ({e.response.status_code}): {e.response.text[:300]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DispatchError(f"SignWell request failed: {e}") from e

        document_id = body.get("id") if isinstance(body, dict) else None
        if not document_id:
            raise DispatchError("SignWell response carried no document id")
        log.info("SignWell document created: id=%s recipient=%s", document_id, recipient_email)
        return str(document_id)

    async def fetch_completed_document(self, document_id: str) -> bytes:
        try:
            async with self._client() as client:
                response = await client.get(
                    f"/documents/{document_id}/completed_pdf",
                    params={"url_only": "false", "audit_page": "false"},
                    headers={"Accept": "application/pdf"},
                    follow_redirects=True,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DispatchError(
                f"Completed PDF for {document_id} unavailable ({e.response.status_code})"
            ) from e
        except httpx.HTTPError as e:
            raise DispatchError(f"Completed PDF download failed for {document_id}: {e}") from e
        return response.content

    async def create_webhook(self, callback_url: str) -> dict[str, Any]:
        """Register *callback_url* for document events."""
        try:
            async with self._client() as client:
                response = await client.post("/hooks", json={"callback_url": callback_url})
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise DispatchError(
                f"Webhook registration failed ({e.response.status_code}): {e.response.text[:300]}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise DispatchError(f"Webhook registration failed: {e}") from e
