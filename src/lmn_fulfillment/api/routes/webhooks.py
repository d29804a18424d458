"""Counter-signing webhook endpoints."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from pydantic import BaseModel

log = logging.getLogger(__name__)

router = APIRouter(tags=["webhooks"])


class WebhookRegistration(BaseModel):
    """Callback URL to register with the counter-signing service."""

    callback_url: str


@router.post("/webhooks/signwell")
async def signwell_event(req: Request) -> dict[str, Any]:
    """Completion notifications. Always acknowledged with 200."""
    try:
        payload = await req.json()
    except ValueError:
        log.warning("Webhook body is not JSON; acknowledging without processing")
        return {"received": True, "state": "ignored"}
    if not isinstance(payload, dict):
        log.warning("Webhook body is not a JSON object; acknowledging without processing")
        return {"received": True, "state": "ignored"}

    try:
        return await req.app.state.service.handle_completion_event(payload)
    except Exception:
        log.exception("Webhook processing failed")
        return {"received": True, "state": "error"}


@router.post("/webhooks/register")
async def register_webhook(request: WebhookRegistration, req: Request) -> dict[str, Any]:
    """Register this deployment's callback URL with the counter-signing service."""
    hook = await req.app.state.service.signatures.create_webhook(request.callback_url)
    log.info("Registered webhook %s -> %s", hook.get("id", "?"), request.callback_url)
    return {"registered": True, "webhook": hook}
