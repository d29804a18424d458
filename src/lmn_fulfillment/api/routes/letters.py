"""Letter endpoints: full fulfillment and PDF preview."""

from __future__ import annotations

from io import BytesIO
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from lmn_fulfillment.models import Recipient
from lmn_fulfillment.services.fulfillment_service import FulfillmentResult, FulfillmentService

router = APIRouter(tags=["letters"])


class LetterRequest(BaseModel):
    """Request to generate a letter and send it for counter-signature.

    ``intake`` is validated by the pipeline itself so that every offending
    field is reported together.
    """

    intake: dict[str, Any]
    patient_email: str = ""
    signer: Recipient | None = None


class PreviewRequest(BaseModel):
    """Request to generate and assemble a letter without dispatching it."""

    intake: dict[str, Any]
    patient_email: str = ""


def _service(req: Request) -> FulfillmentService:
    return req.app.state.service


@router.post("/letters", response_model=FulfillmentResult)
async def create_letter(request: LetterRequest, req: Request) -> FulfillmentResult:
    """Validate, generate, assemble and dispatch for signature."""
    return await _service(req).fulfil(
        request.intake,
        signer=request.signer,
        patient_email=request.patient_email,
    )


@router.post("/letters/preview")
async def preview_letter(request: PreviewRequest, req: Request) -> StreamingResponse:
    """Validate, generate and assemble; return the PDF without dispatching."""
    draft = await _service(req).draft(request.intake, patient_email=request.patient_email)
    document = draft.document
    return StreamingResponse(
        BytesIO(document.content),
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{draft.file_name}"',
            "X-LMN-Page-Count": str(document.page_count),
            "X-LMN-Stage": document.stage,
        },
    )
