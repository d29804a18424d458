"""Fulfillment service: the pipeline's entry points for API and CLI callers.

``generate_letter`` → ``assemble`` → ``dispatch_for_signature`` run inside
one request; ``handle_completion_event`` runs later, once per webhook.
Each run is independent and holds no state between calls apart from the
delivery ledger.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel

from lmn_fulfillment.agents.factory import create_letter_agent
from lmn_fulfillment.assembly.engine import DocumentAssembler
from lmn_fulfillment.core.config import AppSettings
from lmn_fulfillment.correlation.correlator import CompletionCorrelator
from lmn_fulfillment.correlation.ledger import DeliveryLedger
from lmn_fulfillment.exceptions import DispatchError
from lmn_fulfillment.formatters.letter_pdf import LetterPDFFormatter
from lmn_fulfillment.hooks.cost_hook import get_current_usage, reset_usage
from lmn_fulfillment.hooks.logging_config import bind_request_context, clear_request_context
from lmn_fulfillment.inference.protocols import IChatBackend
from lmn_fulfillment.intake.validator import validate_intake
from lmn_fulfillment.mail.protocols import IMailer
from lmn_fulfillment.models import (
    AssembledDocument,
    IntakeRecord,
    PatientDisplayInfo,
    Recipient,
    SignatureRequest,
)
from lmn_fulfillment.payments.protocols import IPurchaserDirectory
from lmn_fulfillment.search.client import KnowledgeSearchClient
from lmn_fulfillment.search.protocols import IKnowledgeIndex
from lmn_fulfillment.signing.dispatcher import SignatureDispatcher
from lmn_fulfillment.signing.protocols import ISignatureService
from lmn_fulfillment.signing.signers import SignerDirectory

log = logging.getLogger(__name__)


class Draft(BaseModel):
    """An assembled letter that has not been sent for signature."""

    intake: IntakeRecord
    patient: PatientDisplayInfo
    document: AssembledDocument
    file_name: str


class FulfillmentResult(BaseModel):
    """Summary returned after a letter is dispatched for signature."""

    document_id: str
    file_name: str
    recipient: Recipient
    page_count: int
    form_included: bool
    stage: str
    total_tokens: int = 0


class FulfillmentService:
    """Wires the pipeline stages together behind four entry points."""

    def __init__(
        self,
        settings: AppSettings,
        *,
        index: IKnowledgeIndex,
        signatures: ISignatureService,
        purchasers: IPurchaserDirectory,
        mailer: IMailer,
        ledger: DeliveryLedger,
        backend: IChatBackend | None = None,
        assembler: DocumentAssembler | None = None,
        signers: SignerDirectory | None = None,
    ) -> None:
        self._settings = settings
        self._search = KnowledgeSearchClient(index, default_top_k=settings.search.default_top_k)
        self._backend = backend
        self._assembler = assembler or DocumentAssembler(
            formatter=LetterPDFFormatter(settings.pdf, settings.forms),
            config=settings.forms,
        )
        self._signatures = signatures
        self._dispatcher = SignatureDispatcher(signatures, settings.signing)
        self._signers = signers
        self._correlator = CompletionCorrelator(
            purchasers,
            signatures,
            mailer,
            ledger,
            mail=settings.mail,
            webhook_secret=settings.signing.webhook_secret,
        )

    @property
    def search_client(self) -> KnowledgeSearchClient:
        return self._search

    @property
    def signatures(self) -> ISignatureService:
        return self._signatures

    # ── Entry points ─────────────────────────────────────────────────

    async def generate_letter(self, intake: Any, *, run_id: str = "") -> str:
        """Validate *intake* and return the model's raw letter text.

        Raises:
            ValidationError: intake failed the schema.
            GenerationError: the model backend was unavailable.
        """
        record = validate_intake(intake)
        agent = create_letter_agent(
            self._settings,
            self._search,
            backend=self._backend,
            run_id=run_id,
            administrator=record.hsa_provider,
        )
        run = await agent.run(record)
        return run.text

    def assemble(
        self,
        letter_text: str,
        patient: PatientDisplayInfo,
        *,
        issued_on: date | None = None,
    ) -> AssembledDocument:
        """Render and merge; ``.to_base64()`` gives the transport form."""
        return self._assembler.assemble(letter_text, patient, issued_on=issued_on)

    async def dispatch_for_signature(
        self,
        document: bytes | str,
        recipient: Recipient,
        *,
        file_name: str,
        patient_name: str = "",
        business_name: str = "",
    ) -> SignatureRequest:
        """Submit for counter-signature. Raises ``DispatchError``."""
        return await self._dispatcher.dispatch(
            document,
            recipient,
            file_name=file_name,
            patient_name=patient_name,
            business_name=business_name,
        )

    async def handle_completion_event(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Process one webhook. The returned acknowledgment never signals failure."""
        outcome = await self._correlator.handle(payload)
        log.info(
            "Completion event %s for %s finished in state %s (%s)",
            outcome.event_type or "?", outcome.document_id or "?",
            outcome.state.value, outcome.detail or "ok",
        )
        return {"received": True, "state": outcome.state.value}

    # ── End-to-end ───────────────────────────────────────────────────

    async def draft(
        self,
        intake: Any,
        *,
        patient_email: str = "",
        issued_on: date | None = None,
        run_id: str = "",
    ) -> Draft:
        """Intake → letter → document, stopping short of dispatch."""
        record = validate_intake(intake)
        letter_text = await self.generate_letter(record, run_id=run_id)
        patient = PatientDisplayInfo.from_intake(record, email=patient_email)
        document = self.assemble(letter_text, patient, issued_on=issued_on)
        return Draft(
            intake=record,
            patient=patient,
            document=document,
            file_name=patient.file_name(issued_on),
        )

    async def fulfil(
        self,
        intake: Any,
        *,
        signer: Recipient | None = None,
        patient_email: str = "",
    ) -> FulfillmentResult:
        """Intake → letter → document → signature request.

        When *signer* is omitted one is drawn from the signer directory for
        the patient's state.
        """
        run_id = uuid.uuid4().hex[:12]
        bind_request_context(run_id=run_id)
        reset_usage()
        try:
            draft = await self.draft(intake, patient_email=patient_email, run_id=run_id)
            recipient = signer or self._select_signer(draft.intake.state)
            request = await self.dispatch_for_signature(
                draft.document.content,
                recipient,
                file_name=draft.file_name,
                patient_name=draft.patient.name,
                business_name=draft.patient.business_name,
            )
            usage = get_current_usage()
            log.info(
                "Fulfillment run %s dispatched %s (%d pages, stage=%s, tokens=%d)",
                run_id, request.document_id, draft.document.page_count,
                draft.document.stage, usage.total_tokens,
            )
            return FulfillmentResult(
                document_id=request.document_id,
                file_name=draft.file_name,
                recipient=recipient,
                page_count=draft.document.page_count,
                form_included=draft.document.form_included,
                stage=draft.document.stage,
                total_tokens=usage.total_tokens,
            )
        finally:
            clear_request_context()

    def _select_signer(self, state: str) -> Recipient:
        if self._signers is None:
            raise DispatchError("No signer given and no signer directory configured")
        return self._signers.select(state).to_recipient()


def create_fulfillment_service(settings: AppSettings) -> FulfillmentService:
    """Build a service wired to the configured external collaborators."""
    from lmn_fulfillment.mail.resend import ResendMailer
    from lmn_fulfillment.payments.memory_directory import MemoryPurchaserDirectory
    from lmn_fulfillment.persistence import create_record_store
    from lmn_fulfillment.search import create_knowledge_index
    from lmn_fulfillment.signing.signwell import SignWellClient

    purchasers: IPurchaserDirectory
    if settings.payments.backend == "stripe":
        from lmn_fulfillment.payments.stripe_directory import StripePurchaserDirectory

        purchasers = StripePurchaserDirectory(settings.payments)
    else:
        purchasers = MemoryPurchaserDirectory(
            document_key=settings.payments.document_key,
            contact_key=settings.payments.contact_key,
        )

    signers = None
    if settings.signing.signers_path is not None:
        signers = SignerDirectory.from_json_file(settings.signing.signers_path)

    return FulfillmentService(
        settings,
        index=create_knowledge_index(settings.search),
        signatures=SignWellClient(settings.signing),
        purchasers=purchasers,
        mailer=ResendMailer(settings.mail),
        ledger=DeliveryLedger(create_record_store(settings.persistence)),
        signers=signers,
    )
