"""Integration tests for the full fulfillment pipeline.

Real assembly, search, correlation and ledger; scripted model, signature
service and mailer.
"""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from lmn_fulfillment.core.config import AppSettings, FormsConfig, SigningConfig
from lmn_fulfillment.correlation import DeliveryLedger
from lmn_fulfillment.exceptions import GenerationError, ValidationError
from lmn_fulfillment.models import Recipient
from lmn_fulfillment.payments import MemoryPurchaserDirectory
from lmn_fulfillment.persistence import FileRecordStore
from lmn_fulfillment.services.fulfillment_service import FulfillmentService
from lmn_fulfillment.signing import Signer, SignerDirectory
from tests.fakes.fake_chat_backend import FakeChatBackend, final_turn, tool_turn
from tests.fakes.fake_knowledge_index import seeded_index
from tests.fakes.fake_mailer import FakeMailer
from tests.fakes.fake_signature_service import SIGNED_PDF, FakeSignatureService
from tests.fakes.pdf_builders import normalized_text, page_texts

SIGNER = Recipient(name="Dr. Lee", email="lee@clinic.test")


class Pipeline:
    """Service plus handles on every fake collaborator."""

    def __init__(
        self,
        settings: AppSettings,
        turns: list,
        *,
        ledger_path: Path,
        signers: SignerDirectory | None = None,
    ) -> None:
        self.settings = settings
        self.backend = FakeChatBackend(turns)
        self.signatures = FakeSignatureService()
        self.mailer = FakeMailer()
        self.purchasers = MemoryPurchaserDirectory()
        self.ledger = DeliveryLedger(FileRecordStore(ledger_path))
        self.signers = signers

    async def build(self) -> FulfillmentService:
        return FulfillmentService(
            self.settings,
            index=await seeded_index(),
            signatures=self.signatures,
            purchasers=self.purchasers,
            mailer=self.mailer,
            ledger=self.ledger,
            backend=self.backend,
            signers=self.signers,
        )


def _completion(document_id: str) -> dict[str, Any]:
    return {
        "event": {"type": "document_completed", "time": 1718000000},
        "data": {"object": {"id": document_id}},
    }


class TestLetterWithForm:
    @pytest.mark.asyncio
    async def test_form_first_then_letter_within_cap(
        self, settings: AppSettings, intake_data: dict[str, Any], letter_text: str, tmp_path: Path
    ) -> None:
        pipeline = Pipeline(settings, [tool_turn("stress"), final_turn(letter_text)], ledger_path=tmp_path / "ledger")
        service = await pipeline.build()

        draft = await service.draft(intake_data, patient_email="jane@example.com", issued_on=date(2025, 3, 14))

        assert draft.file_name == "LMN_Jane_Doe_2025-03-14.pdf"
        document = draft.document
        assert document.form_included is True
        assert document.stage == "merged"
        assert 2 <= document.page_count <= 3

        texts = page_texts(document.content)
        assert len(texts) == document.page_count
        assert "ADMIN FORM 1" in texts[0]
        assert "ADMIN FORM 2" not in " ".join(texts)
        assert "LETTER OF MEDICAL NECESSITY" in texts[1]

        letter = normalized_text(document.content)
        assert "PMID: 28963884" in letter
        assert "Twice-weekly supervised yoga sessions" in letter

        tool_message = pipeline.backend.calls[1]["messages"][-1]
        assert json.loads(tool_message["content"])["search_results"][0]["icd_code"] == "F43.9"

    @pytest.mark.asyncio
    async def test_administrator_without_form(
        self, settings: AppSettings, intake_data: dict[str, Any], letter_text: str, tmp_path: Path
    ) -> None:
        intake_data["hsaProvider"] = "Fidelity"
        service = await Pipeline(settings, [final_turn(letter_text)], ledger_path=tmp_path).build()
        document = (await service.draft(intake_data)).document
        assert document.form_included is False
        assert document.stage == "letter_capped"
        assert document.page_count <= settings.forms.max_pages

    @pytest.mark.asyncio
    async def test_overlong_letter_is_capped(
        self, intake_data: dict[str, Any], letter_payload: dict[str, Any], forms_dir: Path, tmp_path: Path
    ) -> None:
        letter_payload["clinical_rationale"] = " ".join(
            f"Finding {n}: structured movement lowers perceived stress (PMID: 28963884)." for n in range(400)
        )
        settings = AppSettings(forms=FormsConfig(forms_dir=forms_dir, max_pages=2))
        service = await Pipeline(settings, [final_turn(json.dumps(letter_payload))], ledger_path=tmp_path).build()
        document = (await service.draft(intake_data)).document
        assert document.page_count == 2
        assert document.form_included is True


class TestGenerationFailure:
    @pytest.mark.asyncio
    async def test_no_structure_never_dispatches(
        self, settings: AppSettings, intake_data: dict[str, Any], tmp_path: Path
    ) -> None:
        pipeline = Pipeline(settings, [final_turn("I'm sorry, I cannot write that letter.")], ledger_path=tmp_path)
        service = await pipeline.build()
        with pytest.raises(GenerationError, match="incomplete"):
            await service.fulfil(intake_data, signer=SIGNER)
        assert pipeline.signatures.created == []

    @pytest.mark.asyncio
    async def test_missing_conclusion_never_dispatches(
        self, settings: AppSettings, intake_data: dict[str, Any], letter_payload: dict[str, Any], tmp_path: Path
    ) -> None:
        del letter_payload["conclusion"]
        pipeline = Pipeline(settings, [final_turn(json.dumps(letter_payload))], ledger_path=tmp_path)
        with pytest.raises(GenerationError):
            await (await pipeline.build()).fulfil(intake_data, signer=SIGNER)
        assert pipeline.signatures.created == []

    @pytest.mark.asyncio
    async def test_invalid_intake_never_reaches_model(self, settings: AppSettings, tmp_path: Path) -> None:
        pipeline = Pipeline(settings, [final_turn("{}")], ledger_path=tmp_path)
        with pytest.raises(ValidationError) as exc_info:
            await (await pipeline.build()).fulfil({"hsaProvider": "", "state": "N"}, signer=SIGNER)
        assert set(exc_info.value.fields) == {"age", "hsa_provider", "state"}
        assert pipeline.backend.calls == []


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_fulfil_then_complete_then_email(
        self, settings: AppSettings, intake_data: dict[str, Any], letter_text: str, tmp_path: Path
    ) -> None:
        signers = SignerDirectory([Signer(name="Dr. Lee", email="lee@clinic.test", licensed_states=["NY"])])
        pipeline = Pipeline(
            settings, [tool_turn("stress"), final_turn(letter_text)], ledger_path=tmp_path / "ledger", signers=signers
        )
        service = await pipeline.build()

        result = await service.fulfil(intake_data, patient_email="jane@example.com")

        assert result.document_id == "doc_001"
        assert result.recipient == SIGNER
        assert result.total_tokens == 80 + 10 + 100 + 50
        created = pipeline.signatures.created[0]
        assert created.file_name == result.file_name
        assert created.document_name == "LMN for Jane Q Doe"
        assert "ADMIN FORM 1" in page_texts(created.file_bytes)[0]

        # Payment record written at checkout references the signature document
        pipeline.purchasers.add(
            {
                "id": "pi_123",
                "metadata": {"signwellDocumentGroupId": result.document_id, "customerEmail": "jane@example.com"},
            }
        )

        ack = await service.handle_completion_event(_completion(result.document_id))
        assert ack == {"received": True, "state": "done"}

        message = pipeline.mailer.sent[0]
        assert message.to == "jane@example.com"
        assert message.attachments[0].content == SIGNED_PDF
        assert pipeline.ledger.was_delivered("doc_001")

        again = await service.handle_completion_event(_completion(result.document_id))
        assert again["state"] == "done_without_delivery"
        assert len(pipeline.mailer.sent) == 1

    @pytest.mark.asyncio
    async def test_ledger_survives_restart(
        self, settings: AppSettings, letter_text: str, tmp_path: Path
    ) -> None:
        ledger_path = tmp_path / "ledger"
        first = Pipeline(settings, [final_turn(letter_text)], ledger_path=ledger_path)
        first.purchasers.add({"id": "pi_1", "metadata": {"signwellDocumentGroupId": "doc_777"}, "receipt_email": "a@example.com"})
        await (await first.build()).handle_completion_event(_completion("doc_777"))
        assert len(first.mailer.sent) == 1

        second = Pipeline(settings, [final_turn(letter_text)], ledger_path=ledger_path)
        second.purchasers.add({"id": "pi_1", "metadata": {"signwellDocumentGroupId": "doc_777"}, "receipt_email": "a@example.com"})
        ack = await (await second.build()).handle_completion_event(_completion("doc_777"))
        assert ack["state"] == "done_without_delivery"
        assert second.mailer.sent == []

    @pytest.mark.asyncio
    async def test_unmatched_completion_sends_nothing(
        self, settings: AppSettings, letter_text: str, tmp_path: Path
    ) -> None:
        pipeline = Pipeline(settings, [final_turn(letter_text)], ledger_path=tmp_path)
        ack = await (await pipeline.build()).handle_completion_event(_completion("doc_123"))
        assert ack == {"received": True, "state": "done_without_delivery"}
        assert pipeline.mailer.attempts == 0

    @pytest.mark.asyncio
    async def test_signed_webhook_secret(
        self, intake_data: dict[str, Any], letter_text: str, forms_config: FormsConfig, tmp_path: Path
    ) -> None:
        settings = AppSettings(forms=forms_config, signing=SigningConfig(webhook_secret="whsec"))
        pipeline = Pipeline(settings, [final_turn(letter_text)], ledger_path=tmp_path)
        pipeline.purchasers.add({"id": "pi_1", "metadata": {"signwellDocumentGroupId": "doc_5"}, "receipt_email": "a@example.com"})
        ack = await (await pipeline.build()).handle_completion_event(_completion("doc_5"))
        assert ack["state"] == "ignored"
        assert pipeline.mailer.sent == []
