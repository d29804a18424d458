"""Tests for lmn-fulfillment data models."""

from __future__ import annotations

import base64
from datetime import date
from typing import Any

import pytest
from pydantic import ValidationError as PydanticValidationError

from lmn_fulfillment.models import (
    ATTESTATION_PHRASE,
    AssembledDocument,
    CompletionEvent,
    KnowledgeSearchResult,
    LetterContent,
    PatientDisplayInfo,
    intervention_period,
)


class TestLetterContent:
    def test_all_fields(self, letter_payload: dict[str, Any]) -> None:
        letter = LetterContent.model_validate(letter_payload)
        assert letter.icd_codes == ["F43.9"]
        assert letter.condition == ["Stress"]
        assert letter.conclusion.endswith(ATTESTATION_PHRASE)

    def test_spaced_and_titled_keys(self) -> None:
        letter = LetterContent.model_validate(
            {
                "Reported Diagnosis": "Stress",
                "Treatment": "Yoga",
                "Clinical Rationale": "PMID 12345678",
                "Conclusion": "Done.",
            }
        )
        assert letter.reported_diagnosis == "Stress"
        assert letter.clinical_rationale == "PMID 12345678"

    @pytest.mark.parametrize(
        "key",
        [
            "role_in_health",
            "role_that_the_service_plays",
            "role_the_service_provides",
            "Role that the service plays in helping with the patient's health",
        ],
    )
    def test_role_aliases(self, key: str) -> None:
        letter = LetterContent.model_validate(
            {"treatment": "Yoga", "conclusion": "Done.", key: "Reduces stress."}
        )
        assert letter.role_in_health == "Reduces stress."

    def test_missing_treatment_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            LetterContent.model_validate({"conclusion": "Done."})

    def test_blank_conclusion_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            LetterContent.model_validate({"treatment": "Yoga", "conclusion": "   "})

    def test_list_narrative_is_joined(self) -> None:
        letter = LetterContent.model_validate(
            {"treatment": ["Yoga twice weekly", "Breathing drills"], "conclusion": "Done."}
        )
        assert letter.treatment == "Yoga twice weekly; Breathing drills"

    def test_single_code_string_becomes_list(self) -> None:
        letter = LetterContent.model_validate(
            {"treatment": "Yoga", "conclusion": "Done.", "icd_codes": "F43.9"}
        )
        assert letter.icd_codes == ["F43.9"]

    def test_compliant_letter_has_no_warnings(self, letter_payload: dict[str, Any]) -> None:
        assert LetterContent.model_validate(letter_payload).compliance_warnings() == []

    def test_compliance_warnings(self) -> None:
        letter = LetterContent.model_validate(
            {"treatment": "Yoga", "clinical_rationale": "Studies agree.", "conclusion": "Approve it."}
        )
        warnings = letter.compliance_warnings()
        assert "clinical rationale cites no PMID" in warnings
        assert "conclusion lacks the attestation phrase" in warnings


class TestKnowledgeSearchResult:
    @pytest.mark.parametrize("raw, expected", [(1.7, 1.0), (-0.2, 0.0), (0.42, 0.42), (None, 0.0)])
    def test_score_clamped(self, raw: Any, expected: float) -> None:
        result = KnowledgeSearchResult(icd_code="F43.9", relevance_score=raw)
        assert result.relevance_score == pytest.approx(expected)


class TestInterventionPeriod:
    def test_one_year(self) -> None:
        assert intervention_period(date(2026, 3, 14)) == (date(2026, 3, 14), date(2027, 3, 14))

    def test_leap_day(self) -> None:
        assert intervention_period(date(2028, 2, 29)) == (date(2028, 2, 29), date(2029, 2, 28))

    def test_defaults_to_today(self) -> None:
        start, _ = intervention_period()
        assert start == date.today()


class TestPatientDisplayInfo:
    def test_file_name(self, patient: PatientDisplayInfo) -> None:
        assert patient.file_name(date(2026, 10, 19)) == "LMN_Jane_Doe_2026-10-19.pdf"

    def test_file_name_single_name(self) -> None:
        assert PatientDisplayInfo(name="Cher").file_name(date(2026, 1, 2)) == "LMN_Cher_2026-01-02.pdf"

    def test_file_name_without_name(self) -> None:
        assert PatientDisplayInfo().file_name(date(2026, 1, 2)) == "LMN_Patient_2026-01-02.pdf"

    def test_file_name_strips_unsafe_characters(self) -> None:
        info = PatientDisplayInfo(name="Zoë O'Neil/Smith")
        assert info.file_name(date(2026, 1, 2)) == "LMN_Zo_ONeilSmith_2026-01-02.pdf"


class TestAssembledDocument:
    def test_to_base64(self) -> None:
        doc = AssembledDocument(content=b"%PDF-1.4", page_count=1)
        assert base64.b64decode(doc.to_base64()) == b"%PDF-1.4"


class TestCompletionEvent:
    def test_nested_payload(self) -> None:
        event = CompletionEvent.from_payload(
            {
                "event": {"type": "document_completed", "time": 1700000000, "hash": "abc"},
                "data": {"object": {"id": "doc_123", "recipients": [{"email": "np@example.com"}]}},
            }
        )
        assert event.event_type == "document_completed"
        assert event.document_id == "doc_123"
        assert event.event_time == "1700000000"
        assert event.recipients == [{"email": "np@example.com"}]

    def test_flat_payload(self) -> None:
        event = CompletionEvent.from_payload({"event_type": "document_viewed", "document_id": "doc_9"})
        assert (event.event_type, event.document_id) == ("document_viewed", "doc_9")

    def test_empty_payload(self) -> None:
        event = CompletionEvent.from_payload({})
        assert event.event_type == ""
        assert event.document_id == ""
