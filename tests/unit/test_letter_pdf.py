"""Tests for the letter PDF renderer."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import pytest

from lmn_fulfillment.core.config import FormsConfig, PDFFormattingConfig
from lmn_fulfillment.formatters.letter_pdf import LetterPDFFormatter
from lmn_fulfillment.formatters.protocols import IOutputFormatter
from lmn_fulfillment.models import LetterContent, PatientDisplayInfo
from tests.fakes.pdf_builders import normalized_text, page_texts

ISSUED = date(2026, 10, 19)


def _squash(text: str) -> str:
    return " ".join(text.split())


@pytest.fixture
def formatter() -> LetterPDFFormatter:
    return LetterPDFFormatter()


@pytest.fixture
def letter(letter_payload: dict[str, Any]) -> LetterContent:
    return LetterContent.model_validate(letter_payload)


class TestProtocol:
    def test_satisfies_formatter_protocol(self, formatter: LetterPDFFormatter) -> None:
        assert isinstance(formatter, IOutputFormatter)
        assert formatter.content_type == "application/pdf"


class TestLetterContentRendering:
    def test_produces_pdf(self, formatter: LetterPDFFormatter, letter: LetterContent,
                          patient: PatientDisplayInfo) -> None:
        data = formatter.format(letter, patient=patient, issued_on=ISSUED)
        assert data.startswith(b"%PDF")

    def test_every_section_verbatim(self, formatter: LetterPDFFormatter, letter: LetterContent,
                                    patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        for field in ("reported_diagnosis", "treatment", "clinical_rationale", "role_in_health", "conclusion"):
            assert _squash(getattr(letter, field)) in text

    def test_heading_block(self, formatter: LetterPDFFormatter, letter: LetterContent,
                           patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        assert "LETTER OF MEDICAL NECESSITY" in text
        assert "October 19, 2026" in text
        assert "To: HealthEquity HSA/FSA Administrator" in text
        assert "From: Medical Provider" in text
        assert "Subject: Letter of Medical Necessity for Jane Q Doe" in text

    def test_numbered_sections_in_order(self, formatter: LetterPDFFormatter, letter: LetterContent,
                                        patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        headings = [
            "1. REPORTED DIAGNOSIS",
            "2. TREATMENT RECOMMENDATION",
            "3. CLINICAL RATIONALE",
            "4. ROLE IN PATIENT HEALTH MANAGEMENT",
            "5. CONCLUSION",
        ]
        positions = [text.index(h) for h in headings]
        assert positions == sorted(positions)

    def test_diagnosis_codes_and_conditions(self, formatter: LetterPDFFormatter, letter: LetterContent,
                                            patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        assert "Condition(s): Stress" in text
        assert "ICD-10 Code(s): F43.9" in text

    def test_service_line_and_period(self, formatter: LetterPDFFormatter, letter: LetterContent,
                                     patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        assert "Products and/or services recommended: Yoga classes at Lotus Studio" in text
        assert "Intervention start date: 10/19/2026" in text
        assert "End date: 10/19/2027" in text

    def test_default_service(self, formatter: LetterPDFFormatter, letter: LetterContent) -> None:
        text = normalized_text(formatter.format(letter, patient=PatientDisplayInfo(), issued_on=ISSUED))
        assert "Products and/or services recommended: Wellness service/product" in text

    def test_signer_tokens_left_unfilled(self, formatter: LetterPDFFormatter, letter: LetterContent,
                                         patient: PatientDisplayInfo) -> None:
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        for label in ("Provider Name", "Address", "License Number", "Phone", "Email"):
            assert f"{label}: {{{{text}}}}" in text
        assert "Signature: {{signature}}" in text
        assert "Date: {{date}}" in text

    def test_custom_tokens(self, letter: LetterContent, patient: PatientDisplayInfo) -> None:
        formatter = LetterPDFFormatter(forms=FormsConfig(text_token="[[t]]", signature_token="[[s]]"))
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        assert "Provider Name: [[t]]" in text
        assert "Signature: [[s]]" in text


class TestEmptySections:
    def test_empty_sections_skipped_and_renumbered(self, formatter: LetterPDFFormatter) -> None:
        letter = LetterContent(treatment="Walk daily.", conclusion="Approve.")
        text = normalized_text(formatter.format(letter, patient=PatientDisplayInfo(), issued_on=ISSUED))
        assert "1. TREATMENT RECOMMENDATION" in text
        assert "2. CONCLUSION" in text
        assert "REPORTED DIAGNOSIS" not in text
        assert "CLINICAL RATIONALE" not in text
        assert "ROLE IN PATIENT HEALTH MANAGEMENT" not in text

    def test_patient_conditions_fill_diagnosis(self, formatter: LetterPDFFormatter,
                                               patient: PatientDisplayInfo) -> None:
        letter = LetterContent(treatment="Walk daily.", conclusion="Approve.")
        text = normalized_text(formatter.format(letter, patient=patient, issued_on=ISSUED))
        assert "1. REPORTED DIAGNOSIS" in text
        assert "Condition(s): stress" in text


class TestSanitization:
    def test_markup_characters_escaped(self, formatter: LetterPDFFormatter) -> None:
        letter = LetterContent(treatment="Dose < 5 mg & > 1 mg <b>daily</b>", conclusion="Approve.")
        text = normalized_text(formatter.format(letter, issued_on=ISSUED))
        assert "Dose < 5 mg & > 1 mg <b>daily</b>" in text

    def test_typographic_characters_replaced(self, formatter: LetterPDFFormatter) -> None:
        letter = LetterContent(
            treatment="Low‑impact yoga — “gentle” flow…",
            conclusion="Approve.",
        )
        text = normalized_text(formatter.format(letter, issued_on=ISSUED))
        assert 'Low-impact yoga - "gentle" flow...' in text


class TestFooter:
    def test_single_page_has_no_footer(self, formatter: LetterPDFFormatter, letter: LetterContent) -> None:
        pages = page_texts(formatter.format(letter, issued_on=ISSUED))
        assert len(pages) == 1
        assert "Page 1" not in pages[0]

    def test_footer_on_following_pages(self, formatter: LetterPDFFormatter) -> None:
        long_text = " ".join(["Structured exercise improves outcomes."] * 250)
        letter = LetterContent(treatment=long_text, conclusion="Approve.")
        pages = page_texts(formatter.format(letter, issued_on=ISSUED))
        total = len(pages)
        assert total >= 2
        assert "Page 1 of" not in pages[0]
        disclaimer = PDFFormattingConfig().disclaimer
        for number, page in enumerate(pages[1:], start=2):
            squashed = _squash(page)
            assert f"Page {number} of {total}" in squashed
            assert disclaimer in squashed


class TestConfig:
    def test_a4_page_size(self, letter: LetterContent) -> None:
        import fitz

        formatter = LetterPDFFormatter(PDFFormattingConfig(page_size="a4"))
        doc = fitz.open(stream=formatter.format(letter, issued_on=ISSUED), filetype="pdf")
        try:
            assert round(doc[0].rect.width) == 595
        finally:
            doc.close()

    def test_format_to_file(self, formatter: LetterPDFFormatter, letter: LetterContent,
                            tmp_path: Path) -> None:
        path = formatter.format_to_file(letter, tmp_path / "letter.pdf", issued_on=ISSUED)
        assert path.read_bytes().startswith(b"%PDF")
