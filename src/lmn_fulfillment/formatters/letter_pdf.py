"""Letter of Medical Necessity PDF renderer using reportlab.

Renders a ``LetterContent`` into the fixed letter layout: heading block,
numbered narrative sections, recommended service, intervention period and
an unfilled signer block.  Pages after the first carry a running footer
with ``Page X of Y`` and the reimbursement disclaimer.
"""

from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from pathlib import Path
from typing import Any, Callable
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import BaseDocTemplate, Flowable, Frame, PageTemplate, Spacer
from reportlab.platypus import Paragraph as _RawParagraph

from lmn_fulfillment.core.config import FormsConfig, PDFFormattingConfig
from lmn_fulfillment.formatters.pdf_styles import (
    ADDRESSEE,
    DATE_FORMAT,
    FOOTER_TEXT_COLOR,
    LETTER_TITLE,
    PERIOD_DATE_FORMAT,
    SECTION_TITLES,
    SENDER,
    SIGNER_FIELDS,
    SUBJECT_TEMPLATE,
    TEXT_COLOR,
)
from lmn_fulfillment.models import LetterContent, PatientDisplayInfo, intervention_period

log = logging.getLogger(__name__)

# ── Unicode sanitization ────────────────────────────────────────────
# The base-14 fonts lack glyphs for several characters that LLMs emit.
# Text is sanitized and XML-escaped at the Paragraph boundary.

_UNICODE_REPLACEMENTS: dict[str, str] = {
    "\u2011": "-",       # non-breaking hyphen
    "\u2010": "-",       # hyphen
    "\u2012": "-",       # figure dash
    "\u2013": "-",       # en-dash
    "\u2014": "-",       # em-dash
    "\u202f": " ",       # narrow no-break space
    "\u00a0": " ",       # non-breaking space
    "\u2009": " ",       # thin space
    "\u2018": "'",       # left single quote
    "\u2019": "'",       # right single quote
    "\u201c": '"',       # left double quote
    "\u201d": '"',       # right double quote
    "\u2026": "...",     # ellipsis
    "\u2192": "->",      # rightwards arrow
    "\u2265": ">=",      # greater-than or equal
    "\u2264": "<=",      # less-than or equal
}


def _sanitize_text(text: str) -> str:
    for char, replacement in _UNICODE_REPLACEMENTS.items():
        text = text.replace(char, replacement)
    return text


def Paragraph(text: str, *args: Any, **kwargs: Any) -> _RawParagraph:  # noqa: N802
    """Sanitized Paragraph wrapper for plain (non-markup) text."""
    return _RawParagraph(escape(_sanitize_text(str(text))), *args, **kwargs)


def MarkupParagraph(markup: str, *args: Any, **kwargs: Any) -> _RawParagraph:  # noqa: N802
    """Paragraph for trusted inline markup (``<b>`` labels); caller escapes values."""
    return _RawParagraph(markup, *args, **kwargs)


# ── Page size / font lookup ──────────────────────────────────────────

_PAGE_SIZES = {"letter": LETTER, "a4": A4}

_REGULAR_FACES = {"Times": "Times-Roman", "Helvetica": "Helvetica", "Courier": "Courier"}


def _v(text: str) -> str:
    return escape(_sanitize_text(text))


# ── LetterPDFFormatter ───────────────────────────────────────────────


class LetterPDFFormatter:
    """Renders ``LetterContent`` as a fixed-layout letter PDF."""

    def __init__(
        self,
        config: PDFFormattingConfig | None = None,
        forms: FormsConfig | None = None,
    ) -> None:
        self._config = config or PDFFormattingConfig()
        self._forms = forms or FormsConfig()
        self._page_size: tuple[float, float] = _PAGE_SIZES.get(self._config.page_size, LETTER)
        family = self._config.font_family
        self._font = _REGULAR_FACES.get(family, family)
        self._font_bold = f"{family}-Bold"
        self._styles = self._build_styles()

    # ── Public API ───────────────────────────────────────────────────

    def format(
        self,
        letter: LetterContent,
        *,
        patient: PatientDisplayInfo | None = None,
        issued_on: date | None = None,
        **kwargs: Any,
    ) -> bytes:
        """Render *letter* to PDF bytes.

        The document is built twice: once to count pages, then again so
        the footer can print the total.
        """
        patient = patient or PatientDisplayInfo()
        issued_on = issued_on or date.today()

        def story() -> list[Flowable]:
            return self._build_story(letter, patient, issued_on)

        _, total_pages = self._render(story, total_pages=0)
        content, _ = self._render(story, total_pages=total_pages)
        log.debug("Rendered letter: %d page(s), %d bytes", total_pages, len(content))
        return content

    def format_to_file(self, letter: LetterContent, path: Path, **kwargs: Any) -> Path:
        """Write PDF to *path* and return it."""
        path.write_bytes(self.format(letter, **kwargs))
        return path

    @property
    def content_type(self) -> str:
        return "application/pdf"

    # ── Rendering ────────────────────────────────────────────────────

    def _render(
        self,
        story: Callable[[], list[Flowable]],
        *,
        total_pages: int,
    ) -> tuple[bytes, int]:
        buffer = BytesIO()
        cfg = self._config
        width, height = self._page_size
        frame = Frame(
            cfg.margin_left,
            cfg.margin_bottom,
            width - cfg.margin_left - cfg.margin_right,
            height - cfg.margin_top - cfg.margin_bottom,
            id="body",
            leftPadding=0,
            rightPadding=0,
            topPadding=0,
            bottomPadding=0,
        )

        def on_page(canvas: Any, doc: Any) -> None:
            self._footer(canvas, doc, total_pages)

        doc = BaseDocTemplate(
            buffer,
            pagesize=self._page_size,
            leftMargin=cfg.margin_left,
            rightMargin=cfg.margin_right,
            topMargin=cfg.margin_top,
            bottomMargin=cfg.margin_bottom,
            title=LETTER_TITLE.title(),
        )
        doc.addPageTemplates([PageTemplate(id="letter", frames=[frame], onPage=on_page)])
        doc.build(story())
        return buffer.getvalue(), doc.page

    def _build_story(
        self,
        letter: LetterContent,
        patient: PatientDisplayInfo,
        issued_on: date,
    ) -> list[Flowable]:
        s = self._styles
        items: list[Flowable] = [
            Paragraph(LETTER_TITLE, s["title"]),
            Paragraph(issued_on.strftime(DATE_FORMAT), s["date"]),
            Spacer(1, 6),
        ]

        addressee = ADDRESSEE
        if patient.administrator:
            addressee = f"{patient.administrator} {ADDRESSEE}"
        items.append(MarkupParagraph(f"<b>To:</b> {_v(addressee)}", s["body"]))
        items.append(MarkupParagraph(f"<b>From:</b> {_v(SENDER)}", s["body"]))
        subject = SUBJECT_TEMPLATE.format(name=patient.name or "the patient")
        items.append(MarkupParagraph(f"<b>Subject:</b> {_v(subject)}", s["body"]))
        items.append(Spacer(1, 8))

        items.extend(self._build_sections(letter, patient))
        items.extend(self._build_service_block(patient, issued_on))
        items.extend(self._build_signer_block())
        return items

    def _build_sections(
        self,
        letter: LetterContent,
        patient: PatientDisplayInfo,
    ) -> list[Flowable]:
        items: list[Flowable] = []
        number = 0
        for attr, title in SECTION_TITLES:
            paragraphs = self._section_paragraphs(attr, letter, patient)
            if not paragraphs:
                continue
            number += 1
            items.append(Paragraph(f"{number}. {title}", self._styles["heading"]))
            items.extend(paragraphs)
        return items

    def _section_paragraphs(
        self,
        attr: str,
        letter: LetterContent,
        patient: PatientDisplayInfo,
    ) -> list[Flowable]:
        s = self._styles
        text = getattr(letter, attr, "") or ""
        paragraphs: list[Flowable] = []
        if text.strip():
            paragraphs.append(Paragraph(text, s["body"]))

        if attr == "reported_diagnosis":
            conditions = letter.condition or patient.diagnosed_conditions
            if conditions:
                paragraphs.append(
                    MarkupParagraph(f"<b>Condition(s):</b> {_v(', '.join(conditions))}", s["body"])
                )
            if letter.icd_codes:
                paragraphs.append(
                    MarkupParagraph(
                        f"<b>ICD-10 Code(s):</b> {_v(', '.join(letter.icd_codes))}", s["body"]
                    )
                )
        return paragraphs

    def _build_service_block(self, patient: PatientDisplayInfo, issued_on: date) -> list[Flowable]:
        s = self._styles
        service = patient.desired_product or self._config.default_service
        if patient.business_name:
            service = f"{service} at {patient.business_name}"
        start, end = intervention_period(issued_on)
        return [
            Spacer(1, 6),
            MarkupParagraph(
                f"<b>Products and/or services recommended:</b> {_v(service)}", s["body"]
            ),
            MarkupParagraph(
                f"<b>Intervention start date:</b> {start.strftime(PERIOD_DATE_FORMAT)}"
                f" &nbsp; <b>End date:</b> {end.strftime(PERIOD_DATE_FORMAT)}",
                s["body"],
            ),
        ]

    def _build_signer_block(self) -> list[Flowable]:
        s = self._styles
        tokens = {
            "text": self._forms.text_token,
            "signature": self._forms.signature_token,
            "date": self._forms.date_token,
        }
        items: list[Flowable] = [Spacer(1, 8), Paragraph("Sincerely,", s["body"])]
        for label, kind in SIGNER_FIELDS:
            items.append(MarkupParagraph(f"<b>{_v(label)}:</b> {_v(tokens[kind])}", s["signer"]))
        items.append(Paragraph(SENDER, s["body"]))
        return items

    # ── Style setup ──────────────────────────────────────────────────

    def _build_styles(self) -> dict[str, ParagraphStyle]:
        body_sz = self._config.body_font_size
        heading_sz = self._config.heading_font_size
        text = HexColor(TEXT_COLOR)

        return {
            "title": ParagraphStyle(
                "lmn_title",
                fontName=self._font_bold,
                fontSize=heading_sz,
                leading=heading_sz * 1.3,
                alignment=TA_CENTER,
                spaceAfter=10,
                textColor=text,
            ),
            "date": ParagraphStyle(
                "lmn_date",
                fontName=self._font,
                fontSize=body_sz,
                leading=body_sz * 1.3,
                alignment=TA_RIGHT,
                textColor=text,
            ),
            "heading": ParagraphStyle(
                "lmn_heading",
                fontName=self._font_bold,
                fontSize=body_sz + 1,
                leading=(body_sz + 1) * 1.3,
                spaceBefore=8,
                spaceAfter=3,
                textColor=text,
            ),
            "body": ParagraphStyle(
                "lmn_body",
                fontName=self._font,
                fontSize=body_sz,
                leading=body_sz * 1.3,
                spaceAfter=3,
                textColor=text,
            ),
            "signer": ParagraphStyle(
                "lmn_signer",
                fontName=self._font,
                fontSize=body_sz,
                leading=body_sz * 1.5,
                textColor=text,
            ),
        }

    # ── Footer ───────────────────────────────────────────────────────

    def _footer(self, canvas: Any, doc: Any, total_pages: int) -> None:
        """Running footer on every page after the first."""
        page = canvas.getPageNumber()
        if page == 1:
            return
        canvas.saveState()
        width, _ = self._page_size
        canvas.setFont(self._font, 8)
        canvas.setFillColor(HexColor(FOOTER_TEXT_COLOR))
        y = self._config.margin_bottom / 2
        label = f"Page {page} of {total_pages}" if total_pages else f"Page {page}"
        canvas.drawString(self._config.margin_left, y, label)
        canvas.drawRightString(width - self._config.margin_right, y, self._config.disclaimer)
        canvas.restoreState()
