"""Document assembly: parse, render, merge with the administrator form, cap.

Output degrades in a fixed order rather than failing:

1. form page + letter, capped at ``max_pages``
2. letter only, capped
3. full letter, uncapped

Only a missing or incomplete letter payload is fatal (``GenerationError``).
"""

from __future__ import annotations

import logging
from datetime import date

from lmn_fulfillment.assembly.extraction import ParseFailure, parse_letter
from lmn_fulfillment.assembly.forms import FormRegistry, OverlayContext
from lmn_fulfillment.assembly.merge import apply_layout, extract_first_page, merge_and_cap, page_count
from lmn_fulfillment.core.config import FormsConfig
from lmn_fulfillment.exceptions import AssemblyError, GenerationError
from lmn_fulfillment.formatters.letter_pdf import LetterPDFFormatter
from lmn_fulfillment.models import AssembledDocument, LetterContent, PatientDisplayInfo

log = logging.getLogger(__name__)


class DocumentAssembler:
    """Turns raw letter text into the final signable PDF."""

    def __init__(
        self,
        formatter: LetterPDFFormatter | None = None,
        forms: FormRegistry | None = None,
        config: FormsConfig | None = None,
    ) -> None:
        self._config = config or FormsConfig()
        self._formatter = formatter or LetterPDFFormatter(forms=self._config)
        self._forms = forms or FormRegistry(self._config)

    def parse(self, letter_text: str) -> LetterContent:
        """Extract ``LetterContent`` or raise ``GenerationError``."""
        result = parse_letter(letter_text)
        if isinstance(result, ParseFailure):
            log.error(
                "LMN payload rejected: %s (preview=%r)", result.reason, result.preview
            )
            raise GenerationError(
                f"LMN generation incomplete: {result.reason}", raw_response=letter_text
            )
        return result.content

    def assemble(
        self,
        letter_text: str,
        patient: PatientDisplayInfo,
        *,
        issued_on: date | None = None,
    ) -> AssembledDocument:
        content = self.parse(letter_text)
        issued_on = issued_on or date.today()
        letter_pdf = self._formatter.format(content, patient=patient, issued_on=issued_on)
        form_page = self._prepare_form(patient, issued_on)

        max_pages = self._config.max_pages
        if form_page is not None:
            try:
                merged, pages = merge_and_cap([form_page, letter_pdf], max_pages)
                return AssembledDocument(
                    content=merged, page_count=pages, form_included=True, stage="merged"
                )
            except AssemblyError as e:
                log.warning("Form merge failed for %s, falling back to letter only: %s",
                            patient.administrator, e)

        try:
            capped, pages = merge_and_cap([letter_pdf], max_pages)
            return AssembledDocument(content=capped, page_count=pages, stage="letter_capped")
        except AssemblyError as e:
            log.error("Letter cap failed, returning full letter: %s", e)

        return AssembledDocument(
            content=letter_pdf,
            page_count=_safe_page_count(letter_pdf),
            stage="letter_full",
        )

    def assemble_base64(
        self,
        letter_text: str,
        patient: PatientDisplayInfo,
        *,
        issued_on: date | None = None,
    ) -> str:
        return self.assemble(letter_text, patient, issued_on=issued_on).to_base64()

    def _prepare_form(self, patient: PatientDisplayInfo, issued_on: date) -> bytes | None:
        """First form page with overlay, the bare first page, or ``None``."""
        path = self._forms.form_path(patient.administrator)
        if path is None:
            log.debug("No administrative form for %r", patient.administrator)
            return None

        try:
            first_page = extract_first_page(path.read_bytes())
        except (AssemblyError, OSError) as e:
            log.warning("Administrative form %s unreadable, skipping: %s", path, e)
            return None

        layout = self._forms.layout_for(patient.administrator)
        context = OverlayContext.for_patient(patient, self._config, today=issued_on)
        try:
            return apply_layout(first_page, layout, context)
        except AssemblyError as e:
            log.warning("Form-fill for %s failed, using unmodified form: %s",
                        layout.administrator, e)
            return first_page


def _safe_page_count(data: bytes) -> int:
    try:
        return page_count(data)
    except AssemblyError:
        return 0
