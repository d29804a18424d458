"""Centralized style constants and fixed wording for the letter PDF."""

from __future__ import annotations

# ── Colors (hex strings) ─────────────────────────────────────────────
# Kept as plain hex so the formatter can convert to whatever color object
# the rendering library requires (e.g. reportlab HexColor).

TEXT_COLOR = "#000000"
FOOTER_TEXT_COLOR = "#555555"

# ── Letter wording ───────────────────────────────────────────────────

LETTER_TITLE = "LETTER OF MEDICAL NECESSITY"
ADDRESSEE = "HSA/FSA Administrator"
SENDER = "Medical Provider"
SUBJECT_TEMPLATE = "Letter of Medical Necessity for {name}"
DATE_FORMAT = "%B %d, %Y"
PERIOD_DATE_FORMAT = "%m/%d/%Y"

# ── Section order and headings ───────────────────────────────────────
# Attribute on LetterContent -> heading text.  Numbering is assigned at
# render time over the sections that have content.

SECTION_TITLES: list[tuple[str, str]] = [
    ("reported_diagnosis", "REPORTED DIAGNOSIS"),
    ("treatment", "TREATMENT RECOMMENDATION"),
    ("clinical_rationale", "CLINICAL RATIONALE"),
    ("role_in_health", "ROLE IN PATIENT HEALTH MANAGEMENT"),
    ("conclusion", "CONCLUSION"),
]

# ── Signer block ─────────────────────────────────────────────────────
# Label -> which signer token fills it ("text", "signature" or "date").

SIGNER_FIELDS: list[tuple[str, str]] = [
    ("Provider Name", "text"),
    ("Address", "text"),
    ("License Number", "text"),
    ("Phone", "text"),
    ("Email", "text"),
    ("Signature", "signature"),
    ("Date", "date"),
]
