"""Document assembly: letter extraction, rendering, form overlay and merge."""

from __future__ import annotations

from lmn_fulfillment.assembly.engine import DocumentAssembler
from lmn_fulfillment.assembly.extraction import ParsedLetter, ParseFailure, ParseResult, parse_letter
from lmn_fulfillment.assembly.forms import FormRegistry, OverlayContext
from lmn_fulfillment.assembly.layouts import BUILTIN_LAYOUTS, IDENTITY_LAYOUT, FormLayout, Placement

__all__ = [
    "BUILTIN_LAYOUTS",
    "DocumentAssembler",
    "FormLayout",
    "FormRegistry",
    "IDENTITY_LAYOUT",
    "OverlayContext",
    "ParseFailure",
    "ParseResult",
    "ParsedLetter",
    "Placement",
    "parse_letter",
]
