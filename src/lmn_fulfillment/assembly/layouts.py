"""Administrator form layouts as data.

Each layout lists fixed-coordinate placements for the form's first page.
``y`` is measured from the top edge of the page to the text baseline, in
points.  Adding an administrator means adding a ``FormLayout`` here or in
the JSON file named by ``LMN_FORMS_EXTRA_LAYOUTS_PATH``.
"""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

log = logging.getLogger(__name__)


class Ink(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"   # page-background ink; readable by text extraction only


class FieldSource(str, Enum):
    LITERAL = "literal"
    TEXT_TOKEN = "text_token"
    SIGNATURE_TOKEN = "signature_token"
    CONDITIONS = "conditions"
    START_DATE = "start_date"
    END_DATE = "end_date"
    TODAY = "today"


class Placement(BaseModel):
    """One string drawn at a fixed position."""

    model_config = ConfigDict(frozen=True)

    source: FieldSource
    x: float
    y: float
    size: float = Field(default=10, gt=0)
    ink: Ink = Ink.VISIBLE
    text: str = ""


class FormLayout(BaseModel):
    """Overlay placements for one administrator's form."""

    model_config = ConfigDict(frozen=True)

    administrator: str
    placements: tuple[Placement, ...] = ()


def normalize_administrator(name: str) -> str:
    """``"HSA Bank"``, ``"hsa-bank"`` and ``"HSABank"`` all map to ``"hsabank"``."""
    return re.sub(r"[^a-z0-9]", "", (name or "").lower())


def _visible(source: FieldSource, x: float, y: float, size: float, text: str = "") -> Placement:
    return Placement(source=source, x=x, y=y, size=size, ink=Ink.VISIBLE, text=text)


def _hidden(source: FieldSource, x: float, y: float, size: float) -> Placement:
    return Placement(source=source, x=x, y=y, size=size, ink=Ink.HIDDEN)


_L = FieldSource.LITERAL
_TEXT = FieldSource.TEXT_TOKEN
_SIG = FieldSource.SIGNATURE_TOKEN

IDENTITY_LAYOUT = FormLayout(administrator="identity")

BUILTIN_LAYOUTS: tuple[FormLayout, ...] = (
    FormLayout(
        administrator="HealthEquity",
        placements=(
            _visible(
                FieldSource.CONDITIONS, 45, 350, 10,
                "Medical condition as specified in attached documentation",
            ),
            _visible(_L, 45, 385, 10, "See following pages for treatments and products"),
            _visible(FieldSource.START_DATE, 85, 430, 10),
            _visible(FieldSource.END_DATE, 255, 430, 10),
            _hidden(_TEXT, 45, 530, 15),
            _hidden(_SIG, 45, 560, 20),
            _visible(FieldSource.TODAY, 45, 590, 10),
        ),
    ),
    FormLayout(
        administrator="HSA Bank",
        placements=(
            _hidden(_TEXT, 44, 535, 12),
            _hidden(_TEXT, 43, 560, 12),
            _hidden(_TEXT, 360, 535, 12),
            _hidden(_TEXT, 360, 560, 12),
            _visible(_L, 340, 610, 8, "See following pages for treatments"),
            _visible(_L, 327, 630, 8, "See following pages for medical diagnosis"),
        ),
    ),
    FormLayout(
        administrator="Optum",
        placements=(
            _visible(_L, 27, 400, 9, "See following pages for conditions and treatments."),
            _visible(_L, 27, 448, 9, "See following pages for info."),
            _hidden(_SIG, 27, 510, 20),
            _hidden(_TEXT, 27, 550, 20),
            _hidden(_TEXT, 295, 510, 20),
            _hidden(_TEXT, 295, 550, 20),
            _hidden(_TEXT, 440, 550, 20),
        ),
    ),
    FormLayout(
        administrator="WEX",
        placements=(
            _hidden(_TEXT, 43, 430, 12),
            _hidden(_TEXT, 410, 430, 12),
            _hidden(_TEXT, 43, 465, 12),
            _hidden(_TEXT, 43, 495, 12),
            _hidden(_TEXT, 318, 495, 12),
            _hidden(_TEXT, 460, 495, 12),
            _hidden(_TEXT, 510, 495, 12),
            _visible(_L, 43, 572, 10, "See following pages for treatment."),
            _visible(_L, 43, 610, 10, "See following pages for medical diagnosis."),
        ),
    ),
)


def load_layouts(path: Path) -> list[FormLayout]:
    """Read ``[{"administrator": ..., "placements": [...]}, ...]`` from *path*."""
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("layouts", [])
    layouts = [FormLayout.model_validate(item) for item in data]
    log.info("Loaded %d form layout(s) from %s", len(layouts), path)
    return layouts
