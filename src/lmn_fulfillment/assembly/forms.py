"""Form-fill strategy selection keyed by administrator identity.

A strategy is a ``FormLayout``; unknown administrators resolve to the
identity layout, which leaves the form untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from lmn_fulfillment.assembly.layouts import (
    BUILTIN_LAYOUTS,
    IDENTITY_LAYOUT,
    FieldSource,
    FormLayout,
    Placement,
    load_layouts,
    normalize_administrator,
)
from lmn_fulfillment.core.config import FormsConfig
from lmn_fulfillment.formatters.pdf_styles import PERIOD_DATE_FORMAT
from lmn_fulfillment.models import PatientDisplayInfo, intervention_period

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class OverlayContext:
    """Values a layout may draw."""

    conditions: str
    start_date: date
    end_date: date
    today: date
    text_token: str = "{{text}}"
    signature_token: str = "{{signature}}"

    @classmethod
    def for_patient(
        cls,
        patient: PatientDisplayInfo,
        config: FormsConfig,
        *,
        today: date | None = None,
    ) -> OverlayContext:
        start, end = intervention_period(today)
        return cls(
            conditions=", ".join(patient.diagnosed_conditions),
            start_date=start,
            end_date=end,
            today=start,
            text_token=config.text_token,
            signature_token=config.signature_token,
        )

    def resolve(self, placement: Placement) -> str:
        source = placement.source
        if source is FieldSource.TEXT_TOKEN:
            return self.text_token
        if source is FieldSource.SIGNATURE_TOKEN:
            return self.signature_token
        if source is FieldSource.CONDITIONS:
            return self.conditions or placement.text
        if source is FieldSource.START_DATE:
            return self.start_date.strftime(PERIOD_DATE_FORMAT)
        if source is FieldSource.END_DATE:
            return self.end_date.strftime(PERIOD_DATE_FORMAT)
        if source is FieldSource.TODAY:
            return self.today.strftime(PERIOD_DATE_FORMAT)
        return placement.text


class FormRegistry:
    """Maps administrator names to a form file and a fill layout."""

    def __init__(
        self,
        config: FormsConfig | None = None,
        layouts: list[FormLayout] | None = None,
    ) -> None:
        self._config = config or FormsConfig()
        self._layouts: dict[str, FormLayout] = {}
        for layout in layouts if layouts is not None else BUILTIN_LAYOUTS:
            self.register(layout)
        if self._config.extra_layouts_path is not None:
            for layout in load_layouts(self._config.extra_layouts_path):
                self.register(layout)
        self._files = {
            normalize_administrator(name): file_name
            for name, file_name in self._config.form_files.items()
        }

    def register(self, layout: FormLayout) -> None:
        self._layouts[normalize_administrator(layout.administrator)] = layout

    def layout_for(self, administrator: str) -> FormLayout:
        return self._layouts.get(normalize_administrator(administrator), IDENTITY_LAYOUT)

    def form_path(self, administrator: str) -> Path | None:
        """Path of the administrator's form, or ``None`` if none is configured."""
        file_name = self._files.get(normalize_administrator(administrator))
        if not file_name:
            return None
        path = self._config.forms_dir / file_name
        if not path.is_file():
            log.warning("Form for %s configured but missing at %s", administrator, path)
            return None
        return path
