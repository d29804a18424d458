"""Tests for PDF overlay, merge and page-cap operations."""

from __future__ import annotations

from datetime import date

import pytest

from lmn_fulfillment.assembly.forms import OverlayContext
from lmn_fulfillment.assembly.layouts import BUILTIN_LAYOUTS, IDENTITY_LAYOUT, FieldSource, FormLayout, Placement
from lmn_fulfillment.assembly.merge import apply_layout, extract_first_page, merge_and_cap, page_count
from lmn_fulfillment.core.config import FormsConfig
from lmn_fulfillment.exceptions import AssemblyError
from lmn_fulfillment.models import PatientDisplayInfo
from tests.fakes.pdf_builders import make_pdf, page_texts, span_colors

WHITE = 0xFFFFFF
BLACK = 0x000000


@pytest.fixture
def context(patient: PatientDisplayInfo) -> OverlayContext:
    return OverlayContext.for_patient(patient, FormsConfig(), today=date(2026, 10, 19))


def _layout(name: str) -> FormLayout:
    return next(layout for layout in BUILTIN_LAYOUTS if layout.administrator == name)


class TestPageOperations:
    def test_page_count(self) -> None:
        assert page_count(make_pdf(4)) == 4

    def test_garbage_is_assembly_error(self) -> None:
        with pytest.raises(AssemblyError):
            page_count(b"not a pdf at all")

    def test_extract_first_page(self) -> None:
        first = extract_first_page(make_pdf(3, label="Form"))
        texts = page_texts(first)
        assert len(texts) == 1
        assert "Form 1" in texts[0]

    def test_extract_first_page_garbage(self) -> None:
        with pytest.raises(AssemblyError):
            extract_first_page(b"%PDF-broken")


class TestMergeAndCap:
    def test_concatenates_in_order(self) -> None:
        merged, count = merge_and_cap([make_pdf(1, label="Form"), make_pdf(1, label="Letter")], 3)
        texts = page_texts(merged)
        assert count == 2
        assert "Form 1" in texts[0]
        assert "Letter 1" in texts[1]

    def test_trims_trailing_letter_pages(self) -> None:
        merged, count = merge_and_cap([make_pdf(1, label="Form"), make_pdf(4, label="Letter")], 3)
        texts = page_texts(merged)
        assert count == 3
        assert "Form 1" in texts[0]
        assert "Letter 1" in texts[1]
        assert "Letter 2" in texts[2]
        assert all("Letter 3" not in t and "Letter 4" not in t for t in texts)

    def test_under_cap_untouched(self) -> None:
        _, count = merge_and_cap([make_pdf(2)], 3)
        assert count == 2

    def test_bad_part_raises(self) -> None:
        with pytest.raises(AssemblyError):
            merge_and_cap([make_pdf(1), b"garbage"], 3)


class TestApplyLayout:
    def test_identity_layout_returns_page_unchanged(self, context: OverlayContext) -> None:
        page = extract_first_page(make_pdf(1))
        assert apply_layout(page, IDENTITY_LAYOUT, context) == page

    def test_health_equity_overlay(self, context: OverlayContext) -> None:
        page = extract_first_page(make_pdf(1, label="ADMIN FORM"))
        filled = apply_layout(page, _layout("HealthEquity"), context)
        text = page_texts(filled)[0]
        assert "ADMIN FORM 1" in text
        assert "See following pages for treatments and products" in text
        assert "stress" in text
        assert "10/19/2026" in text
        assert "10/19/2027" in text
        assert "{{text}}" in text
        assert "{{signature}}" in text

    def test_tokens_drawn_in_background_ink(self, context: OverlayContext) -> None:
        page = extract_first_page(make_pdf(1))
        filled = apply_layout(page, _layout("HealthEquity"), context)
        assert span_colors(filled, "{{signature}}") == [WHITE]
        assert set(span_colors(filled, "{{text}}")) == {WHITE}
        assert set(span_colors(filled, "See following pages")) == {BLACK}

    @pytest.mark.parametrize("name", ["HSA Bank", "Optum", "WEX"])
    def test_other_layouts_apply(self, name: str, context: OverlayContext) -> None:
        page = extract_first_page(make_pdf(1))
        filled = apply_layout(page, _layout(name), context)
        assert "See following pages" in page_texts(filled)[0]

    def test_placement_off_page_raises(self, context: OverlayContext) -> None:
        page = extract_first_page(make_pdf(1, size=(300, 300)))
        with pytest.raises(AssemblyError, match="outside"):
            apply_layout(page, _layout("HealthEquity"), context)

    def test_empty_values_skipped(self, context: OverlayContext) -> None:
        layout = FormLayout(
            administrator="Blank",
            placements=(Placement(source=FieldSource.LITERAL, x=40, y=100, text=""),),
        )
        page = extract_first_page(make_pdf(1, label="Blank form"))
        assert "Blank form 1" in page_texts(apply_layout(page, layout, context))[0]
