"""PDF page operations on top of PyMuPDF: overlay, merge and cap.

Every PyMuPDF failure surfaces as ``AssemblyError`` so the engine can
apply its fallback chain.
"""

from __future__ import annotations

import logging

import fitz

from lmn_fulfillment.assembly.forms import OverlayContext
from lmn_fulfillment.assembly.layouts import FormLayout, Ink
from lmn_fulfillment.exceptions import AssemblyError

log = logging.getLogger(__name__)

VISIBLE_INK = (0.0, 0.0, 0.0)
HIDDEN_INK = (1.0, 1.0, 1.0)


def _open(data: bytes, label: str) -> fitz.Document:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise AssemblyError(f"{label} is not a readable PDF: {e}") from e
    if doc.page_count == 0:
        doc.close()
        raise AssemblyError(f"{label} has no pages")
    return doc


def _to_bytes(doc: fitz.Document) -> bytes:
    return doc.tobytes(garbage=3, deflate=True)


def page_count(data: bytes) -> int:
    doc = _open(data, "document")
    try:
        return doc.page_count
    finally:
        doc.close()


def extract_first_page(form_bytes: bytes) -> bytes:
    """Return a one-page PDF holding the form's first page."""
    src = _open(form_bytes, "administrative form")
    out = fitz.open()
    try:
        out.insert_pdf(src, from_page=0, to_page=0)
        return _to_bytes(out)
    except (RuntimeError, ValueError) as e:
        raise AssemblyError(f"Could not copy first form page: {e}") from e
    finally:
        out.close()
        src.close()


def apply_layout(page_bytes: bytes, layout: FormLayout, context: OverlayContext) -> bytes:
    """Draw *layout*'s placements onto the first page of *page_bytes*."""
    if not layout.placements:
        return page_bytes
    doc = _open(page_bytes, "administrative form")
    try:
        page = doc[0]
        for placement in layout.placements:
            text = context.resolve(placement)
            if not text:
                continue
            if placement.y > page.rect.height or placement.x > page.rect.width:
                raise AssemblyError(
                    f"{layout.administrator} placement at ({placement.x}, {placement.y}) "
                    f"lies outside a {page.rect.width:.0f}x{page.rect.height:.0f} page"
                )
            page.insert_text(
                fitz.Point(placement.x, placement.y),
                text,
                fontsize=placement.size,
                fontname="helv",
                color=HIDDEN_INK if placement.ink is Ink.HIDDEN else VISIBLE_INK,
            )
        return _to_bytes(doc)
    except (RuntimeError, ValueError) as e:
        raise AssemblyError(f"{layout.administrator} overlay failed: {e}") from e
    finally:
        doc.close()


def merge_and_cap(parts: list[bytes], max_pages: int) -> tuple[bytes, int]:
    """Concatenate *parts* in order, then keep the first *max_pages* pages.

    Returns ``(pdf_bytes, page_count)``.  Trimming removes trailing pages
    only, so a leading form page survives whenever letter pages exist.
    """
    out = fitz.open()
    sources: list[fitz.Document] = []
    try:
        for i, part in enumerate(parts):
            src = _open(part, f"part {i}")
            sources.append(src)
            out.insert_pdf(src)
        total = out.page_count
        if total > max_pages:
            out.delete_pages(from_page=max_pages, to_page=total - 1)
            log.info("Capped document from %d to %d pages", total, max_pages)
        return _to_bytes(out), out.page_count
    except (RuntimeError, ValueError) as e:
        raise AssemblyError(f"Merge failed: {e}") from e
    finally:
        for src in sources:
            src.close()
        out.close()
