"""Shared fixtures: a drawing backend that records every call while still producing a real PDF."""

from dataclasses import dataclass
from typing import List, Optional

import pytest

from docforge.contexts.rendering.backend import FPDFBackend
from docforge.contexts.rendering.document_model import Document, Element, PageConfig
from docforge.contexts.rendering.layout_engine import LayoutEngine
from docforge.utils.diagnostics import Diagnostics


@dataclass
class Call:
    """One backend call with the cursor position at the time it was made."""

    name: str
    args: tuple
    x: Optional[float]
    y: Optional[float]


class RecordingBackend(FPDFBackend):
    def __init__(self):
        super().__init__()
        self.calls: List[Call] = []

    def _record(self, name: str, *args) -> None:
        x = self.pdf.get_x() if self.pdf is not None else None
        y = self.pdf.get_y() if self.pdf is not None else None
        self.calls.append(Call(name, args, x, y))

    def named(self, name: str) -> List[Call]:
        return [call for call in self.calls if call.name == name]

    def create_document(self, orientation, page_format, margins):
        self._record("create_document", orientation, page_format, margins)
        super().create_document(orientation, page_format, margins)

    def set_font(self, family, style, size):
        self._record("set_font", family, style, size)
        super().set_font(family, style, size)

    def set_text_color(self, r, g, b):
        self._record("set_text_color", r, g, b)
        super().set_text_color(r, g, b)

    def set_fill_color(self, r, g, b):
        self._record("set_fill_color", r, g, b)
        super().set_fill_color(r, g, b)

    def set_draw_color(self, r, g, b):
        self._record("set_draw_color", r, g, b)
        super().set_draw_color(r, g, b)

    def set_line_width(self, width):
        self._record("set_line_width", width)
        super().set_line_width(width)

    def cell(self, w, h, text, border="", new_line=False, align="L", fill=False):
        self._record("cell", w, h, text, border, new_line, align, fill)
        super().cell(w, h, text, border, new_line, align, fill)

    def multi_cell(self, w, h, text, border="", align="L", fill=False):
        self._record("multi_cell", w, h, text, border, align, fill)
        super().multi_cell(w, h, text, border, align, fill)

    def line(self, x1, y1, x2, y2):
        self._record("line", x1, y1, x2, y2)
        super().line(x1, y1, x2, y2)

    def image(self, name, image_type, data, x, y, w, h):
        self._record("image", name, image_type, x, y, w, h)
        super().image(name, image_type, data, x, y, w, h)

    def ln(self, h):
        self._record("ln", h)
        super().ln(h)


@pytest.fixture
def render():
    """
    Lay out elements on a default A4 page (margins 15/12/15/20) with a RecordingBackend.

    Returns (backend, diagnostics). The cursor starts at (15, 12); the usable
    width is 180 mm.
    """

    def _render(*elements: Element, page: PageConfig = None, strict: bool = False):
        backend = RecordingBackend()
        diagnostics = Diagnostics(strict=strict)
        document = Document(page=page or PageConfig(), elements=tuple(elements))
        engine = LayoutEngine(document, backend=backend, diagnostics=diagnostics)
        engine.start_document()
        for element in document.elements:
            engine.render_element(element)
        return backend, diagnostics

    return _render


@pytest.fixture
def recording_backend():
    return RecordingBackend()
