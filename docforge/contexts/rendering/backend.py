"""
Drawing Backend

The layout engine draws through the DrawingBackend capability surface only.
FPDFBackend implements it on top of fpdf2; units are millimetres throughout.

A backend instance is one drawing session: it belongs to exactly one layout
engine for exactly one document build.
"""

import io
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Set, Tuple

from fpdf import FPDF, XPos, YPos
from fpdf.errors import FPDFException, FPDFPageFormatException

# Family names descriptors commonly use for the PDF core fonts
CORE_FONT_ALIASES = {
    "arial": "helvetica",
    "couriernew": "courier",
    "timesnewroman": "times",
}

ORIENTATIONS = {"portrait": "P", "landscape": "L"}


class BackendInputError(ValueError):
    """A drawing request the backend rejected; the layout engine recovers from these."""


class PageFormatError(BackendInputError):
    """Unknown page format name."""


class FontError(BackendInputError):
    """Font family/style not available."""


class ImageDataError(BackendInputError):
    """Raster data the backend cannot decode."""


class TextLayoutError(BackendInputError):
    """Text that cannot be laid out in the requested cell, e.g. no room for one character."""


class DrawingBackend(ABC):
    """Capability surface consumed by the layout engine."""

    @abstractmethod
    def create_document(
        self, orientation: str, page_format: str, margins: Tuple[float, float, float, float]
    ) -> None:
        """Start a document; margins are (left, top, right, bottom)."""

    @abstractmethod
    def add_page(self) -> None: ...

    @abstractmethod
    def add_font(self, family: str, path: Path, style: str = "") -> None: ...

    @abstractmethod
    def set_font(self, family: str, style: str, size: float) -> None: ...

    @abstractmethod
    def set_text_color(self, r: int, g: int, b: int) -> None: ...

    @abstractmethod
    def set_fill_color(self, r: int, g: int, b: int) -> None: ...

    @abstractmethod
    def set_draw_color(self, r: int, g: int, b: int) -> None: ...

    @abstractmethod
    def set_line_width(self, width: float) -> None: ...

    @abstractmethod
    def cell(
        self,
        w: float,
        h: float,
        text: str,
        border: str = "",
        new_line: bool = False,
        align: str = "L",
        fill: bool = False,
    ) -> None:
        """Draw one cell; new_line moves the cursor to the next line at the left margin."""

    @abstractmethod
    def multi_cell(
        self,
        w: float,
        h: float,
        text: str,
        border: str = "",
        align: str = "L",
        fill: bool = False,
    ) -> None:
        """Draw wrapped text, h per line; the cursor ends on the next line at the left margin."""

    @abstractmethod
    def line(self, x1: float, y1: float, x2: float, y2: float) -> None: ...

    @abstractmethod
    def image(
        self, name: str, image_type: str, data: bytes, x: float, y: float, w: float, h: float
    ) -> None:
        """Draw raster data at (x, y) without moving the cursor; h == 0 keeps the aspect ratio."""

    @abstractmethod
    def ln(self, h: float) -> None:
        """Move down by h and back to the left margin."""

    @abstractmethod
    def get_x(self) -> float: ...

    @abstractmethod
    def get_y(self) -> float: ...

    @abstractmethod
    def set_x(self, x: float) -> None: ...

    @abstractmethod
    def set_xy(self, x: float, y: float) -> None: ...

    @abstractmethod
    def page_size(self) -> Tuple[float, float]: ...

    @abstractmethod
    def page_count(self) -> int: ...

    @abstractmethod
    def output(self) -> bytes:
        """Finalize the document and return the encoded bytes."""


def _fpdf_border(border: str):
    """Translate a descriptor border ("", "0", "1", "LTRB" subsets) to fpdf2's form."""
    if not border or border == "0":
        return 0
    if border == "1":
        return 1
    return border


class FPDFBackend(DrawingBackend):
    """
    DrawingBackend over fpdf2.

    Core PDF fonts only cover latin-1. Text drawn with a core font is reduced
    to latin-1 (unencodable characters become "?"); families registered
    through add_font() are TrueType and take any text.
    """

    def __init__(self):
        self.pdf = None
        self._ttf_families: Set[str] = set()
        self._current_family = ""

    def _require_document(self) -> FPDF:
        if self.pdf is None:
            raise RuntimeError("create_document() must be called first")
        return self.pdf

    def create_document(self, orientation, page_format, margins):
        left, top, right, bottom = margins
        try:
            self.pdf = FPDF(
                orientation=ORIENTATIONS.get(orientation, "P"), unit="mm", format=page_format
            )
        except FPDFPageFormatException as e:
            raise PageFormatError(f"Unsupported page format: {page_format!r}") from e
        self.pdf.set_margins(left, top, right)
        self.pdf.set_auto_page_break(True, margin=bottom)

    def add_page(self):
        self._require_document().add_page()

    def add_font(self, family, path, style=""):
        self._require_document().add_font(family, style, str(path))
        self._ttf_families.add(family.lower())

    def set_font(self, family, style, size):
        family = family.lower()
        if family not in self._ttf_families:
            family = CORE_FONT_ALIASES.get(family, family)
        try:
            self._require_document().set_font(family, style, size)
        except FPDFException as e:
            raise FontError(f"Font not available: {family!r} style {style!r}") from e
        self._current_family = family

    def set_text_color(self, r, g, b):
        self._require_document().set_text_color(r, g, b)

    def set_fill_color(self, r, g, b):
        self._require_document().set_fill_color(r, g, b)

    def set_draw_color(self, r, g, b):
        self._require_document().set_draw_color(r, g, b)

    def set_line_width(self, width):
        self._require_document().set_line_width(width)

    def _encodable(self, text: str) -> str:
        if self._current_family in self._ttf_families:
            return text
        return text.encode("latin-1", "replace").decode("latin-1")

    def cell(self, w, h, text, border="", new_line=False, align="L", fill=False):
        pdf = self._require_document()
        try:
            pdf.cell(
                w,
                h,
                self._encodable(text),
                border=_fpdf_border(border),
                align=align,
                fill=fill,
                new_x=XPos.LMARGIN if new_line else XPos.RIGHT,
                new_y=YPos.NEXT if new_line else YPos.TOP,
            )
        except FPDFException as e:
            raise TextLayoutError(f"Cannot lay out text in a {w:.2f} mm cell: {e}") from e

    def multi_cell(self, w, h, text, border="", align="L", fill=False):
        pdf = self._require_document()
        try:
            pdf.multi_cell(
                w,
                h,
                self._encodable(text),
                border=_fpdf_border(border),
                align=align,
                fill=fill,
                new_x=XPos.LMARGIN,
                new_y=YPos.NEXT,
            )
        except FPDFException as e:
            raise TextLayoutError(f"Cannot lay out text in a {w:.2f} mm cell: {e}") from e

    def line(self, x1, y1, x2, y2):
        self._require_document().line(x1, y1, x2, y2)

    def image(self, name, image_type, data, x, y, w, h):
        # fpdf2 detects the raster format from the bytes; name and type are informational
        try:
            self._require_document().image(io.BytesIO(data), x=x, y=y, w=w, h=h)
        except (OSError, ValueError, FPDFException) as e:
            raise ImageDataError(f"Cannot decode {image_type} image {name!r}") from e

    def ln(self, h):
        self._require_document().ln(h)

    def get_x(self):
        return self._require_document().get_x()

    def get_y(self):
        return self._require_document().get_y()

    def set_x(self, x):
        self._require_document().set_x(x)

    def set_xy(self, x, y):
        self._require_document().set_xy(x, y)

    def page_size(self):
        pdf = self._require_document()
        return pdf.w, pdf.h

    def page_count(self):
        return self._require_document().page

    def output(self):
        return bytes(self._require_document().output())
