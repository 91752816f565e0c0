"""
Layout Engine

Walks a Document's element tree top to bottom and turns it into drawing
backend calls. The engine owns the drawing cursor (through its backend) for
the duration of exactly one build; create a new engine for every document.

Flow rules shared by every element:
- The element's top margin moves the cursor down before it is drawn, the
  bottom margin after it.
- Left/right margins and padding only narrow and indent text content.

Failure policy: layout anomalies (unknown element types, empty tables and
grids, text with no room for a single character, unusable colors, fonts,
page formats or image data) are skipped or replaced with defaults and
reported to the optional Diagnostics collector.
Only errors raised while encoding the final document propagate.
"""

import base64
import binascii
import time
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from docforge.contexts.rendering.backend import (
    DrawingBackend,
    FontError,
    FPDFBackend,
    ImageDataError,
    PageFormatError,
    TextLayoutError,
)
from docforge.contexts.rendering.defaults import load_render_defaults
from docforge.contexts.rendering.document_model import Document, Element, ElementType, Style
from docforge.contexts.rendering.logger import (
    _log_debug,
    _log_warning,
    log_build_result,
    log_build_start,
)
from docforge.contexts.rendering.spacing import ZERO_SPACING
from docforge.utils.colors import BLACK, RGB, hex_to_rgb
from docforge.utils.diagnostics import Diagnostics, IssueKinds

EMBEDDED_FONT_FAMILY = "DejaVu"
EMBEDDED_FONT_FILES = {
    "": "DejaVuSans.ttf",
    "B": "DejaVuSans-Bold.ttf",
    "I": "DejaVuSans-Oblique.ttf",
    "BI": "DejaVuSans-BoldOblique.ttf",
}

ALIGNMENTS = {"center": "C", "right": "R"}

IMAGE_DATA_PREFIX = "data:image/"


@lru_cache(maxsize=None)
def discover_embedded_fonts(font_dir: str) -> Tuple[Tuple[str, Path], ...]:
    """
    List the bundled DejaVu font files present in font_dir.

    The result is cached; font files are shared read-only data across builds.

    Returns:
        Tuple of (style, path) pairs
    """
    found = []
    for style, filename in EMBEDDED_FONT_FILES.items():
        path = Path(font_dir) / filename
        if path.exists():
            found.append((style, path))
    return tuple(found)


def to_backend_align(align: str) -> str:
    """Map "left"/"center"/"right" to the backend's L/C/R, defaulting to L."""
    return ALIGNMENTS.get(align, "L")


class LayoutEngine:
    """
    Single-use renderer for one Document.

    Attributes:
        document: Element tree to render
        backend: Drawing session (a fresh FPDFBackend unless one is supplied)
        diagnostics: Optional collector for layout anomalies
        defaults: Rendering defaults (see defaults.yaml)

    Example:
        >>> engine = LayoutEngine(document)
        >>> pdf_bytes = engine.build()
    """

    def __init__(
        self,
        document: Document,
        backend: Optional[DrawingBackend] = None,
        diagnostics: Optional[Diagnostics] = None,
        defaults: Optional[Dict[str, Any]] = None,
    ):
        self.document = document
        self.backend = backend if backend is not None else FPDFBackend()
        self.diagnostics = diagnostics
        self.defaults = defaults if defaults is not None else load_render_defaults()
        self.settings = self.defaults["elements"]
        self.default_font_size = float(self.defaults["fonts"]["size"])
        self.margins = document.page
        self._started = False

        self._renderers: Dict[str, Callable[[Element], None]] = {
            ElementType.TEXT: self.render_text,
            ElementType.TABLE: self.render_table,
            ElementType.GRID: self.render_grid,
            ElementType.SPACE: self.render_space,
            ElementType.LINE: self.render_line,
            ElementType.IMAGE: self.render_image,
        }

    # -------------------------------------------------------------------------
    # Build lifecycle
    # -------------------------------------------------------------------------

    def build(self) -> bytes:
        """
        Render every element and return the encoded PDF.

        Raises:
            RuntimeError: If this engine has already been used
        """
        start_time = time.time()
        self.start_document()

        for element in self.document.elements:
            self.render_element(element)

        pdf_bytes = self.finish()
        log_build_result(
            page_count=self.backend.page_count(),
            byte_count=len(pdf_bytes),
            elapsed_time=time.time() - start_time,
            issues=self.diagnostics.messages if self.diagnostics is not None else None,
        )
        return pdf_bytes

    def start_document(self) -> None:
        """Open the backend session, add the first page, register fonts, set the default font."""
        if self._started:
            raise RuntimeError("LayoutEngine is single-use; create a new engine per document")
        self._started = True

        page = self.document.page
        log_build_start(len(self.document.elements), page.format, page.orientation)

        try:
            self.backend.create_document(page.orientation, page.format, page.margins)
        except PageFormatError as e:
            fallback = self.defaults["page"]["format"]
            self._warn(IssueKinds.BAD_PAGE_FORMAT, f"{e}; using {fallback}")
            self.backend.create_document(page.orientation, fallback, page.margins)

        self.backend.add_page()
        self._setup_fonts()
        self.apply_style(None)

    def finish(self) -> bytes:
        return self.backend.output()

    def _setup_fonts(self) -> None:
        embedded_dir = self.defaults["fonts"].get("embedded_dir")
        if embedded_dir:
            for style, path in discover_embedded_fonts(str(embedded_dir)):
                self.backend.add_font(EMBEDDED_FONT_FAMILY, path, style)

        for name, path in self.document.fonts.paths.items():
            if Path(path).exists():
                self.backend.add_font(name, Path(path))
            else:
                self._warn(IssueKinds.MISSING_FONT_FILE, f"Custom font {name} not found at {path}")

    # -------------------------------------------------------------------------
    # Shared helpers
    # -------------------------------------------------------------------------

    def _warn(self, kind: str, message: str) -> None:
        _log_warning(message)
        if self.diagnostics is not None:
            self.diagnostics.warn(kind, message)

    @property
    def available_width(self) -> float:
        """Page width between the left and right page margins."""
        page_width, _ = self.backend.page_size()
        return page_width - self.margins.left - self.margins.right

    def content_area(self, base_width: float, style: Optional[Style]) -> Tuple[float, float]:
        """
        Narrow a width by the style's horizontal margin and padding.

        Returns:
            (content_width, left_offset) where left_offset is margin left + padding left
        """
        if style is None:
            return base_width, 0.0

        margin = style.margin_spacing
        padding = style.padding_spacing
        width = base_width - margin.horizontal - padding.horizontal
        return width, margin.left + padding.left

    def _color(self, hex_color: str) -> RGB:
        rgb = hex_to_rgb(hex_color)
        if rgb is None:
            self._warn(IssueKinds.BAD_COLOR, f"Invalid color {hex_color!r}; using black")
            return BLACK
        return rgb

    def _set_font(self, family: str, font_style: str, size: float) -> None:
        candidates = [family, self.document.fonts.default, self.defaults["fonts"]["default"]]
        for i, candidate in enumerate(candidates):
            try:
                self.backend.set_font(candidate, font_style, size)
                return
            except FontError as e:
                if i == len(candidates) - 1:
                    raise
                self._warn(IssueKinds.BAD_FONT, f"{e}; falling back to {candidates[i + 1]!r}")

    def apply_style(self, style: Optional[Style]) -> None:
        """Set font, text color and fill color from a style (None = default font, black text)."""
        if style is None:
            self._set_font(self.document.fonts.default, "", self.default_font_size)
            self.backend.set_text_color(*BLACK)
            return

        font_style = ("B" if style.bold else "") + ("I" if style.italic else "")
        size = style.size if style.size > 0 else self.default_font_size
        self._set_font(style.font or self.document.fonts.default, font_style, size)

        self.backend.set_text_color(*(self._color(style.color) if style.color else BLACK))

        if style.bg_color:
            self.backend.set_fill_color(*self._color(style.bg_color))

    # -------------------------------------------------------------------------
    # Element dispatch
    # -------------------------------------------------------------------------

    def render_element(self, element: Element) -> None:
        """Apply the top margin, draw the element by type, apply the bottom margin."""
        margin = element.style.margin_spacing if element.style is not None else ZERO_SPACING

        if margin.top > 0:
            self.backend.ln(margin.top)

        renderer = self._renderers.get(element.type)
        if renderer is None:
            self._warn(IssueKinds.UNKNOWN_ELEMENT, f"Skipping unknown element type {element.type!r}")
        else:
            renderer(element)

        if margin.bottom > 0:
            self.backend.ln(margin.bottom)

    def render_element_in_width(self, element: Element, max_width: float) -> None:
        """Render a grid child; text is fitted to max_width, other types render normally."""
        if element.type == ElementType.TEXT:
            self.render_text_in_width(element, max_width)
        else:
            self.render_element(element)

    # -------------------------------------------------------------------------
    # Element renderers
    # -------------------------------------------------------------------------

    def _draw_text(
        self, element: Element, width: float, line_height: float, single_line_height: float
    ) -> None:
        """
        Draw text content at the cursor: wrapped when it contains newlines,
        otherwise one cell. The cursor ends on the next line at the left margin.

        Text that cannot be laid out in width (not even one character per
        line) is skipped and reported; the cursor still returns to the left
        margin on the same line.
        """
        style = element.style or Style()
        align = to_backend_align(style.align)
        try:
            if "\n" in element.content:
                self.backend.multi_cell(
                    width, line_height, element.content, style.border, align, style.fill
                )
            else:
                self.backend.cell(
                    width,
                    single_line_height,
                    element.content,
                    style.border,
                    new_line=True,
                    align=align,
                    fill=style.fill,
                )
        except TextLayoutError as e:
            self._warn(IssueKinds.TEXT_TOO_NARROW, f"Skipping text {element.content[:20]!r}: {e}")
            self.backend.set_x(self.margins.left)

    def render_text(self, element: Element) -> None:
        self.apply_style(element.style)
        style = element.style or Style()

        height = style.height if style.height > 0 else self.settings["text_height"]
        content_width, left_offset = self.content_area(self.available_width, element.style)

        if left_offset > 0:
            self.backend.set_x(self.backend.get_x() + left_offset)

        self._draw_text(element, content_width, height, height)

    def render_text_in_width(self, element: Element, max_width: float) -> None:
        self.apply_style(element.style)
        style = element.style or Style()

        height = style.height if style.height > 0 else self.settings["grid_text_height"]
        self._draw_text(
            element, max_width, height, height * self.settings["grid_single_line_factor"]
        )

    def table_start_x(self, total_width: float, align: str) -> float:
        """
        Absolute X of a table's left edge for its alignment.

        Independent of the current cursor X: tables are placed relative to the
        page margins.
        """
        free = self.available_width - total_width
        if align == "center":
            return self.margins.left + free / 2
        if align == "right":
            return self.margins.left + free
        return self.margins.left

    def render_table(self, element: Element) -> None:
        if not element.columns:
            self._warn(IssueKinds.EMPTY_TABLE, "Skipping table without columns")
            return
        if not element.rows:
            _log_debug("Table has no rows; nothing drawn")
            return

        style = element.style or Style()
        row_height = self.settings["table_row_height"]
        total_width = sum(column.width for column in element.columns)
        start_x = self.table_start_x(total_width, style.align)

        self.backend.set_xy(start_x, self.backend.get_y())

        # Header
        self.apply_style(element.style)
        header_border = style.border or self.settings["table_border"]
        for column in element.columns:
            self.backend.cell(
                column.width,
                row_height,
                column.header,
                header_border,
                new_line=False,
                align=to_backend_align(column.align),
                fill=style.fill,
            )
        self.backend.set_xy(start_x, self.backend.get_y() + row_height)

        # Rows; cells beyond the declared columns are dropped
        for row in element.rows:
            self.apply_style(row.style)
            fill = row.style is not None and row.style.fill
            for column, text in zip(element.columns, row.cells):
                self.backend.cell(
                    column.width,
                    row_height,
                    text,
                    self.settings["table_border"],
                    new_line=False,
                    align=to_backend_align(column.align),
                    fill=fill,
                )
            self.backend.set_xy(start_x, self.backend.get_y() + row_height)

        self.backend.set_x(self.margins.left)

    def render_grid(self, element: Element) -> None:
        """
        Lay children out in rows of grid_columns equal-width columns.

        Each row is rendered twice. The first pass renders every child at its
        column, records how far it moved the cursor down and puts the cursor
        back. The second pass renders the children for good. The next row then
        starts below the tallest child of this row plus the row gap, whatever
        height the last-rendered child ended at.
        """
        columns = element.grid_columns
        if columns <= 0 or not element.children:
            self._warn(IssueKinds.EMPTY_GRID, f"Skipping grid with {columns} columns and "
                       f"{len(element.children)} children")
            return

        column_width = self.available_width / columns
        cell_width = column_width - self.settings["grid_cell_inset"]
        left = self.margins.left
        children = element.children

        for row_start in range(0, len(children), columns):
            row = children[row_start : row_start + columns]
            start_y = self.backend.get_y()
            row_height = 0.0

            # Pass 1: measure
            for col, child in enumerate(row):
                x = left + col * column_width
                self.backend.set_xy(x, start_y)
                self.render_element_in_width(child, cell_width)
                row_height = max(row_height, self.backend.get_y() - start_y)
                self.backend.set_xy(x, start_y)

            # Pass 2: commit
            for col, child in enumerate(row):
                self.backend.set_xy(left + col * column_width, start_y)
                self.render_element_in_width(child, cell_width)

            self.backend.set_xy(left, start_y + row_height + self.settings["grid_row_gap"])

    def render_space(self, element: Element) -> None:
        height = element.style.height if element.style is not None else 0
        self.backend.ln(height if height > 0 else self.settings["space_height"])

    def render_line(self, element: Element) -> None:
        style = element.style or Style()
        thickness = style.height if style.height > 0 else self.settings["line_thickness"]

        if style.color:
            self.backend.set_draw_color(*self._color(style.color))
        self.backend.set_line_width(thickness)

        x, y = self.backend.get_x(), self.backend.get_y()
        if element.length > 0:
            end_x = x + element.length
        else:
            page_width, _ = self.backend.page_size()
            end_x = page_width - self.margins.right

        self.backend.line(x, y, end_x, y)
        self.backend.ln(self.settings["line_advance"])
        self.backend.set_draw_color(*BLACK)

    def render_image(self, element: Element) -> None:
        content = element.content
        if not content.startswith(IMAGE_DATA_PREFIX):
            self._warn(IssueKinds.BAD_IMAGE, "Only base64 data URI images are supported")
            return

        parts = content.split(",")
        if len(parts) != 2:
            self._warn(IssueKinds.BAD_IMAGE, "Malformed image data URI")
            return
        header, payload = parts

        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            self._warn(IssueKinds.BAD_IMAGE, "Image payload is not valid base64")
            return

        image_type = "JPG" if ("jpeg" in header or "jpg" in header) else "PNG"
        style = element.style or Style()
        width = style.width if style.width > 0 else self.settings["image_width"]
        height = style.height if style.height > 0 else 0.0

        try:
            self.backend.image(
                f"temp_image_{len(data)}",
                image_type,
                data,
                self.backend.get_x(),
                self.backend.get_y(),
                width,
                height,
            )
        except ImageDataError as e:
            self._warn(IssueKinds.BAD_IMAGE, str(e))
            return

        if height == 0:
            height = width * self.settings["image_aspect"]
        self.backend.ln(height + self.settings["image_advance"])
