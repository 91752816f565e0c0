"""
Document Model

Immutable element tree built from a decoded descriptor dict:

    Document
    ├── PageConfig   (format, orientation, margins)
    ├── FontConfig   (default family, named font files)
    └── Element*     (text | table | grid | space | line | image)
        ├── Style
        ├── TableColumn* / TableRow*   (tables)
        └── Element*                   (grid children)

Decoding is lenient. A field of the wrong JSON type falls back to its default
and is reported to the optional Diagnostics collector; it never raises.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from docforge.contexts.rendering.defaults import load_render_defaults
from docforge.contexts.rendering.spacing import Spacing, parse_spacing
from docforge.utils.diagnostics import Diagnostics, IssueKinds


class ElementType:
    """Element type identifiers as they appear in descriptors."""

    TEXT = "text"
    TABLE = "table"
    GRID = "grid"
    SPACE = "space"
    LINE = "line"
    IMAGE = "image"

    ALL = (TEXT, TABLE, GRID, SPACE, LINE, IMAGE)


@dataclass(frozen=True)
class Style:
    """
    Visual style of an element or table row.

    Zero/empty values mean "not set"; the layout engine substitutes its
    defaults for them.

    Attributes:
        font: Font family name
        size: Font size in pt
        bold: Bold face
        italic: Italic face
        color: Text (or line) color as hex
        bg_color: Fill color as hex
        align: "left", "center" or "right"
        border: "0", "1" or any combination of "LTRB"
        fill: Paint the cell background with bg_color
        width: Explicit width in mm (images)
        height: Explicit height in mm (text line height, space, line thickness, images)
        margin: Raw margin shorthand array
        padding: Raw padding shorthand array
    """

    font: str = ""
    size: float = 0.0
    bold: bool = False
    italic: bool = False
    color: str = ""
    bg_color: str = ""
    align: str = ""
    border: str = ""
    fill: bool = False
    width: float = 0.0
    height: float = 0.0
    margin: Tuple[float, ...] = ()
    padding: Tuple[float, ...] = ()

    @property
    def margin_spacing(self) -> Spacing:
        return parse_spacing(self.margin)

    @property
    def padding_spacing(self) -> Spacing:
        return parse_spacing(self.padding)


@dataclass(frozen=True)
class TableColumn:
    header: str = ""
    width: float = 0.0
    align: str = ""


@dataclass(frozen=True)
class TableRow:
    cells: Tuple[str, ...] = ()
    style: Optional[Style] = None


@dataclass(frozen=True)
class Element:
    """
    One node of the element tree.

    Attributes:
        type: One of ElementType.ALL, or any other string (skipped at layout)
        content: Text for "text", data URI for "image"
        style: Optional Style
        children: Child elements ("grid")
        columns: Column definitions ("table")
        rows: Data rows ("table")
        grid_columns: Number of grid columns ("grid")
        length: Line length in mm, 0 for full width ("line")
    """

    type: str
    content: str = ""
    style: Optional[Style] = None
    children: Tuple["Element", ...] = ()
    columns: Tuple[TableColumn, ...] = ()
    rows: Tuple[TableRow, ...] = ()
    grid_columns: int = 0
    length: float = 0.0


@dataclass(frozen=True)
class PageConfig:
    """
    Page setup.

    Attributes:
        format: Page format name understood by the backend ("A4", "Letter", ...)
        orientation: "portrait" or "landscape"
        margins: (left, top, right, bottom) in mm
    """

    format: str = "A4"
    orientation: str = "portrait"
    margins: Tuple[float, float, float, float] = (15, 12, 15, 20)

    @property
    def left(self) -> float:
        return self.margins[0]

    @property
    def top(self) -> float:
        return self.margins[1]

    @property
    def right(self) -> float:
        return self.margins[2]

    @property
    def bottom(self) -> float:
        return self.margins[3]


@dataclass(frozen=True)
class FontConfig:
    default: str = "helvetica"
    paths: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Document:
    page: PageConfig = field(default_factory=PageConfig)
    fonts: FontConfig = field(default_factory=FontConfig)
    elements: Tuple[Element, ...] = ()


# =============================================================================
# Decoding
# =============================================================================


def _is_number(value: Any) -> bool:
    """True for finite JSON numbers; json.loads accepts NaN and turns 1e400 into inf."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _compact(values) -> tuple:
    """Drop None entries."""
    return tuple(value for value in values if value is not None)


class _DescriptorDecoder:
    """Lenient dict -> model conversion that reports malformed fields."""

    def __init__(self, diagnostics: Optional[Diagnostics], defaults: Dict[str, Any]):
        self.diagnostics = diagnostics
        self.defaults = defaults

    def _malformed(self, where: str, key: str, value: Any) -> None:
        if self.diagnostics is not None:
            self.diagnostics.warn(
                IssueKinds.MALFORMED_FIELD, f"{where}.{key}: unexpected value {value!r}"
            )

    def _get(self, data: Mapping, key: str, check, default, where: str):
        if key not in data or data[key] is None:
            return default
        value = data[key]
        if not check(value):
            self._malformed(where, key, value)
            return default
        return value

    def string(self, data: Mapping, key: str, where: str, default: str = "") -> str:
        return self._get(data, key, lambda v: isinstance(v, str), default, where)

    def number(self, data: Mapping, key: str, where: str, default: float = 0.0) -> float:
        return float(self._get(data, key, _is_number, default, where))

    def boolean(self, data: Mapping, key: str, where: str) -> bool:
        return self._get(data, key, lambda v: isinstance(v, bool), False, where)

    def numbers(self, data: Mapping, key: str, where: str) -> Tuple[float, ...]:
        values = self._get(
            data, key, lambda v: isinstance(v, list) and all(_is_number(x) for x in v), [], where
        )
        return tuple(float(x) for x in values)

    def mapping(self, data: Mapping, key: str, where: str) -> Mapping:
        return self._get(data, key, lambda v: isinstance(v, Mapping), {}, where)

    def items(self, data: Mapping, key: str, where: str) -> List[Any]:
        return self._get(data, key, lambda v: isinstance(v, list), [], where)

    # -------------------------------------------------------------------------

    def style(self, data: Any, where: str) -> Optional[Style]:
        if data is None:
            return None
        if not isinstance(data, Mapping):
            self._malformed(where, "style", data)
            return None

        where = f"{where}.style"
        border = data.get("border")
        if _is_number(border):
            # Descriptors sometimes write border: 1
            border = str(int(border))
        elif not isinstance(border, str):
            if border is not None:
                self._malformed(where, "border", border)
            border = ""

        return Style(
            font=self.string(data, "font", where),
            size=self.number(data, "size", where),
            bold=self.boolean(data, "bold", where),
            italic=self.boolean(data, "italic", where),
            color=self.string(data, "color", where),
            bg_color=self.string(data, "bgColor", where),
            align=self.string(data, "align", where),
            border=border,
            fill=self.boolean(data, "fill", where),
            width=self.number(data, "width", where),
            height=self.number(data, "height", where),
            margin=self.numbers(data, "margin", where),
            padding=self.numbers(data, "padding", where),
        )

    def column(self, data: Any, where: str) -> Optional[TableColumn]:
        if not isinstance(data, Mapping):
            self._malformed(where, "columns", data)
            return None
        return TableColumn(
            header=self.string(data, "header", where),
            width=self.number(data, "width", where),
            align=self.string(data, "align", where),
        )

    def rows(self, data: Mapping, where: str) -> Tuple[TableRow, ...]:
        """
        Decode table rows from a list of row objects, or from a string of
        comma-joined row objects (a loop expanded inside a JSON string value).

        String rows are decoded as "[" + text + "]". Substituted values are
        escaped once for the surrounding JSON string, not again for the row
        objects nested in it, so a value containing a quote or backslash makes
        the row text undecodable: the table then has no rows and
        MALFORMED_ROWS is reported.
        """
        raw_rows = data.get("rows")
        if raw_rows is None:
            return ()

        if isinstance(raw_rows, str):
            # A loop expanded inside a JSON string: comma-joined row objects
            try:
                raw_rows = json.loads(f"[{raw_rows}]")
            except json.JSONDecodeError as e:
                if self.diagnostics is not None:
                    self.diagnostics.warn(
                        IssueKinds.MALFORMED_ROWS, f"{where}.rows: cannot decode row text ({e})"
                    )
                return ()

        if not isinstance(raw_rows, list):
            self._malformed(where, "rows", raw_rows)
            return ()

        rows = []
        for i, raw_row in enumerate(raw_rows):
            row_where = f"{where}.rows[{i}]"
            if not isinstance(raw_row, Mapping):
                self._malformed(where, f"rows[{i}]", raw_row)
                continue
            cells = tuple(
                cell for cell in self.items(raw_row, "cells", row_where) if isinstance(cell, str)
            )
            rows.append(TableRow(cells=cells, style=self.style(raw_row.get("style"), row_where)))
        return tuple(rows)

    def element(self, data: Any, where: str) -> Optional[Element]:
        if not isinstance(data, Mapping):
            self._malformed(where, "element", data)
            return None

        element_type = self.string(data, "type", where)
        where = f"{where}<{element_type}>"

        columns = _compact(
            self.column(raw, f"{where}.columns[{i}]")
            for i, raw in enumerate(self.items(data, "columns", where))
        )
        children = _compact(
            self.element(raw, f"{where}.children[{i}]")
            for i, raw in enumerate(self.items(data, "children", where))
        )

        grid_columns = self.number(data, "gridColumns", where)

        return Element(
            type=element_type,
            content=self.string(data, "content", where),
            style=self.style(data.get("style"), where),
            children=children,
            columns=columns,
            rows=self.rows(data, where),
            grid_columns=int(grid_columns),
            length=self.number(data, "length", where),
        )

    def page(self, data: Mapping) -> PageConfig:
        page_defaults = self.defaults["page"]
        raw = self.mapping(data, "page", "document")

        margins = self.numbers(raw, "margins", "page")
        if len(margins) != 4:
            margins = tuple(float(m) for m in page_defaults["margins"])

        return PageConfig(
            format=self.string(raw, "format", "page") or page_defaults["format"],
            orientation=self.string(raw, "orientation", "page") or page_defaults["orientation"],
            margins=margins,
        )

    def fonts(self, data: Mapping) -> FontConfig:
        raw = self.mapping(data, "fonts", "document")
        paths = {
            name: path
            for name, path in self.mapping(raw, "paths", "fonts").items()
            if isinstance(path, str)
        }
        return FontConfig(
            default=self.string(raw, "default", "fonts") or self.defaults["fonts"]["default"],
            paths=paths,
        )

    def document(self, data: Mapping) -> Document:
        elements = _compact(
            self.element(raw, f"elements[{i}]")
            for i, raw in enumerate(self.items(data, "elements", "document"))
        )
        return Document(page=self.page(data), fonts=self.fonts(data), elements=elements)


def document_from_dict(
    data: Mapping[str, Any],
    diagnostics: Optional[Diagnostics] = None,
    defaults: Optional[Dict[str, Any]] = None,
) -> Document:
    """
    Build a Document from a decoded descriptor.

    Args:
        data: Decoded descriptor (keys "page", "fonts", "elements")
        diagnostics: Optional collector for malformed fields
        defaults: Rendering defaults (defaults to load_render_defaults())

    Returns:
        Immutable Document

    Example:
        >>> doc = document_from_dict({"elements": [{"type": "text", "content": "Hi"}]})
        >>> doc.elements[0].content
        'Hi'
    """
    if defaults is None:
        defaults = load_render_defaults()
    return _DescriptorDecoder(diagnostics, defaults).document(data)
