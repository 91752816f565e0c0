"""
Unit tests for the layout engine.

Positions are in mm on A4 portrait with the default margins (left 15,
top 12, right 15, bottom 20): the cursor starts at (15, 12) and the usable
width is 180.
"""

import pytest

from docforge.contexts.rendering.document_model import (
    Document,
    Element,
    FontConfig,
    PageConfig,
    Style,
    TableColumn,
    TableRow,
)
from docforge.contexts.rendering.layout_engine import LayoutEngine, to_backend_align
from docforge.utils.diagnostics import Diagnostics, IssueKinds, StrictModeError


# 1x1 RGBA PNG
PNG_DATA_URI = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def approx(value):
    return pytest.approx(value, abs=0.01)


# =============================================================================
# Text
# =============================================================================


@pytest.mark.unit
def test_single_line_text(render):
    backend, diagnostics = render(Element("text", content="Hello"))

    (cell,) = backend.named("cell")
    w, h, text, border, new_line, align, fill = cell.args
    assert (cell.x, cell.y) == (approx(15), approx(12))
    assert w == approx(180)
    assert h == 8
    assert text == "Hello"
    assert new_line is True
    assert align == "L"
    assert backend.get_y() == approx(20)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_multi_line_text_uses_wrapped_cell(render):
    backend, _ = render(Element("text", content="first\nsecond"))

    assert not backend.named("cell")
    (multi,) = backend.named("multi_cell")
    assert multi.args[1] == 8
    assert backend.get_y() == approx(12 + 2 * 8)


@pytest.mark.unit
def test_text_margin_and_padding(render):
    style = Style(margin=(5, 10), padding=(0, 3))
    backend, _ = render(Element("text", content="Indented", style=style))

    (cell,) = backend.named("cell")
    # Top margin moved the cursor down, left margin + left padding indent it
    assert cell.y == approx(17)
    assert cell.x == approx(15 + 10 + 3)
    assert cell.args[0] == approx(180 - 20 - 6)
    # Bottom margin after the 8 mm line
    assert backend.get_y() == approx(17 + 8 + 5)


@pytest.mark.unit
def test_text_without_room_for_a_character_is_skipped(render):
    # 89 mm of padding on each side leaves 2 mm for the text
    narrow = Element("text", content="ab\ncd", style=Style(padding=(0, 89)))
    backend, diagnostics = render(narrow, Element("text", content="after"))

    (after,) = backend.named("cell")
    assert (after.x, after.y) == (approx(15), approx(12))
    assert [issue.kind for issue in diagnostics.issues] == [IssueKinds.TEXT_TOO_NARROW]


@pytest.mark.unit
def test_text_style_applied(render):
    style = Style(
        font="times", size=14, bold=True, italic=True, color="#336699", bg_color="#eeeeee",
        align="center", border="1", fill=True, height=6,
    )
    backend, diagnostics = render(Element("text", content="Styled", style=style))

    assert backend.named("set_font")[-1].args == ("times", "BI", 14)
    assert backend.named("set_text_color")[-1].args == (51, 102, 153)
    assert backend.named("set_fill_color")[-1].args == (238, 238, 238)

    (cell,) = backend.named("cell")
    _, h, _, border, _, align, fill = cell.args
    assert (h, border, align, fill) == (6, "1", "C", True)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_bad_color_falls_back_to_black(render):
    backend, diagnostics = render(Element("text", content="x", style=Style(color="nothex")))

    assert backend.named("set_text_color")[-1].args == (0, 0, 0)
    assert diagnostics.of_kind(IssueKinds.BAD_COLOR)


@pytest.mark.unit
def test_unknown_font_falls_back_to_default(render):
    backend, diagnostics = render(Element("text", content="x", style=Style(font="NoSuchFont")))

    assert backend.named("set_font")[-1].args == ("helvetica", "", 10)
    assert len(backend.named("cell")) == 1
    assert diagnostics.of_kind(IssueKinds.BAD_FONT)


@pytest.mark.unit
def test_core_font_alias(recording_backend):
    backend = recording_backend
    backend.create_document("portrait", "A4", (15, 12, 15, 20))
    backend.add_page()
    backend.set_font("Arial", "B", 10)
    assert backend.pdf.font_family == "helvetica"


# =============================================================================
# Tables
# =============================================================================


def make_table(align="", rows=None, style_fields=None):
    style = Style(align=align, **(style_fields or {}))
    return Element(
        "table",
        style=style,
        columns=(TableColumn("Item", 40), TableColumn("Qty", 40, "right")),
        rows=rows if rows is not None else (TableRow(("Pen", "2")),),
    )


@pytest.mark.unit
@pytest.mark.parametrize(
    "align, start_x",
    [
        ("", 15),
        ("left", 15),
        ("center", 15 + (180 - 80) / 2),
        ("right", 15 + 180 - 80),
    ],
)
def test_table_start_x(render, align, start_x):
    backend, _ = render(make_table(align))

    header, _, row_first, _ = backend.named("cell")
    assert header.x == approx(start_x)
    assert header.y == approx(12)
    assert row_first.x == approx(start_x)
    assert row_first.y == approx(12 + 8)
    # Cursor returns to the left margin below the table
    assert backend.get_x() == approx(15)
    assert backend.get_y() == approx(12 + 2 * 8)


@pytest.mark.unit
def test_table_cells(render):
    rows = (
        TableRow(("Pen", "2", "ignored")),
        TableRow(("Ink",), style=Style(bold=True)),
    )
    backend, diagnostics = render(make_table(rows=rows))

    cells = backend.named("cell")
    assert [call.args[2] for call in cells] == ["Item", "Qty", "Pen", "2", "Ink"]
    # Header and data cells are bordered; column alignment applies to every cell
    assert all(call.args[3] == "1" for call in cells)
    assert [call.args[5] for call in cells] == ["L", "R", "L", "R", "L"]
    assert ("helvetica", "B", 10) in [call.args for call in backend.named("set_font")]
    assert backend.get_y() == approx(12 + 3 * 8)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_table_header_style(render):
    table = make_table(style_fields={"border": "B", "fill": True, "bg_color": "#cccccc"})
    backend, _ = render(table)

    header_cells = backend.named("cell")[:2]
    assert all(call.args[3] == "B" and call.args[6] is True for call in header_cells)
    data_cells = backend.named("cell")[2:]
    assert all(call.args[3] == "1" and call.args[6] is False for call in data_cells)


@pytest.mark.unit
def test_table_without_rows_draws_nothing(render):
    backend, diagnostics = render(make_table(rows=()))

    assert not backend.named("cell")
    assert diagnostics.is_clean


@pytest.mark.unit
def test_table_without_columns_is_skipped(render):
    backend, diagnostics = render(Element("table", rows=(TableRow(("a",)),)))

    assert not backend.named("cell")
    assert diagnostics.of_kind(IssueKinds.EMPTY_TABLE)


# =============================================================================
# Grids
# =============================================================================


@pytest.mark.unit
def test_grid_rows_start_below_tallest_child(render):
    grid = Element(
        "grid",
        grid_columns=2,
        children=(
            Element("text", content="short"),
            Element("text", content="two\nlines"),
            Element("text", content="next row"),
        ),
    )
    backend, diagnostics = render(grid)

    # Single-line grid text is 5 * 1.5 high, wrapped text 5 per line
    first_row_height = max(5 * 1.5, 2 * 5)
    second_row_y = 12 + first_row_height + 2

    short_cells = [call for call in backend.named("cell") if call.args[2] == "short"]
    wrapped = backend.named("multi_cell")
    next_row = [call for call in backend.named("cell") if call.args[2] == "next row"]

    # Every child is rendered twice: measure, then commit
    assert len(short_cells) == 2 and len(wrapped) == 2 and len(next_row) == 2
    assert all(call.x == approx(15) and call.y == approx(12) for call in short_cells)
    assert all(call.x == approx(15 + 90) and call.y == approx(12) for call in wrapped)
    assert all(call.x == approx(15) and call.y == approx(second_row_y) for call in next_row)

    assert short_cells[0].args[0] == approx(90 - 2)
    assert short_cells[0].args[1] == approx(7.5)
    assert backend.get_y() == approx(second_row_y + 7.5 + 2)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_grid_row_height_is_not_the_last_child_height(render):
    grid = Element(
        "grid",
        grid_columns=2,
        children=(
            Element("text", content="two\nlines"),
            Element("text", content="short"),
            Element("text", content="next row"),
        ),
    )
    backend, diagnostics = render(grid)

    # The first child is the tallest (2 * 5); the short one after it ends at 12 + 7.5
    second_row_y = 12 + 2 * 5 + 2

    short_cells = [call for call in backend.named("cell") if call.args[2] == "short"]
    next_row = [call for call in backend.named("cell") if call.args[2] == "next row"]
    assert all(call.x == approx(15 + 90) and call.y == approx(12) for call in short_cells)
    assert all(call.y == approx(second_row_y) for call in next_row)
    assert backend.get_y() == approx(second_row_y + 7.5 + 2)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_grid_column_too_narrow_for_text(render):
    # 60 columns of 3 mm leave 1 mm per child after the inset
    grid = Element("grid", grid_columns=60, children=(Element("text", content="ab\ncd"),))
    backend, diagnostics = render(grid)

    assert backend.get_y() == approx(12 + 2)
    assert diagnostics.of_kind(IssueKinds.TEXT_TOO_NARROW)
    assert {issue.kind for issue in diagnostics.issues} == {IssueKinds.TEXT_TOO_NARROW}


@pytest.mark.unit
def test_grid_non_text_child_renders_normally(render):
    grid = Element("grid", grid_columns=3, children=(Element("space"),))
    backend, _ = render(grid)

    assert [call.args for call in backend.named("ln")] == [(5,), (5,)]
    assert backend.get_y() == approx(12 + 5 + 2)


@pytest.mark.unit
@pytest.mark.parametrize(
    "grid",
    [
        Element("grid", grid_columns=0, children=(Element("text", content="x"),)),
        Element("grid", grid_columns=2),
    ],
)
def test_empty_grid_is_skipped(render, grid):
    backend, diagnostics = render(grid)

    assert not backend.named("cell")
    assert diagnostics.of_kind(IssueKinds.EMPTY_GRID)


# =============================================================================
# Space, line, image
# =============================================================================


@pytest.mark.unit
def test_space(render):
    backend, _ = render(Element("space"), Element("space", style=Style(height=12)))
    assert [call.args for call in backend.named("ln")] == [(5,), (12,)]
    assert backend.get_y() == approx(12 + 5 + 12)


@pytest.mark.unit
def test_full_width_line(render):
    backend, _ = render(Element("line"))

    (line,) = backend.named("line")
    assert line.args == (approx(15), approx(12), approx(195), approx(12))
    assert backend.named("set_line_width")[-1].args == (0.1,)
    assert backend.named("set_draw_color")[-1].args == (0, 0, 0)
    assert backend.get_y() == approx(14)


@pytest.mark.unit
def test_styled_line_with_length(render):
    backend, _ = render(Element("line", length=50, style=Style(color="#ff0000", height=0.5)))

    (line,) = backend.named("line")
    assert line.args[2] == approx(65)
    assert backend.named("set_line_width")[-1].args == (0.5,)
    assert [call.args for call in backend.named("set_draw_color")] == [(255, 0, 0), (0, 0, 0)]


@pytest.mark.unit
def test_image_default_size(render):
    backend, diagnostics = render(Element("image", content=PNG_DATA_URI))

    (image,) = backend.named("image")
    name, image_type, x, y, w, h = image.args
    assert name.startswith("temp_image_")
    assert image_type == "PNG"
    assert (x, y, w, h) == (approx(15), approx(12), 50, 0)
    assert backend.get_y() == approx(12 + 50 * 0.75 + 2)
    assert diagnostics.is_clean


@pytest.mark.unit
def test_image_explicit_size(render):
    style = Style(width=30, height=20)
    backend, _ = render(Element("image", content=PNG_DATA_URI, style=style))

    assert backend.named("image")[0].args[4:] == (30, 20)
    assert backend.get_y() == approx(12 + 20 + 2)


@pytest.mark.unit
@pytest.mark.parametrize(
    "content",
    [
        "https://example.com/logo.png",
        "data:image/png;base64,abc,def",
        "data:image/png;base64,@@not base64@@",
        "data:image/png;base64,aGVsbG8gd29ybGQ=",
    ],
)
def test_unusable_image_is_skipped(render, content):
    backend, diagnostics = render(Element("image", content=content))

    assert backend.get_y() == approx(12)
    assert diagnostics.of_kind(IssueKinds.BAD_IMAGE)


# =============================================================================
# Dispatch, document setup, lifecycle
# =============================================================================


@pytest.mark.unit
def test_unknown_element_is_skipped(render):
    backend, diagnostics = render(
        Element("chart", style=Style(margin=(4,))), Element("text", content="after")
    )

    (cell,) = backend.named("cell")
    assert cell.args[2] == "after"
    # Margins still apply around the skipped element
    assert cell.y == approx(12 + 4 + 4)
    assert [issue.kind for issue in diagnostics.issues] == [IssueKinds.UNKNOWN_ELEMENT]


@pytest.mark.unit
def test_strict_mode_stops_on_first_issue(render):
    with pytest.raises(StrictModeError):
        render(Element("chart"), strict=True)


@pytest.mark.unit
def test_unknown_page_format_falls_back(render):
    backend, diagnostics = render(page=PageConfig(format="Postcard99"))

    formats = [call.args[1] for call in backend.named("create_document")]
    assert formats == ["Postcard99", "A4"]
    assert backend.page_size()[0] == approx(210)
    assert diagnostics.of_kind(IssueKinds.BAD_PAGE_FORMAT)


@pytest.mark.unit
def test_landscape_page(render):
    backend, _ = render(Element("line"), page=PageConfig(orientation="landscape"))

    assert backend.page_size()[0] == approx(297)
    assert backend.named("line")[0].args[2] == approx(297 - 15)


@pytest.mark.unit
def test_missing_custom_font_is_reported(recording_backend):
    diagnostics = Diagnostics()
    document = Document(fonts=FontConfig(paths={"Brand": "/nonexistent/brand.ttf"}))
    LayoutEngine(document, backend=recording_backend, diagnostics=diagnostics).build()

    assert diagnostics.of_kind(IssueKinds.MISSING_FONT_FILE)


@pytest.mark.unit
def test_engine_is_single_use():
    engine = LayoutEngine(Document(elements=(Element("text", content="once"),)))

    pdf_bytes = engine.build()
    assert pdf_bytes.startswith(b"%PDF")

    with pytest.raises(RuntimeError):
        engine.build()


@pytest.mark.unit
@pytest.mark.parametrize(
    "align, expected", [("left", "L"), ("center", "C"), ("right", "R"), ("", "L"), ("justify", "L")]
)
def test_to_backend_align(align, expected):
    assert to_backend_align(align) == expected
