"""
Rendering Context

Responsibilities:
- Decodes descriptor dicts into the immutable Document model
- Lays elements out top to bottom (margins, padding, tables, grids, images)
- Drives the drawing backend and returns encoded PDF bytes
- Reports layout anomalies to the diagnostics channel

Owns: Document model, layout, drawing backend, PDF generation entry points
Never: Resolves template markers (see the templating context)
"""

from docforge.contexts.rendering.backend import DrawingBackend, FPDFBackend
from docforge.contexts.rendering.document_model import (
    Document,
    Element,
    ElementType,
    FontConfig,
    PageConfig,
    Style,
    TableColumn,
    TableRow,
    document_from_dict,
)
from docforge.contexts.rendering.generator import (
    generate_pdf,
    generate_pdf_from_content,
    generate_pdf_from_file,
    generate_pdf_from_input,
    process_template_content,
    process_template_file,
)
from docforge.contexts.rendering.layout_engine import LayoutEngine
from docforge.contexts.rendering.spacing import Spacing, parse_spacing

__all__ = [
    # Document model
    "Document",
    "Element",
    "ElementType",
    "FontConfig",
    "PageConfig",
    "Style",
    "TableColumn",
    "TableRow",
    "document_from_dict",
    "Spacing",
    "parse_spacing",
    # Layout
    "LayoutEngine",
    "DrawingBackend",
    "FPDFBackend",
    # Entry points
    "generate_pdf",
    "generate_pdf_from_content",
    "generate_pdf_from_file",
    "generate_pdf_from_input",
    "process_template_content",
    "process_template_file",
]
