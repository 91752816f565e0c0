"""
PDF Generation Entry Points

Thin pipeline over the templating and rendering contexts:

    raw descriptor text --resolve--> JSON text --decode--> Document --layout--> PDF bytes

Every entry point builds a fresh LayoutEngine and backend, so concurrent
calls never share drawing state.
"""

import json
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from docforge.contexts.rendering.document_model import Document, document_from_dict
from docforge.contexts.rendering.layout_engine import LayoutEngine
from docforge.contexts.templating.exceptions import DescriptorError
from docforge.contexts.templating.loader import (
    load_template_text,
    parse_descriptor,
    resolve_descriptor_text,
)
from docforge.utils.diagnostics import Diagnostics

ENVELOPE_TEMPLATE_KEY = "pdf_template"
ENVELOPE_VARIABLES_KEY = "pdfVars"


def process_template_content(
    raw_text: str,
    variables: Optional[Mapping[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Document:
    """
    Resolve raw descriptor text against variables and decode it into a Document.

    Raises:
        DescriptorError: If the resolved text is not a JSON object
    """
    data = resolve_descriptor_text(raw_text, variables, diagnostics)
    return document_from_dict(data, diagnostics)


def process_template_file(
    template_path: Path,
    variables: Optional[Mapping[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> Document:
    """
    Like process_template_content, reading the descriptor from a file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        DescriptorError: If the resolved text is not a JSON object
    """
    template_path = Path(template_path)
    raw_text = load_template_text(template_path)
    data = resolve_descriptor_text(raw_text, variables, diagnostics, source=str(template_path))
    return document_from_dict(data, diagnostics)


def generate_pdf(document: Document, diagnostics: Optional[Diagnostics] = None) -> bytes:
    """
    Render a Document to PDF bytes.

    Args:
        document: Element tree to render
        diagnostics: Optional collector for layout anomalies

    Returns:
        Encoded PDF
    """
    return LayoutEngine(document, diagnostics=diagnostics).build()


def generate_pdf_from_content(
    raw_text: str,
    variables: Optional[Mapping[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> bytes:
    """
    Resolve, decode and render raw descriptor text in one call.

    Example:
        >>> raw = '{"elements": [{"type": "text", "content": "Hello {{name}}"}]}'
        >>> pdf_bytes = generate_pdf_from_content(raw, {"name": "World"})
        >>> pdf_bytes[:5]
        b'%PDF-'
    """
    document = process_template_content(raw_text, variables, diagnostics)
    return generate_pdf(document, diagnostics)


def generate_pdf_from_file(
    template_path: Path,
    variables: Optional[Mapping[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> bytes:
    document = process_template_file(template_path, variables, diagnostics)
    return generate_pdf(document, diagnostics)


def generate_pdf_from_input(
    payload: Union[str, Mapping[str, Any]],
    diagnostics: Optional[Diagnostics] = None,
) -> bytes:
    """
    Render a request payload.

    The payload (a dict or its JSON text) is either a bare descriptor or an
    envelope:

        {"pdf_template": {...descriptor...}, "pdfVars": {...variables...}}

    The envelope's descriptor is serialised back to JSON and resolved against
    pdfVars. Without pdfVars, and for bare descriptors, markers are left
    unresolved and the descriptor is rendered as given.

    Raises:
        DescriptorError: If the payload is not a JSON object, or the envelope's
            template or variables are not objects
    """
    if isinstance(payload, str):
        payload = parse_descriptor(payload, source="<input>")

    if ENVELOPE_TEMPLATE_KEY not in payload:
        return generate_pdf(document_from_dict(payload, diagnostics), diagnostics)

    template = payload[ENVELOPE_TEMPLATE_KEY]
    if not isinstance(template, Mapping):
        raise DescriptorError(
            f"{ENVELOPE_TEMPLATE_KEY} must be an object, got {type(template).__name__}",
            source="<input>",
        )

    variables = payload.get(ENVELOPE_VARIABLES_KEY)
    if variables is None:
        return generate_pdf(document_from_dict(template, diagnostics), diagnostics)
    if not isinstance(variables, Mapping):
        raise DescriptorError(
            f"{ENVELOPE_VARIABLES_KEY} must be an object, got {type(variables).__name__}",
            source="<input>",
        )

    raw_text = json.dumps(template, ensure_ascii=False)
    return generate_pdf_from_content(raw_text, variables, diagnostics)
