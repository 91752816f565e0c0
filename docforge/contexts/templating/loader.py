"""
Descriptor loading and decoding.

Reads descriptor text from disk, resolves its template markers and decodes
the result into a plain dict for the rendering context.
"""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from docforge.contexts.templating.exceptions import DescriptorError
from docforge.contexts.templating.logger import log_resolution_result
from docforge.contexts.templating.resolver import resolve
from docforge.utils.diagnostics import Diagnostics

CONTENT_SOURCE = "<content>"


def load_template_text(template_path: Path) -> str:
    """
    Read raw descriptor text from a file.

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    return Path(template_path).read_text(encoding="utf-8")


def parse_descriptor(text: str, source: str = CONTENT_SOURCE) -> Dict[str, Any]:
    """
    Decode descriptor JSON text.

    Args:
        text: Descriptor text with all template markers resolved
        source: Descriptor origin used in error messages

    Returns:
        Decoded descriptor dict

    Raises:
        DescriptorError: If the text is not valid JSON or the root is not an object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        start = max(e.pos - 40, 0)
        raise DescriptorError(
            "Descriptor is not valid JSON",
            source=source,
            snippet=text[start : e.pos + 40],
            original_error=e,
        ) from e

    if not isinstance(data, dict):
        raise DescriptorError(
            f"Descriptor root must be an object, got {type(data).__name__}", source=source
        )
    return data


def resolve_descriptor_text(
    raw_text: str,
    variables: Optional[Mapping[str, Any]] = None,
    diagnostics: Optional[Diagnostics] = None,
    source: str = CONTENT_SOURCE,
) -> Dict[str, Any]:
    """
    Resolve template markers in raw descriptor text, then decode it.

    Args:
        raw_text: Descriptor text, possibly containing template markers
        variables: Root variables for resolution
        diagnostics: Optional collector for resolution anomalies
        source: Descriptor origin used in logs and error messages

    Returns:
        Decoded descriptor dict

    Raises:
        DescriptorError: If the resolved text cannot be decoded
    """
    issues_before = len(diagnostics.issues) if diagnostics is not None else 0
    resolved = resolve(raw_text, variables, diagnostics)
    issues = len(diagnostics.issues) - issues_before if diagnostics is not None else 0
    log_resolution_result(source, len(raw_text), len(resolved), issues)
    return parse_descriptor(resolved, source=source)
