"""
Templating Context

Responsibilities:
- Scopes user variables (root scope and per-loop-iteration scopes)
- Expands {{#name}}...{{/name}} loops and substitutes {{path}} placeholders
  in raw descriptor text
- Decodes resolved descriptor text

Owns: Variable scoping, textual template resolution, descriptor decoding
Never: Computes layout or talks to the drawing backend
"""

from docforge.contexts.templating.exceptions import DescriptorError
from docforge.contexts.templating.loader import (
    load_template_text,
    parse_descriptor,
    resolve_descriptor_text,
)
from docforge.contexts.templating.resolver import TemplateResolver, resolve, value_to_text
from docforge.contexts.templating.variable_context import ABSENT, VariableContext

__all__ = [
    # Variable scoping
    "ABSENT",
    "VariableContext",
    # Resolution
    "TemplateResolver",
    "resolve",
    "value_to_text",
    # Descriptor loading
    "load_template_text",
    "parse_descriptor",
    "resolve_descriptor_text",
    "DescriptorError",
]
