"""
DOCFORGE - Descriptor-driven PDF document generation

Turns a JSON document descriptor (page layout, typography, element tree) plus
a set of variables into a paginated PDF.

Architecture:
- Templating Context: Variable scoping and textual template resolution
- Rendering Context: Element tree, layout/flow computation and PDF output
"""

__version__ = "0.1.0"
