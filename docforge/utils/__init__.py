"""
Shared utilities for DOCFORGE.

Common functionality used across contexts:
- Logger setup
- Color parsing
- Diagnostics collection (see docforge.utils.diagnostics)
"""

from docforge.utils.colors import BLACK, hex_to_rgb

__all__ = ["BLACK", "hex_to_rgb"]
