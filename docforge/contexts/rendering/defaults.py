"""
Default values for descriptor rendering.

Provides the page, font and element defaults used by:
- document_model.py (filling in missing page/font config)
- layout_engine.py (element heights, gaps, line thickness, image sizing)

Values come from defaults.yaml next to this module, or from the file named by
DOCFORGE_DEFAULTS_PATH. Keys missing from the file fall back to the built-in
values below.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

from dotenv import load_dotenv
from omegaconf import OmegaConf

load_dotenv()
DEFAULTS_PATH = Path(os.getenv("DOCFORGE_DEFAULTS_PATH", Path(__file__).parent / "defaults.yaml"))

DEFAULT_PAGE = {
    "format": "A4",
    "orientation": "portrait",
    "margins": [15, 12, 15, 20],
}

DEFAULT_FONTS = {
    "default": "helvetica",
    "size": 10,
    "embedded_dir": None,
}

DEFAULT_ELEMENTS = {
    "text_height": 8,
    "grid_text_height": 5,
    "grid_single_line_factor": 1.5,
    "grid_cell_inset": 2,
    "grid_row_gap": 2,
    "space_height": 5,
    "line_thickness": 0.1,
    "line_advance": 2,
    "table_row_height": 8,
    "table_border": "1",
    "image_width": 50,
    "image_aspect": 0.75,
    "image_advance": 2,
}


def get_builtin_defaults() -> Dict[str, Any]:
    """Return a fresh copy of the built-in defaults."""
    return {
        "page": {**DEFAULT_PAGE, "margins": list(DEFAULT_PAGE["margins"])},
        "fonts": DEFAULT_FONTS.copy(),
        "elements": DEFAULT_ELEMENTS.copy(),
    }


@lru_cache(maxsize=None)
def _load_defaults_cached(config_path: str) -> Dict[str, Any]:
    base = OmegaConf.create(get_builtin_defaults())
    path = Path(config_path)
    if path.exists():
        base = OmegaConf.merge(base, OmegaConf.load(path))
    return OmegaConf.to_container(base, resolve=True)


def load_render_defaults(config_path: Path = None) -> Dict[str, Any]:
    """
    Load rendering defaults, merging the YAML file over the built-in values.

    The parsed result is cached per path and treated as read-only shared data;
    callers receive a deep copy they are free to modify.

    Args:
        config_path: Optional path to a defaults YAML (defaults to DOCFORGE_DEFAULTS_PATH)

    Returns:
        Dict with "page", "fonts" and "elements" sections
    """
    if config_path is None:
        config_path = DEFAULTS_PATH

    cached = _load_defaults_cached(str(config_path))
    return OmegaConf.to_container(OmegaConf.create(cached), resolve=True)
