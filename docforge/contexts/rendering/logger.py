"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from docforge.contexts.rendering.defaults import DEFAULTS_PATH
from docforge.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path) -> Path:
    """
    Setup logger for rendering context.

    Configures the file + stderr session and records which defaults file is in effect.

    Args:
        log_dir: Directory for this rendering session

    Returns:
        Path to log file

    Example:
        from docforge.contexts.rendering.logger import setup_rendering_logger, _log_info

        log_file = setup_rendering_logger(log_dir)
        _log_info("Starting build...")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={"Rendering defaults": DEFAULTS_PATH},
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_build_start(element_count: int, page_format: str, orientation: str) -> None:
    """Log start of a document build."""
    _log_debug(f"Building document: {element_count} elements, {page_format} {orientation}")


def log_build_result(
    page_count: int,
    byte_count: int,
    elapsed_time: float,
    issues: list = None,
    verbose: bool = False,
) -> None:
    """
    Log build result with diagnostics.

    Args:
        page_count: Number of pages produced
        byte_count: Size of the encoded PDF
        elapsed_time: Time taken to build
        issues: Diagnostic messages recorded during the build
        verbose: Show every issue (default: first 3)
    """
    _log_debug(f"Built {page_count} page(s), {byte_count} bytes ({elapsed_time:.3f}s)")

    if issues:
        _log_warning(f"{len(issues)} layout issue(s) recorded")
        issue_limit = len(issues) if verbose else 3
        for i, issue in enumerate(issues[:issue_limit], 1):
            _log_debug(f"  Issue {i}: {issue}")
        if len(issues) > issue_limit:
            _log_debug(f"  ... and {len(issues) - issue_limit} more issues")
