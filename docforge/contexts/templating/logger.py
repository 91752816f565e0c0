"""
Templating context logger.

Provides logging interface for templating context with automatic [template] prefix.
All templating modules should import from this module, not from loguru directly.

Handlers are configured once per session by the caller (see
docforge.utils.logger.setup_logger); the templating context only emits.
"""

from loguru import logger

CONTEXT_PREFIX = "[template]"


# Wrapper functions with automatic [template] prefix


def _log_warning(message: str) -> None:
    """Log warning message with [template] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [template] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level templating-specific logging helpers


def log_resolution_result(source: str, raw_length: int, resolved_length: int, issues: int) -> None:
    """Log the outcome of resolving one descriptor."""
    _log_debug(f"Resolved {source}: {raw_length} -> {resolved_length} chars")
    if issues:
        _log_warning(f"{source}: {issues} resolution issue(s) recorded")
