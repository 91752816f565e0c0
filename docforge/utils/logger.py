"""
Loguru session setup shared by the DOCFORGE contexts.

A session writes everything to <log_dir>/<context>.log and INFO and above to
stderr; stdout is left free for PDF bytes. Context modules add their own
message prefixes on top (see contexts/{context}/logger.py).

Environment:
    DOCFORGE_CONSOLE_LOG_LEVEL: Minimum level echoed to stderr (default INFO)
"""

import os
import sys
from pathlib import Path

import fpdf
from dotenv import load_dotenv
from loguru import logger

import docforge

load_dotenv()
CONSOLE_LOG_LEVEL = os.getenv("DOCFORGE_CONSOLE_LOG_LEVEL", "INFO")

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"


def setup_logger(context_name: str, log_dir: Path, extra_provenance: dict = None) -> Path:
    """
    Replace loguru's handlers with a file + stderr pair for one session.

    Args:
        context_name: Log file stem (e.g., "render")
        log_dir: Directory for this session, created if missing
        extra_provenance: Additional key-value pairs for the session header

    Returns:
        Path to the log file
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    logger.level("WARNING", color="<yellow>")

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=CONSOLE_LOG_LEVEL, colorize=True)

    log_session_header(extra_provenance)

    return log_file


def log_session_header(extra_context: dict = None) -> None:
    """Write the command line, working directory and library versions to the file log."""
    logger.debug("=" * 80)
    logger.debug(f"Command: {' '.join(sys.argv)}")
    logger.debug(f"Working directory: {Path.cwd()}")
    logger.debug(
        f"docforge {docforge.__version__}, fpdf2 {fpdf.FPDF_VERSION}, "
        f"Python {sys.version.split()[0]}"
    )

    for key, value in (extra_context or {}).items():
        logger.debug(f"{key}: {value}")

    logger.debug("=" * 80)
