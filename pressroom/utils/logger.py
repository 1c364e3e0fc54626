"""
Logger setup for print sessions.

One session = one log directory holding `<context>.log`. The file sink keeps
everything at DEBUG and tags each line with its thread, because a single
print fans out over worker threads (domain enables, signal waits) and
several prints may share a process. The console sink shows PRINT_CONSOLE_LEVEL
and above.

Context-specific wrappers live in contexts/{context}/logger.py.
"""

import os
import sys
from pathlib import Path
from typing import Dict, Optional

from dotenv import load_dotenv
from loguru import logger

import pressroom

load_dotenv()

CONSOLE_LEVEL = os.getenv("PRINT_CONSOLE_LEVEL", "INFO")

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {thread.name: <24} | {message}"
CONSOLE_FORMAT = (
    "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
)

# Level colors for console output
LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[Dict[str, object]] = None,
    console_level: str = CONSOLE_LEVEL,
) -> Path:
    """
    Start a logging session for a context.

    Replaces any previous sinks, so a process that runs several sessions in a
    row (e.g. a test suite or a batch script) only writes to the latest one.

    Args:
        context_name: Log file stem (e.g., "print")
        log_dir: Directory for this session, created if missing
        extra_provenance: Additional key-value pairs for the session header
        console_level: Minimum level shown on stdout

    Returns:
        Path to log file
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(log_file, format=FILE_FORMAT, level="DEBUG")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(extra_provenance)

    return log_file


def log_provenance(extra_context: Optional[Dict[str, object]] = None) -> None:
    """Write the session header: how this process was invoked and with what."""
    logger.info("=" * 80)
    logger.info(f"pressroom {pressroom.__version__} | Python {sys.version.split()[0]}")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
