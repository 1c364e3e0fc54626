"""
Printing context logger.

Provides logging interface for printing context with automatic [print] prefix.
All printing modules should import from this module, not from utils.logger directly.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from pressroom.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[print]"


def setup_printing_logger(log_dir: Path) -> Path:
    """
    Setup logger for printing context.

    Args:
        log_dir: Directory for this printing session

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="print",
        log_dir=log_dir,
        extra_provenance={
            "Merge tool": os.getenv("PDFTK_BINARY", "pdftk"),
            "DevTools endpoint": os.getenv("CHROME_DEVTOOLS_URL", "http://localhost:9222"),
        },
    )


# Wrapper functions with automatic [print] prefix


def _log_info(message: str) -> None:
    """Log info message with [print] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [print] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [print] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [print] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [print] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level printing-specific logging helpers


def log_print_start(printer_name: str, source: str, destination: Path, seconds: float) -> None:
    """Log start of a print call with context."""
    _log_info(f"Starting {printer_name} print -> {destination}")
    _log_debug(f"  Source: {source}")
    _log_debug(f"  Deadline: {seconds:.2f}s")


def log_stage(op: str) -> None:
    _log_debug(f"  Stage: {op}")


def log_detail(detail: str) -> None:
    """Log a step detail (command line, byte counts, browser version) for the log file only."""
    _log_debug(detail)


def log_print_result(
    printer_name: str,
    destination: Path,
    elapsed_time: float,
    error: Optional[Exception] = None,
) -> None:
    """
    Log the outcome of a print call.

    Args:
        printer_name: Printer variant ("merge" or "chrome")
        destination: Requested output path
        elapsed_time: Seconds spent in the call
        error: The raised error, None on success
    """
    if error is None:
        _log_success(f"{printer_name}: wrote {destination} ({elapsed_time:.2f}s)")
    else:
        _log_error(f"{printer_name}: failed after {elapsed_time:.2f}s")
        for line in str(error).splitlines():
            _log_error(f"  {line}")


def log_tool_output(tool: str, output: str) -> None:
    """
    Log raw merge tool output at debug level.

    Use opt(raw=True) so multi-line output keeps its original formatting.
    """
    if output:
        logger.opt(raw=True).debug(
            f"\n{'=' * 80}\n{tool.upper()} OUTPUT:\n{'=' * 80}\n{output}\n"
        )


def log_release_failure(resource: str, error: Exception) -> None:
    """Log a teardown failure; teardown never masks the error that triggered it."""
    _log_warning(f"Failed to release {resource}: {error}")
