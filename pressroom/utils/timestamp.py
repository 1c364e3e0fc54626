"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """
    Current local time as a filesystem-safe stamp, used for session directory names.

    Examples:
        now()
        # "20251113_184540"
    """
    return datetime.now().strftime("%Y%m%d_%H%M%S")
