"""
Printer interface.

Every printer variant exposes a single capability: write a PDF to a destination
path. Callers depend only on this interface, never on a concrete variant.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Union

from pressroom.contexts.printing.logger import log_release_failure


class Printer(ABC):
    """
    Interface for PDF printers.

    Implementations: MergePrinter (concatenates PDFs with an external tool) and
    ChromePrinter (renders a page through headless Chrome).
    """

    @abstractmethod
    def print(self, destination: Union[str, Path]) -> None:
        """
        Produce a PDF at `destination`.

        Args:
            destination: Output file path

        Raises:
            PrintError: Tagged with the operation that failed. No retries are made.
        """
        pass


def discard_partial_output(destination: Path, existed_before: bool) -> None:
    """Remove a destination file the failed call left behind (never a pre-existing one)."""
    if existed_before or not destination.exists():
        return
    try:
        destination.unlink()
    except OSError as e:
        log_release_failure(f"partial output {destination}", e)
