"""Exceptions raised by printers, tagged with the operation that failed."""

from typing import Optional


class PrintError(Exception):
    """
    Base exception for every printer failure.

    Attributes:
        message: Error description
        op: Name of the operation (or pipeline stage) that failed, e.g. "chrome.navigate"
        original_error: The underlying exception, if any
    """

    def __init__(
        self,
        message: str,
        op: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        self.message = message
        self.op = op
        self.original_error = original_error

        parts = [f"{op}: {message}" if op else message]
        if original_error is not None:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


class DeadlineExceeded(PrintError):
    """Raised when the print deadline elapses before the operation completes."""

    pass


class ProcessError(PrintError):
    """
    Raised when the external merge tool fails.

    Attributes:
        returncode: Exit status of the tool (None if it never ran)
        output: Combined stdout/stderr captured from the tool
    """

    def __init__(
        self,
        message: str,
        op: Optional[str] = None,
        returncode: Optional[int] = None,
        output: str = "",
        original_error: Optional[BaseException] = None,
    ):
        self.returncode = returncode
        self.output = output
        super().__init__(message, op=op, original_error=original_error)


class ProtocolError(PrintError):
    """Raised when a DevTools protocol stage fails (connect, enable, navigate, export)."""

    pass


class DestinationWriteError(PrintError):
    """Raised when the rendered PDF cannot be written to its destination."""

    pass
