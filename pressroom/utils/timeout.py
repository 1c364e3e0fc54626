"""
Deadline scopes for bounded-time operations.

A Deadline is created from a number of seconds and tracks how much time is left.
Consumers pass `remaining()` into blocking calls (subprocess timeouts, protocol
calls, event waits) so that nothing outlives the scope.

Usage:
    from pressroom.utils.timeout import scope

    with scope(10.0) as deadline:
        subprocess.run(cmd, timeout=deadline.remaining())
"""

import threading
import time
from contextlib import contextmanager
from typing import Iterator, Optional


def duration(seconds: float) -> float:
    """Clamp a configured number of seconds to a usable non-negative duration."""
    return max(float(seconds or 0.0), 0.0)


class Deadline:
    """
    Cancellable bounded-time scope.

    Args:
        seconds: Time budget from now. Non-positive budgets are already expired.
        clock: Monotonic clock (injectable for tests)
    """

    def __init__(self, seconds: float, clock=time.monotonic):
        self._clock = clock
        self.seconds = duration(seconds)
        self.expires_at = clock() + self.seconds
        self._cancelled = threading.Event()

    def remaining(self) -> float:
        """Seconds left before the deadline (0.0 once expired or cancelled)."""
        if self._cancelled.is_set():
            return 0.0
        return max(self.expires_at - self._clock(), 0.0)

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def check(self, op: str) -> None:
        """
        Fail fast before starting `op` when no time is left.

        Raises:
            DeadlineExceeded: Tagged with `op`, if the deadline expired or was cancelled
        """
        from pressroom.contexts.printing.exceptions import DeadlineExceeded

        if self.expired:
            reason = "scope was cancelled" if self.cancelled else "deadline elapsed"
            raise DeadlineExceeded(f"{reason} before the operation started", op=op)

    def cancel(self) -> None:
        """Release the scope; every later `remaining()` reports no time left."""
        self._cancelled.set()

    def sleep(self, seconds: float) -> bool:
        """
        Sleep for `seconds`, bounded by the deadline.

        Returns:
            True if the full duration elapsed, False if the deadline (or a
            cancel) cut the sleep short.
        """
        wanted = duration(seconds)
        allowed = min(wanted, self.remaining())
        if allowed > 0:
            # Event.wait returns early only on cancel
            self._cancelled.wait(allowed)
        return allowed >= wanted and not self.cancelled

    def __repr__(self) -> str:
        return f"Deadline(seconds={self.seconds}, remaining={self.remaining():.3f})"


@contextmanager
def scope(seconds: float, parent: Optional[Deadline] = None) -> Iterator[Deadline]:
    """
    Open a deadline scope of `seconds`, cancelled when the block exits.

    Args:
        seconds: Time budget for the scope
        parent: Optional enclosing deadline; the scope never outlives it

    Yields:
        Deadline for the duration of the block
    """
    if parent is not None:
        seconds = min(duration(seconds), parent.remaining())
    deadline = Deadline(seconds)
    try:
        yield deadline
    finally:
        deadline.cancel()
