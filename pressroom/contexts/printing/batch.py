"""
Concurrent batch execution.

Runs a fixed set of independent, zero-argument operations at the same time and
joins them: every operation runs to completion, then the first error observed
is raised.
"""

from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional


def run_batch(*operations: Callable[[], object]) -> None:
    """
    Run operations concurrently and wait until all of them have finished.

    Operations must be independent: no ordering or data dependency between
    them is guaranteed beyond "started together".

    Args:
        *operations: Zero-argument callables; return values are ignored

    Raises:
        Exception: The first exception raised by any operation (in completion order)
    """
    if not operations:
        return

    first_error: Optional[BaseException] = None
    with ThreadPoolExecutor(max_workers=len(operations)) as pool:
        futures = [pool.submit(operation) for operation in operations]
        for future in as_completed(futures):
            error = future.exception()
            if error is not None and first_error is None:
                first_error = error

    if first_error is not None:
        raise first_error
