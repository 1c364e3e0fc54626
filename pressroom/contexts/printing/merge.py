"""
Merge Printer

Concatenates already-rendered PDF files into a single PDF using pdftk.
"""

import os
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from dotenv import load_dotenv

from pressroom.contexts.printing.exceptions import DeadlineExceeded, PrintError, ProcessError
from pressroom.contexts.printing.logger import (
    log_detail,
    log_print_result,
    log_print_start,
    log_tool_output,
)
from pressroom.contexts.printing.printer import Printer, discard_partial_output
from pressroom.utils.pdf_processing import page_count
from pressroom.utils.timeout import Deadline, scope

load_dotenv()

PDFTK_BINARY = os.getenv("PDFTK_BINARY", "pdftk")
DEFAULT_WAIT_TIMEOUT = float(os.getenv("PRINT_WAIT_TIMEOUT", "10"))

# pdftk grammar: <inputs...> cat output <destination>
CONCATENATE_KEYWORD = "cat"
OUTPUT_KEYWORD = "output"

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class MergeOptions:
    """
    Merge printer configuration.

    Attributes:
        wait_timeout: Seconds the merge tool may run before it is killed
    """

    wait_timeout: float = DEFAULT_WAIT_TIMEOUT


def _decode(output: Union[bytes, str, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


class MergePrinter(Printer):
    """
    Printer that merges PDF files in the given order.

    Args:
        sources: PDF paths; their order is the page order of the result
        options: Merge configuration (default: MergeOptions())
        deadline: Optional enclosing deadline the merge must also respect
        runner: Subprocess runner with the `subprocess.run` signature
        binary: Merge tool executable (default: PDFTK_BINARY env, "pdftk")

    Example:
        >>> printer = MergePrinter(["cover.pdf", "body.pdf"], MergeOptions(wait_timeout=5))
        >>> printer.print("book.pdf")
    """

    name = "merge"

    def __init__(
        self,
        sources: Sequence[Union[str, Path]],
        options: Optional[MergeOptions] = None,
        deadline: Optional[Deadline] = None,
        runner: Runner = subprocess.run,
        binary: str = PDFTK_BINARY,
    ):
        if not sources:
            raise ValueError("At least one source PDF is required")

        self.sources = [Path(source) for source in sources]
        self.options = options or MergeOptions()
        self.deadline = deadline
        self.runner = runner
        self.binary = binary

    def build_command(self, destination: Path) -> List[str]:
        return [
            self.binary,
            *(str(source) for source in self.sources),
            CONCATENATE_KEYWORD,
            OUTPUT_KEYWORD,
            str(destination),
        ]

    def print(self, destination: Union[str, Path]) -> None:
        destination = Path(destination)
        existed_before = destination.exists()

        log_print_start(
            self.name, ", ".join(str(s) for s in self.sources), destination, self.options.wait_timeout
        )
        start_time = time.time()

        try:
            with scope(self.options.wait_timeout, parent=self.deadline) as deadline:
                self._merge(destination, deadline)
        except PrintError as e:
            discard_partial_output(destination, existed_before)
            log_print_result(self.name, destination, time.time() - start_time, error=e)
            raise

        log_print_result(self.name, destination, time.time() - start_time)

    def _merge(self, destination: Path, deadline: Deadline) -> None:
        op = "merge.print"
        deadline.check(op)

        cmd = self.build_command(destination)
        log_detail(f"  Command: {' '.join(cmd)}")

        try:
            # run() kills the child before raising TimeoutExpired
            result = self.runner(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                timeout=deadline.remaining(),
            )
        except subprocess.TimeoutExpired as e:
            log_tool_output(self.binary, _decode(e.output))
            raise DeadlineExceeded(
                f"{self.binary} did not finish within {self.options.wait_timeout}s",
                op=op,
                original_error=e,
            ) from e
        except OSError as e:
            raise ProcessError(f"could not run {self.binary}", op=op, original_error=e) from e

        output = _decode(result.stdout)
        if result.returncode != 0:
            log_tool_output(self.binary, output)
            raise ProcessError(
                f"{self.binary} exited with status {result.returncode}",
                op=op,
                returncode=result.returncode,
                output=output,
            )

        if page_count(destination) is None:
            log_tool_output(self.binary, output)
            raise ProcessError(
                f"{self.binary} did not produce a readable PDF at {destination}",
                op=op,
                returncode=result.returncode,
                output=output,
            )


def new_merge(
    sources: Sequence[Union[str, Path]], options: Optional[MergeOptions] = None
) -> Printer:
    """Return a merge printer over `sources`."""
    return MergePrinter(sources, options)
