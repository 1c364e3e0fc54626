"""
Printing Context

Responsibilities:
- Merges already-rendered PDF fragments into one document (pdftk)
- Renders live HTML pages to PDF through a remote headless Chrome (DevTools protocol)
- Bounds every print call by a deadline and releases browser resources on every exit path
- Tags every failure with the operation that produced it

Owns: Printer variants, DevTools session lifecycle, paper presets
Never: Accepts uploads, stages files, or schedules access to the shared browser
"""

from pressroom.contexts.printing.batch import run_batch
from pressroom.contexts.printing.chrome import (
    ChromeOptions,
    ChromePrinter,
    new_html,
    new_url,
)
from pressroom.contexts.printing.config import apply_presets, load_paper_presets
from pressroom.contexts.printing.devtools import (
    DevToolsClient,
    DevToolsError,
    DevToolsSession,
    DevToolsTimeout,
    PyChromeClient,
)
from pressroom.contexts.printing.exceptions import (
    DeadlineExceeded,
    DestinationWriteError,
    PrintError,
    ProcessError,
    ProtocolError,
)
from pressroom.contexts.printing.merge import MergeOptions, MergePrinter, new_merge
from pressroom.contexts.printing.printer import Printer

__all__ = [
    # Printer interface and variants
    "Printer",
    "MergePrinter",
    "MergeOptions",
    "ChromePrinter",
    "ChromeOptions",
    "new_merge",
    "new_url",
    "new_html",
    # Presets
    "apply_presets",
    "load_paper_presets",
    # Protocol client
    "DevToolsClient",
    "DevToolsSession",
    "DevToolsError",
    "DevToolsTimeout",
    "PyChromeClient",
    # Batch execution
    "run_batch",
    # Errors
    "PrintError",
    "DeadlineExceeded",
    "ProcessError",
    "ProtocolError",
    "DestinationWriteError",
]
