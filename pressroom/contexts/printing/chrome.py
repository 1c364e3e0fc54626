"""
Chrome Printer

Renders an HTML page to PDF through a remote headless Chrome instance.

Pipeline (each stage starts only after the previous one succeeded):
    discover -> connect-primary -> isolate -> spawn-target -> connect-target
    -> enable-domains -> navigate -> export

Teardown always runs, on success and on failure: close the target, close the
target session, dispose the browser context, close the primary session.
"""

import base64
import os
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, Union

from dotenv import load_dotenv

from pressroom.contexts.printing.batch import run_batch
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
    ProtocolError,
)
from pressroom.contexts.printing.logger import (
    log_detail,
    log_print_result,
    log_print_start,
    log_release_failure,
    log_stage,
)
from pressroom.contexts.printing.printer import Printer, discard_partial_output
from pressroom.utils.timeout import Deadline, scope

load_dotenv()

DEFAULT_WAIT_TIMEOUT = float(os.getenv("PRINT_WAIT_TIMEOUT", "10"))
DEFAULT_WAIT_DELAY = float(os.getenv("PRINT_WAIT_DELAY", "0"))
# Teardown runs after the deadline may have elapsed, so it gets its own budget
RELEASE_TIMEOUT = float(os.getenv("PRINT_RELEASE_TIMEOUT", "2"))

BLANK_PAGE = "about:blank"
# Chrome substitutes its own header/footer (title, date, url) for an empty template
EMPTY_TEMPLATE = "<html><head></head><body></body></html>"

DOMAINS = ("DOM", "Network", "Page", "Runtime")
COMPLETION_SIGNALS = (
    "Page.domContentEventFired",
    "Page.loadEventFired",
    "Network.loadingFinished",
)


@dataclass(frozen=True)
class ChromeOptions:
    """
    Chrome printer configuration.

    Attributes:
        wait_timeout: Seconds allowed for navigation and export
        wait_delay: Grace period (seconds) after the page finished loading, for
            script-driven rendering. Best effort, not an event-backed guarantee.
        header_html: Header template markup
        footer_html: Footer template markup
        paper_width: Paper width in inches (default: A4)
        paper_height: Paper height in inches (default: A4)
        margin_top: Top margin in inches
        margin_bottom: Bottom margin in inches
        margin_left: Left margin in inches
        margin_right: Right margin in inches
        landscape: Print in landscape orientation
    """

    wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    wait_delay: float = DEFAULT_WAIT_DELAY
    header_html: str = EMPTY_TEMPLATE
    footer_html: str = EMPTY_TEMPLATE
    paper_width: float = 8.27
    paper_height: float = 11.69
    margin_top: float = 1.0
    margin_bottom: float = 1.0
    margin_left: float = 1.0
    margin_right: float = 1.0
    landscape: bool = False

    def __post_init__(self):
        if self.paper_width <= 0 or self.paper_height <= 0:
            raise ValueError(
                f"Paper size must be positive, got {self.paper_width}x{self.paper_height}"
            )
        margins = (self.margin_top, self.margin_bottom, self.margin_left, self.margin_right)
        if any(margin < 0 for margin in margins):
            raise ValueError(f"Margins must not be negative, got {margins}")
        if self.wait_timeout < 0 or self.wait_delay < 0:
            raise ValueError("wait_timeout and wait_delay must not be negative")

    def print_to_pdf_params(self) -> Dict[str, Any]:
        """Parameters for Page.printToPDF."""
        return {
            "paperWidth": self.paper_width,
            "paperHeight": self.paper_height,
            "marginTop": self.margin_top,
            "marginBottom": self.margin_bottom,
            "marginLeft": self.margin_left,
            "marginRight": self.margin_right,
            "landscape": self.landscape,
            "displayHeaderFooter": True,
            "headerTemplate": self.header_html,
            "footerTemplate": self.footer_html,
            "printBackground": True,
        }


@dataclass
class SessionResources:
    """Browser-side resources acquired during a single print call."""

    primary: Optional[DevToolsSession] = None
    context_id: Optional[str] = None
    target_id: Optional[str] = None
    target: Optional[DevToolsSession] = None


class ChromePrinter(Printer):
    """
    Printer that renders `url` with headless Chrome.

    Each call provisions its own browser context and target, so concurrent
    prints against the same browser do not share cookies, storage or state.
    The browser process itself is shared; no queuing happens here.

    Args:
        url: Page to render (http(s):// or file://)
        options: Chrome configuration (default: ChromeOptions())
        client: DevTools client (default: PyChromeClient())

    Example:
        >>> printer = ChromePrinter("https://example.com", ChromeOptions(wait_delay=0.5))
        >>> printer.print("example.pdf")
    """

    name = "chrome"

    def __init__(
        self,
        url: str,
        options: Optional[ChromeOptions] = None,
        client: Optional[DevToolsClient] = None,
    ):
        self.url = url
        self.options = options or ChromeOptions()
        self.client = client or PyChromeClient()

    def print(self, destination: Union[str, Path]) -> None:
        destination = Path(destination)
        existed_before = destination.exists()
        seconds = self.options.wait_timeout + self.options.wait_delay

        log_print_start(self.name, self.url, destination, seconds)
        start_time = time.time()
        resources = SessionResources()

        try:
            with scope(seconds) as deadline:
                try:
                    self._render(destination, deadline, resources)
                finally:
                    self._teardown(resources)
        except PrintError as e:
            discard_partial_output(destination, existed_before)
            log_print_result(self.name, destination, time.time() - start_time, error=e)
            raise

        log_print_result(self.name, destination, time.time() - start_time)

    @contextmanager
    def _stage(self, stage: str, deadline: Deadline) -> Iterator[str]:
        """Run a pipeline stage, translating failures into errors tagged chrome.<stage>."""
        op = f"chrome.{stage}"
        log_stage(op)
        deadline.check(op)
        try:
            yield op
        except PrintError:
            raise
        except DevToolsTimeout as e:
            raise DeadlineExceeded(str(e), op=op, original_error=e) from e
        except DevToolsError as e:
            raise ProtocolError(str(e), op=op, original_error=e) from e
        except (KeyError, ValueError, TypeError) as e:
            raise ProtocolError("malformed protocol response", op=op, original_error=e) from e

    def _render(self, destination: Path, deadline: Deadline, resources: SessionResources) -> None:
        with self._stage("discover", deadline):
            version = self.client.version(timeout=deadline.remaining())
            ws_url = version.get("webSocketDebuggerUrl")
            if not ws_url:
                raise DevToolsError("management endpoint returned no webSocketDebuggerUrl")
            log_detail(f"  Browser: {version.get('Browser', 'unknown')}")

        with self._stage("connect-primary", deadline):
            resources.primary = self.client.connect(ws_url, timeout=deadline.remaining())

        with self._stage("isolate", deadline):
            result = resources.primary.call(
                "Target.createBrowserContext", timeout=deadline.remaining()
            )
            resources.context_id = result["browserContextId"]

        with self._stage("spawn-target", deadline):
            result = resources.primary.call(
                "Target.createTarget",
                timeout=deadline.remaining(),
                url=BLANK_PAGE,
                browserContextId=resources.context_id,
            )
            resources.target_id = result["targetId"]

        with self._stage("connect-target", deadline):
            resources.target = self.client.connect(
                self.client.page_url(resources.target_id), timeout=deadline.remaining()
            )

        with self._stage("enable-domains", deadline):
            run_batch(*(self._enabler(resources.target, domain, deadline) for domain in DOMAINS))

        with self._stage("navigate", deadline):
            self._navigate(resources.target, deadline)

        with self._stage("export", deadline) as op:
            result = resources.target.call(
                "Page.printToPDF", timeout=deadline.remaining(), **self.options.print_to_pdf_params()
            )
            data = base64.b64decode(result["data"])
            try:
                destination.write_bytes(data)
            except OSError as e:
                raise DestinationWriteError(
                    f"could not write {destination}", op=op, original_error=e
                ) from e
            log_detail(f"  Wrote {len(data)} bytes")

    @staticmethod
    def _enabler(session: DevToolsSession, domain: str, deadline: Deadline) -> Callable[[], Any]:
        return lambda: session.call(f"{domain}.enable", timeout=deadline.remaining())

    @staticmethod
    def _waiter(event: str, signal: threading.Event, deadline: Deadline) -> Callable[[], None]:
        def wait() -> None:
            if not signal.wait(deadline.remaining()):
                raise DevToolsTimeout(f"{event} not received before the deadline")

        return wait

    def _navigate(self, session: DevToolsSession, deadline: Deadline) -> None:
        signals = {event: threading.Event() for event in COMPLETION_SIGNALS}

        # Subscribe before navigating: a fast page may fire before we listen otherwise
        for event, signal in signals.items():
            session.on(event, lambda params, signal=signal: signal.set())

        try:
            result = session.call("Page.navigate", timeout=deadline.remaining(), url=self.url)
            if result.get("errorText"):
                raise DevToolsError(f"navigation to {self.url} failed: {result['errorText']}")

            # All three signals are required, none is a shortcut for the others
            run_batch(*(self._waiter(event, signal, deadline) for event, signal in signals.items()))
        finally:
            for event in signals:
                session.on(event, None)

        # No protocol event reports "scripts are done rendering"
        if not deadline.sleep(self.options.wait_delay):
            raise DevToolsTimeout("deadline elapsed during the wait delay")

    def _teardown(self, resources: SessionResources) -> None:
        log_stage("chrome.teardown")
        primary = resources.primary

        if resources.target_id is not None and primary is not None:
            target_id = resources.target_id
            self._release(
                "target",
                lambda: primary.call(
                    "Target.closeTarget", timeout=RELEASE_TIMEOUT, targetId=target_id
                ),
            )
            resources.target_id = None

        if resources.target is not None:
            self._release("target session", resources.target.close)
            resources.target = None

        if resources.context_id is not None and primary is not None:
            context_id = resources.context_id
            self._release(
                "browser context",
                lambda: primary.call(
                    "Target.disposeBrowserContext",
                    timeout=RELEASE_TIMEOUT,
                    browserContextId=context_id,
                ),
            )
            resources.context_id = None

        if primary is not None:
            self._release("primary session", primary.close)
            resources.primary = None

    @staticmethod
    def _release(resource: str, release: Callable[[], Any]) -> None:
        try:
            release()
        except Exception as e:
            log_release_failure(resource, e)


def new_url(
    url: str, options: Optional[ChromeOptions] = None, client: Optional[DevToolsClient] = None
) -> Printer:
    """Return a Chrome printer for a remote page."""
    return ChromePrinter(url, options, client)


def new_html(
    html_path: Union[str, Path],
    options: Optional[ChromeOptions] = None,
    client: Optional[DevToolsClient] = None,
) -> Printer:
    """Return a Chrome printer for a local HTML file (addressed by file:// URL)."""
    html_path = Path(html_path)
    if not html_path.exists():
        raise FileNotFoundError(f"HTML file not found: {html_path}")
    return ChromePrinter(html_path.resolve().as_uri(), options, client)
