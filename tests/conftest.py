"""
Shared test doubles for the printing context.

- make_pdf: writes blank PDFs with PyPDF2
- FakeMergeTool: subprocess runner that merges with PyPDF2 instead of pdftk
- FakeBrowser / FakeSession: in-process DevTools client that tracks every
  context, target and session it hands out
"""

import base64
import io
import itertools
import subprocess
import threading
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest
from PyPDF2 import PdfReader, PdfWriter

from pressroom.contexts.printing.chrome import COMPLETION_SIGNALS
from pressroom.contexts.printing.devtools import (
    DevToolsClient,
    DevToolsError,
    DevToolsSession,
    DevToolsTimeout,
)
from pressroom.utils.pdf_processing import inches_to_points


def make_pdf(path: Path, pages: int = 1, width: float = 612, height: float = 792) -> Path:
    """Write a PDF of `pages` blank pages sized width x height points."""
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    with open(path, "wb") as f:
        writer.write(f)
    return path


def pdf_bytes(width: float, height: float, pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=width, height=height)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class FakeMergeTool:
    """
    Stands in for `subprocess.run` when the command is a pdftk invocation.

    Parses `<binary> <sources...> cat output <destination>` and concatenates the
    sources with PyPDF2.
    """

    def __init__(self, returncode: int = 0, output: bytes = b"", write_output: bool = True):
        self.returncode = returncode
        self.output = output
        self.write_output = write_output
        self.calls: List[List[str]] = []

    def __call__(self, cmd, stdout=None, stderr=None, timeout=None):
        self.calls.append(list(cmd))
        assert cmd[-3:-1] == ["cat", "output"], f"unexpected pdftk grammar: {cmd}"
        sources, destination = cmd[1:-3], cmd[-1]

        if self.returncode == 0 and self.write_output:
            writer = PdfWriter()
            for source in sources:
                for page in PdfReader(source).pages:
                    writer.add_page(page)
            with open(destination, "wb") as f:
                writer.write(f)
        elif self.returncode != 0:
            # pdftk may leave a truncated file behind on failure
            Path(destination).write_bytes(b"%PDF-1.4 truncated")

        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.output)


class FakeSession(DevToolsSession):
    """One fake protocol connection."""

    def __init__(self, browser: "FakeBrowser", url: str):
        self.browser = browser
        self.url = url
        self.listeners: Dict[str, object] = {}
        self.closed = False

    def call(self, method: str, timeout: Optional[float] = None, **params):
        return self.browser.handle(self, method, timeout, params)

    def on(self, event, callback):
        if callback is None:
            self.listeners.pop(event, None)
        else:
            self.listeners[event] = callback

    def emit(self, event: str, params: Optional[dict] = None) -> None:
        callback = self.listeners.get(event)
        if callback is not None:
            callback(params or {})

    def close(self) -> None:
        if self.closed:
            raise DevToolsError(f"session {self.url} already closed")
        self.closed = True
        self.browser.record(f"close {self.url}")
        self.browser.open_sessions.discard(self)


class FakeBrowser(DevToolsClient):
    """
    In-process DevTools client.

    Knobs:
        failing: method -> exception raised when the method is called
        hanging: methods that block until their timeout, then time out
        responses: method -> result returned instead of the default
        withheld: completion events that are never emitted
        event_delay: seconds to wait before emitting completion events
        refused: WebSocket URL substrings that refuse connections
        hanging_connect: WebSocket URL substrings whose handshake never completes
        navigate_error: errorText returned by Page.navigate
        version_error: exception raised by version()
    """

    host = "127.0.0.1:9222"

    def __init__(self):
        self.failing: Dict[str, Exception] = {}
        self.hanging: set = set()
        self.responses: Dict[str, dict] = {}
        self.withheld: set = set()
        self.event_delay = 0.0
        self.refused: Sequence[str] = ()
        self.hanging_connect: Sequence[str] = ()
        self.navigate_error: Optional[str] = None
        self.version_error: Optional[Exception] = None

        self.calls: List[tuple] = []
        self.connect_timeouts: List[Optional[float]] = []
        self.timeline: List[str] = []
        self.open_sessions: set = set()
        self.contexts: set = set()
        self.targets: set = set()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    @property
    def open_resources(self) -> int:
        return len(self.open_sessions) + len(self.contexts) + len(self.targets)

    def params_for(self, method: str) -> dict:
        return next(params for name, params in self.calls if name == method)

    def record(self, entry: str) -> None:
        with self._lock:
            self.timeline.append(entry)

    def version(self, timeout=None):
        if self.version_error is not None:
            raise self.version_error
        return {
            "Browser": "HeadlessChrome/120.0.0.0",
            "webSocketDebuggerUrl": f"ws://{self.host}/devtools/browser/fake-browser",
        }

    def connect(self, ws_url: str, timeout=None) -> DevToolsSession:
        with self._lock:
            self.connect_timeouts.append(timeout)
        if any(fragment in ws_url for fragment in self.hanging_connect):
            time.sleep(timeout or 0)
            raise DevToolsTimeout(f"handshake with {ws_url} timed out")
        if any(fragment in ws_url for fragment in self.refused):
            raise DevToolsError(f"connection refused: {ws_url}")
        session = FakeSession(self, ws_url)
        with self._lock:
            self.open_sessions.add(session)
        return session

    def page_url(self, target_id: str) -> str:
        return f"ws://{self.host}/devtools/page/{target_id}"

    def handle(self, session: FakeSession, method: str, timeout, params: dict):
        with self._lock:
            self.calls.append((method, params))

        if method in self.hanging:
            time.sleep(timeout or 0)
            raise DevToolsTimeout(f"{method} timed out")
        if method in self.failing:
            raise self.failing[method]
        if method in self.responses:
            return self.responses[method]

        if method == "Target.createBrowserContext":
            context_id = f"context-{next(self._ids)}"
            with self._lock:
                self.contexts.add(context_id)
            return {"browserContextId": context_id}
        if method == "Target.createTarget":
            assert params["browserContextId"] in self.contexts
            target_id = f"target-{next(self._ids)}"
            with self._lock:
                self.targets.add(target_id)
            return {"targetId": target_id}
        if method == "Target.closeTarget":
            self.record("closeTarget")
            with self._lock:
                self.targets.discard(params["targetId"])
            return {"success": True}
        if method == "Target.disposeBrowserContext":
            self.record("disposeBrowserContext")
            with self._lock:
                self.contexts.discard(params["browserContextId"])
            return {}
        if method == "Page.navigate":
            self._emit_completion(session)
            result = {"frameId": "frame-1", "loaderId": "loader-1"}
            if self.navigate_error:
                result["errorText"] = self.navigate_error
            return result
        if method == "Page.printToPDF":
            width, height = params["paperWidth"], params["paperHeight"]
            if params["landscape"]:
                width, height = height, width
            data = pdf_bytes(inches_to_points(width), inches_to_points(height))
            return {"data": base64.b64encode(data).decode("ascii")}
        return {}

    def _emit_completion(self, session: FakeSession) -> None:
        events = [event for event in COMPLETION_SIGNALS if event not in self.withheld]

        def emit():
            for event in events:
                session.emit(event, {"timestamp": time.time()})

        if self.event_delay > 0:
            threading.Timer(self.event_delay, emit).start()
        else:
            # A fast page: events fire before the navigate response arrives
            emit()


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def merge_tool():
    return FakeMergeTool()


@pytest.fixture
def merge_tool_factory():
    return FakeMergeTool


@pytest.fixture
def pdf_factory(tmp_path):
    """Create blank PDFs under tmp_path: pdf_factory("a.pdf", pages=2, width=300)."""

    def factory(name: str, pages: int = 1, width: float = 612, height: float = 792) -> Path:
        return make_pdf(tmp_path / name, pages=pages, width=width, height=height)

    return factory
