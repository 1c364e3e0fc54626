"""
DevTools protocol client.

Narrow interface over the Chrome DevTools Protocol as consumed by ChromePrinter:

- DevToolsClient: talks to the browser management endpoint and opens sessions
- DevToolsSession: one WebSocket connection (browser-level or page-level)

PyChromeClient implements the interface with pychrome, which owns the wire
encoding. Tests substitute an in-process double.
"""

import os
import socket
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import pychrome
import requests
import websocket
from dotenv import load_dotenv

load_dotenv()

CHROME_DEVTOOLS_URL = os.getenv("CHROME_DEVTOOLS_URL", "http://localhost:9222")

EventCallback = Callable[[Dict[str, Any]], None]


class DevToolsError(Exception):
    """Raised when a DevTools request fails or the connection is unusable."""

    pass


class DevToolsTimeout(DevToolsError):
    """Raised when a DevTools request or event wait runs out of time."""

    pass


class DevToolsSession(ABC):
    """One open protocol connection."""

    @abstractmethod
    def call(self, method: str, timeout: Optional[float] = None, **params) -> Dict[str, Any]:
        """
        Invoke a protocol method and wait for its result.

        Args:
            method: Protocol method, e.g. "Page.navigate"
            timeout: Seconds to wait for the response
            **params: Method parameters

        Returns:
            The method's result object

        Raises:
            DevToolsTimeout: No response within `timeout`
            DevToolsError: The browser rejected the call or the connection failed
        """
        pass

    @abstractmethod
    def on(self, event: str, callback: Optional[EventCallback]) -> None:
        """Subscribe `callback(params)` to `event`; a None callback unsubscribes."""
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class DevToolsClient(ABC):
    """Entry point to a browser's remote debugging endpoint."""

    @abstractmethod
    def version(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Query the management endpoint (includes "webSocketDebuggerUrl")."""
        pass

    @abstractmethod
    def connect(self, ws_url: str, timeout: Optional[float] = None) -> DevToolsSession:
        """
        Open a session on a debugger WebSocket URL.

        Raises:
            DevToolsTimeout: The WebSocket handshake did not finish within `timeout`
            DevToolsError: The connection was refused or failed
        """
        pass

    @abstractmethod
    def page_url(self, target_id: str) -> str:
        """Debugger WebSocket URL addressing a single page target."""
        pass


def _require_time(timeout: Optional[float], what: str) -> None:
    # pychrome treats a zero timeout as "wait forever"
    if timeout is not None and timeout <= 0:
        raise DevToolsTimeout(f"no time left for {what}")


class DevToolsTab(pychrome.Tab):
    """
    pychrome.Tab with a bounded WebSocket handshake and thread-safe message ids.

    pychrome's own start() dials without a timeout, and its _send() bumps the
    message id without a lock, so concurrent calls on one tab could share an id
    and lose a reply.

    Args:
        connect_timeout: Seconds allowed for the TCP connect and WebSocket upgrade
        **kwargs: pychrome.Tab fields (id, type, webSocketDebuggerUrl)
    """

    def __init__(self, connect_timeout: Optional[float] = None, **kwargs):
        super().__init__(**kwargs)
        self.connect_timeout = connect_timeout
        self._id_lock = threading.Lock()

    def start(self) -> bool:
        if self._started:
            return False
        if not self._websocket_url:
            raise pychrome.RuntimeException(f"tab {self.id} has no webSocketDebuggerUrl")

        # The receive loop switches the socket to its own 1s poll timeout afterwards
        self._ws = websocket.create_connection(
            self._websocket_url,
            timeout=self.connect_timeout,
            enable_multithread=True,
            suppress_origin=True,
        )
        self._started = True
        self.status = self.status_started
        self._stopped.clear()
        self._recv_th.start()
        self._handle_event_th.start()
        return True

    def _send(self, message, timeout=None):
        with self._id_lock:
            self._cur_id += 1
            message["id"] = self._cur_id
        return super()._send(message, timeout=timeout)


class PyChromeSession(DevToolsSession):
    """DevToolsSession backed by a started DevToolsTab."""

    def __init__(self, tab: pychrome.Tab):
        self.tab = tab

    def call(self, method: str, timeout: Optional[float] = None, **params) -> Dict[str, Any]:
        _require_time(timeout, method)
        try:
            return self.tab.call_method(method, _timeout=timeout, **params)
        except pychrome.TimeoutException as e:
            raise DevToolsTimeout(f"{method} timed out after {timeout:.2f}s") from e
        except (pychrome.PyChromeException, websocket.WebSocketException, OSError) as e:
            raise DevToolsError(f"{method} failed: {e}") from e

    def on(self, event: str, callback: Optional[EventCallback]) -> None:
        if callback is None:
            self.tab.set_listener(event, None)
            return
        # pychrome passes event params as keyword arguments
        self.tab.set_listener(event, lambda **params: callback(params))

    def close(self) -> None:
        try:
            self.tab.stop()
        except (pychrome.PyChromeException, websocket.WebSocketException, OSError) as e:
            raise DevToolsError(f"closing session {self.tab.id} failed: {e}") from e


class PyChromeClient(DevToolsClient):
    """
    DevToolsClient for a Chrome instance started with --remote-debugging-port.

    Args:
        url: Management endpoint (default: CHROME_DEVTOOLS_URL env, http://localhost:9222)
    """

    def __init__(self, url: str = CHROME_DEVTOOLS_URL):
        self.url = url.rstrip("/")
        self.browser = pychrome.Browser(url=self.url)

    def version(self, timeout: Optional[float] = None) -> Dict[str, Any]:
        _require_time(timeout, "version discovery")
        try:
            return self.browser.version(timeout=timeout)
        except requests.Timeout as e:
            raise DevToolsTimeout(f"{self.url} did not answer within {timeout:.2f}s") from e
        except (requests.RequestException, ValueError) as e:
            raise DevToolsError(f"version discovery at {self.url} failed: {e}") from e

    def connect(self, ws_url: str, timeout: Optional[float] = None) -> DevToolsSession:
        _require_time(timeout, f"connecting to {ws_url}")
        tab = DevToolsTab(
            connect_timeout=timeout,
            id=ws_url.rstrip("/").rsplit("/", 1)[-1],
            type="page" if "/devtools/page/" in ws_url else "browser",
            webSocketDebuggerUrl=ws_url,
        )
        try:
            tab.start()
        except (websocket.WebSocketTimeoutException, socket.timeout) as e:
            raise DevToolsTimeout(f"handshake with {ws_url} timed out after {timeout}s") from e
        except (pychrome.PyChromeException, websocket.WebSocketException, OSError) as e:
            raise DevToolsError(f"could not connect to {ws_url}: {e}") from e
        return PyChromeSession(tab)

    def page_url(self, target_id: str) -> str:
        host = urlparse(self.url).netloc
        return f"ws://{host}/devtools/page/{target_id}"
