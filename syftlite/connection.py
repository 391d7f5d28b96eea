"""Single WebSocket connection to the remote peer."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import websocket

from .errors import NotConnectedError

logger = logging.getLogger(__name__)


class SocketConnection:
    """Wrap one ``websocket.WebSocketApp`` and its receive thread.

    Creating the object does not touch the network; ``open()`` starts the
    receive loop in a daemon thread and ``close()`` stops it.  Incoming text
    frames are passed to ``on_message``.  There is no reconnection.
    """

    _JOIN_TIMEOUT = 2.0

    def __init__(self, url: str, on_message: Optional[Callable[[str], Any]] = None):
        self.url = url
        self.on_message = on_message
        self._app = websocket.WebSocketApp(
            url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )
        self._thread: Optional[threading.Thread] = None
        self._opened = threading.Event()
        self._lock = threading.Lock()
        self._running = False

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"<SocketConnection {self.url} {state}>"

    @property
    def connected(self) -> bool:
        return self._running and self._opened.is_set()

    def open(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            logger.debug("Connecting to %s", self.url)
            self._thread = threading.Thread(target=self._run, name=f"syft-ws-{self.url}", daemon=True)
            self._thread.start()

    def wait_until_connected(self, timeout: Optional[float] = None) -> bool:
        return self._opened.wait(timeout)

    def close(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
        self._app.close()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout=self._JOIN_TIMEOUT)
        self._thread = None
        self._opened.clear()
        logger.debug("Closed connection to %s", self.url)

    def send(self, text: str) -> None:
        if not self.connected:
            raise NotConnectedError(f"Socket to {self.url} is not connected")
        with self._lock:
            try:
                self._app.send(text)
            except websocket.WebSocketException as exc:
                raise NotConnectedError(f"Failed to send on {self.url}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # WebSocketApp callbacks (receive thread)
    # ------------------------------------------------------------------ #

    def _run(self) -> None:
        try:
            self._app.run_forever()
        except Exception as exc:
            logger.warning("WebSocket loop for %s stopped: %s", self.url, exc)
        finally:
            self._opened.clear()

    def _on_open(self, ws: Any) -> None:
        logger.debug("Connected to %s", self.url)
        self._opened.set()

    def _on_message(self, ws: Any, message: str) -> None:
        if self.on_message is None:
            return
        try:
            self.on_message(message)
        except Exception as exc:
            logger.warning("Failed to handle message from %s: %s", self.url, exc)

    def _on_error(self, ws: Any, error: Exception) -> None:
        logger.warning("WebSocket error on %s: %s", self.url, error)

    def _on_close(self, ws: Any, close_status_code: Optional[int], close_msg: Optional[str]) -> None:
        self._opened.clear()
        logger.debug("Connection to %s closed %s %s", self.url, close_status_code, close_msg or "")
