import threading

import pytest
import websocket


class FakeWebSocketApp:
    """In-memory stand-in for ``websocket.WebSocketApp``.

    ``run_forever`` fires ``on_open`` straight away and then blocks until
    ``close`` is called.  Sent frames are collected in ``sent``; ``deliver``
    pushes a frame to the client as if the peer had sent it.
    """

    def __init__(self, url, on_open=None, on_message=None, on_error=None, on_close=None, **kwargs):
        self.url = url
        self.on_open = on_open
        self.on_message = on_message
        self.on_error = on_error
        self.on_close = on_close
        self.sent = []
        self._closed = threading.Event()

    def run_forever(self, **kwargs):
        if self.on_open:
            self.on_open(self)
        self._closed.wait()
        if self.on_close:
            self.on_close(self, 1000, "closed")
        return False

    def send(self, data, opcode=None):
        if self._closed.is_set():
            raise websocket.WebSocketConnectionClosedException("socket is already closed.")
        self.sent.append(data)

    def close(self, **kwargs):
        self._closed.set()

    def deliver(self, message):
        self.on_message(self, message)


@pytest.fixture(autouse=True)
def fake_sockets(monkeypatch):
    created = []

    def factory(*args, **kwargs):
        app = FakeWebSocketApp(*args, **kwargs)
        created.append(app)
        return app

    monkeypatch.setattr(websocket, "WebSocketApp", factory)
    return created
