"""
Pytest configuration and fixtures for logstream tests.
"""

import json

import pytest

from logstream.models import StreamConfig


class FakeConnection:
    """In-memory push connection driven by the test."""

    def __init__(self, url, listener):
        self.url = url
        self.listener = listener
        self.opened = False
        self.close_calls = 0
        self._closed = False

    @property
    def closed(self):
        return self._closed

    def open(self):
        self.opened = True

    def close(self):
        self.close_calls += 1
        self._closed = True

    def emit_open(self):
        self.listener.on_open(self)

    def emit(self, event, data=""):
        self.listener.on_event(self, event, data)

    def emit_log(self, content):
        self.emit("log", json.dumps({"content": content}))

    def emit_complete(self, status="completed", result=None):
        payload = {"status": status}
        if result is not None:
            payload["result"] = result
        self.emit("complete", json.dumps(payload))

    def fail(self):
        self._closed = True
        self.listener.on_failure(self)


class FakeConnectionFactory:
    """Records every connection a client opens."""

    def __init__(self):
        self.connections = []

    def __call__(self, url, listener):
        connection = FakeConnection(url, listener)
        self.connections.append(connection)
        return connection

    @property
    def latest(self):
        return self.connections[-1]

    @property
    def live(self):
        return [c for c in self.connections if c.opened and not c.closed]


@pytest.fixture
def factory():
    """Fixture providing a fake connection factory"""
    return FakeConnectionFactory()


@pytest.fixture
def stream_config():
    """Fixture providing a config with a short reconnect interval"""
    return StreamConfig(base_url="http://dashboard.test", reconnect_interval=0.01)
