import sys
from pathlib import Path

import pytest
import requests

project_root = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(project_root / "src"))

from tripnode.network.http_client import PeerHttpClient
from tripnode.network.models import PeerRecord

SEED = "seed.local:3000"

_NO_JSON = object()


class FakeResponse:
    """Minimal stand-in for requests.Response"""

    def __init__(self, status_code=200, json_data=_NO_JSON, text=""):
        self.status_code = status_code
        self._json = json_data
        self.text = text

    def json(self):
        if self._json is _NO_JSON:
            raise ValueError("No JSON object could be decoded")
        return self._json


class RoutedSession:
    """
    Fake requests session answering from a (method, url) route table.

    A route value may be a FakeResponse, an exception instance to raise, or a
    callable receiving the request kwargs. Unrouted URLs raise ConnectionError.
    """

    def __init__(self):
        self.headers = {}
        self.routes = {}
        self.calls = []
        self.closed = False

    def route(self, method, url, handler):
        self.routes[(method, url)] = handler

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        handler = self.routes.get((method, url))
        if handler is None:
            raise requests.ConnectionError(f"connection refused: {url}")
        if isinstance(handler, Exception):
            raise handler
        if callable(handler):
            return handler(**kwargs)
        return handler

    def calls_to(self, url):
        return [call for call in self.calls if call[1] == url]

    def close(self):
        self.closed = True


class FakeTimer:
    def __init__(self, interval, callback, name):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.started = False
        self.stopped = False

    @property
    def is_running(self):
        return self.started and not self.stopped

    def start(self):
        self.started = True

    def stop(self, timeout=None):
        self.stopped = True

    def fire(self):
        """Run one tick the way RepeatingTimer would."""
        if self.is_running:
            self.callback()


class TimerRegistry:
    """Timer factory that keeps every timer it builds."""

    def __init__(self):
        self.created = []

    def __call__(self, interval, callback, name):
        timer = FakeTimer(interval, callback, name)
        self.created.append(timer)
        return timer

    def named(self, name):
        matches = [timer for timer in self.created if timer.name == name]
        return matches[-1] if matches else None


@pytest.fixture
def session():
    return RoutedSession()


@pytest.fixture
def http_client(session):
    return PeerHttpClient(default_timeout=1.0, session=session)


@pytest.fixture
def timers():
    return TimerRegistry()


@pytest.fixture
def response():
    """Build fake HTTP responses: response(status, json_data)"""
    return FakeResponse


@pytest.fixture
def validator_descriptors():
    return [
        {"address": "10.0.0.1:4000", "nodeType": "validator", "lastSeen": "2024-01-01T00:00:00Z", "isResponding": True, "version": "1.0.0"},
        {"address": "10.0.0.2:4000", "nodeType": "client", "lastSeen": "2024-01-01T00:00:00Z", "isResponding": True},
        {"address": "10.0.0.3:4000", "nodeType": "validator", "lastSeen": "2024-01-01T00:00:00Z", "isResponding": False},
        {"address": "10.0.0.4:4000", "nodeType": "validator", "lastSeen": "2024-01-01T00:00:00Z", "isResponding": True},
    ]


def make_peers(*addresses, responding=True):
    return [PeerRecord(address=address, is_responding=responding) for address in addresses]


@pytest.fixture
def peers_factory():
    return make_peers
