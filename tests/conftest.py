"""Global pytest fixtures & helpers.

Adds project root to path and provides fakes for the client's transport and
scheduler seams so tests never touch the network or sleep.
"""
from __future__ import annotations

import json
import os
import sys

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from healthgraph.api_client.backoff import BackoffController
from healthgraph.api_client.rate_limiter import SlidingWindowRateLimiter
from healthgraph.client import HealthGraphClient
from healthgraph.models import TransportResponse


# --- Fakes -----------------------------------------------------------
class FakeTransport:
    """Replays queued responses (or raises queued exceptions) in order."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests = []

    def queue(self, *replies):
        self.replies.extend(replies)

    def send(self, request):
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.uri}")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class ManualScheduler:
    """Runs submitted tasks inline and holds delayed tasks until fired."""

    def __init__(self):
        self.delayed = []
        self.drop_handlers = []
        self.submitted = 0

    def submit(self, fn, *args):
        self.submitted += 1
        fn(*args)

    def call_later(self, delay, fn, *args, on_drop=None):
        self.delayed.append((delay, fn, args))
        self.drop_handlers.append(on_drop)

    def fire_next(self):
        _, fn, args = self.delayed.pop(0)
        self.drop_handlers.pop(0)
        fn(*args)

    def fire_all(self):
        while self.delayed:
            self.fire_next()

    def drop_all(self):
        """Behave like a scheduler shut down before its timers fired."""
        handlers = [h for h in self.drop_handlers if h is not None]
        self.delayed.clear()
        self.drop_handlers.clear()
        for handler in handlers:
            handler()


class AllowAllLimiter:
    def __init__(self):
        self.keys = []

    def check_and_record(self, key, now=None):
        self.keys.append(key)
        return True


def json_reply(data, status=200):
    return TransportResponse(status_code=status, body=json.dumps(data))


def text_reply(body, status=200):
    return TransportResponse(status_code=status, body=body)


class Recorder:
    """Callback capturing every (error, result) invocation."""

    def __init__(self):
        self.calls = []

    def __call__(self, error, result):
        self.calls.append((error, result))

    @property
    def error(self):
        assert len(self.calls) == 1, f"expected one callback, got {self.calls}"
        return self.calls[0][0]

    @property
    def result(self):
        assert len(self.calls) == 1, f"expected one callback, got {self.calls}"
        return self.calls[0][1]


# --- Fixtures --------------------------------------------------------
@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def make_client(transport, scheduler):
    def _make(**kwargs):
        kwargs.setdefault("client_id", "cid")
        kwargs.setdefault("client_secret", "csec")
        kwargs.setdefault("access_token", "token-1234")
        kwargs.setdefault("transport", transport)
        kwargs.setdefault("scheduler", scheduler)
        kwargs.setdefault("limiter", AllowAllLimiter())
        kwargs.setdefault("backoff", BackoffController(delay=30.0, default_limit=10))
        return HealthGraphClient(**kwargs)

    return _make


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def strict_limiter():
    clock = {"now": 0.0}
    limiter = SlidingWindowRateLimiter(rate=5, window=60.0, clock=lambda: clock["now"])
    limiter.clock = clock
    return limiter
