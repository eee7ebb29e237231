"""Shared test fixtures for the njalladns test suite."""

from collections import Counter

import pytest

from njalladns.app.provider import Provider


class FakeClient:
    """Stands in for JSONRPCClient.

    Each method replies from a registered handler: either a fixed JSON-like
    payload, an exception instance to raise, or a callable
    ``handler(ctx, params)`` returning one of those. The payload goes through
    the caller's ``result`` converter exactly as a real response would.
    """

    def __init__(self):
        self.handlers = {}
        self.calls = []
        self.contexts = []

    def on(self, method, handler):
        self.handlers[method] = handler
        return self

    def call(self, ctx, method, params, result=None):
        self.calls.append((method, params))
        self.contexts.append(ctx)
        if method not in self.handlers:
            raise AssertionError(f"unexpected call to {method}")
        reply = self.handlers[method]
        if callable(reply):
            reply = reply(ctx, params)
        if isinstance(reply, Exception):
            raise reply
        return result(reply) if result is not None else None

    def count(self, method):
        return Counter(m for m, _ in self.calls)[method]

    def params(self, method):
        return [p for m, p in self.calls if m == method]


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def provider(fake_client):
    return Provider(fake_client)
