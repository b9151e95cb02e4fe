import pytest

from adventure_story.core import http_client as hc


class DummyResponse:
    def __init__(self, status_code=200, json_data=None):
        self.status_code = status_code
        self._json = json_data or {}

    def json(self):
        return self._json


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class Upstream:
    """Routes patched requests.request calls by URL substring."""

    def __init__(self, routes=None):
        self.routes = list((routes or {}).items())
        self.calls = []

    def add(self, fragment, response):
        self.routes.append((fragment, response))

    def __call__(self, method, url, timeout=None, headers=None, **kw):
        self.calls.append({"method": method, "url": url, "headers": headers or {}, **kw})
        for fragment, response in self.routes:
            if fragment in url:
                if callable(response):
                    return response(method, url, **kw)
                if isinstance(response, DummyResponse):
                    return response
                return DummyResponse(200, response)
        return DummyResponse(404)


class FakeSource:
    """Async stand-in for a fetcher or service.

    Each keyword names a method: a value is returned as-is, an exception is
    raised, and a callable is called with the method's arguments.
    """

    def __init__(self, name="fake", **responses):
        self.name = name
        self.responses = responses
        self.calls = []

    def __getattr__(self, method):
        responses = self.__dict__.get("responses", {})
        if method not in responses:
            raise AttributeError(method)

        async def call(*args, **kw):
            self.calls.append((method, args, kw))
            value = responses[method]
            if isinstance(value, Exception):
                raise value
            if callable(value):
                return value(*args, **kw)
            return value

        return call

    def count(self, method):
        return sum(1 for c in self.calls if c[0] == method)


@pytest.fixture
def sleeps(monkeypatch):
    """No real sleeping during backoff or limiter waits; records requested delays."""
    recorded = []

    async def fake_sleep(delay, *args, **kw):
        recorded.append(delay)

    monkeypatch.setattr(hc.asyncio, "sleep", fake_sleep)
    return recorded


@pytest.fixture
def upstream(monkeypatch, sleeps):
    up = Upstream()
    monkeypatch.setattr(hc.requests, "request", up)
    return up
