"""Global pytest configuration."""

from __future__ import annotations

import asyncio
import inspect
import json
from collections.abc import AsyncGenerator
from typing import Any

import pytest


@pytest.fixture(scope="session")
def event_loop() -> AsyncGenerator[asyncio.AbstractEventLoop, None]:
    """Provide a shared event loop for async tests and fixtures."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()


def _get_loop(request: pytest.FixtureRequest) -> asyncio.AbstractEventLoop:
    try:
        loop = request.getfixturevalue("event_loop")
    except pytest.FixtureLookupError:
        loop = asyncio.new_event_loop()
    if loop.is_closed():
        loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = testargs.get("event_loop") or asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**testargs))
        return True
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_fixture_setup(fixturedef, request):  # type: ignore[override]
    func = fixturedef.func
    if inspect.iscoroutinefunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        return loop.run_until_complete(func(**kwargs))

    if inspect.isasyncgenfunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        agen = func(**kwargs)
        value = loop.run_until_complete(agen.__anext__())

        def finalize() -> None:
            try:
                loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                pass

        request.addfinalizer(finalize)
        return value

    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")


# -----------------------------------------------------------------------------
# Fake feed endpoints (aiohttp.ClientSession replacement)
# -----------------------------------------------------------------------------


class _FakeResponse:
    def __init__(self, status: int, payload: Any):
        self.status = status
        self._payload = payload

    async def json(self, content_type: str | None = "application/json"):
        if isinstance(self._payload, str):
            return json.loads(self._payload)
        return self._payload

    async def text(self):
        if isinstance(self._payload, str):
            return self._payload
        return json.dumps(self._payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeFeeds:
    """Maps URL -> (status, payload). A payload that is an exception is raised by get()."""

    def __init__(self):
        self.routes: dict[str, tuple[int, Any]] = {}
        self.get_calls: list[tuple[str, dict]] = []
        self.sessions_opened = 0

    def set(self, url: str, payload: Any, status: int = 200) -> None:
        self.routes[url] = (status, payload)

    def fail(self, url: str, exc: BaseException) -> None:
        self.routes[url] = (0, exc)

    def session(self, *args, **kwargs) -> "_FakeSession":
        self.sessions_opened += 1
        return _FakeSession(self)


class _FakeSession:
    def __init__(self, feeds: FakeFeeds):
        self._feeds = feeds

    def get(self, url, headers=None, timeout=None):
        self._feeds.get_calls.append((url, dict(headers or {})))
        status, payload = self._feeds.routes.get(url, (404, ""))
        if isinstance(payload, BaseException):
            raise payload
        return _FakeResponse(status, payload)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


@pytest.fixture
def fake_feeds(monkeypatch) -> FakeFeeds:
    """Route aiohttp.ClientSession GETs to in-memory feed payloads."""
    import aiohttp

    feeds = FakeFeeds()
    monkeypatch.setattr(aiohttp, "ClientSession", feeds.session)
    return feeds
