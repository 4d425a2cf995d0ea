from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any, Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from solar_relay.config import get_settings
from solar_relay.main import app
from solar_relay.observability.metrics import reset_metrics
from solar_relay.services.session_store import SessionStore, set_session_store
from solar_relay.services.upstream import UpstreamClient, set_upstream_client


UPSTREAM_BASE_URL = "https://fusion.test/thirdData"

Handler = Callable[[httpx.Request], httpx.Response]


class MockFusionSolar:
    """Stands in for the provider: one canned handler per operation, every request recorded."""

    def __init__(self) -> None:
        self.handlers: dict[str, Handler] = {}
        self.requests: list[httpx.Request] = []

    def on(self, operation: str, response: httpx.Response | Handler) -> None:
        if isinstance(response, httpx.Response):
            self.handlers[operation] = lambda _request: response
        else:
            self.handlers[operation] = response

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        operation = request.url.path.rsplit("/", 1)[-1]
        handler = self.handlers.get(operation)
        if handler is None:
            return httpx.Response(404, json={"success": False, "failCode": 404})
        return handler(request)

    def calls(self, operation: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/" + operation)]

    @staticmethod
    def login_response(cookies: list[str] | None = None, csrf_token: str | None = None) -> httpx.Response:
        headers: list[tuple[str, str]] = [("set-cookie", cookie) for cookie in cookies or []]
        if csrf_token is not None:
            headers.append(("xsrf-token", csrf_token))
        return httpx.Response(200, headers=headers, json={"success": True, "failCode": 0})

    @staticmethod
    def payload(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def fusion() -> MockFusionSolar:
    return MockFusionSolar()


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, fusion: MockFusionSolar, session_store: SessionStore) -> None:
    monkeypatch.setenv("UPSTREAM_BASE_URL", UPSTREAM_BASE_URL)
    get_settings.cache_clear()
    reset_metrics()

    set_session_store(session_store)
    set_upstream_client(UpstreamClient(base_url=UPSTREAM_BASE_URL, transport=httpx.MockTransport(fusion.handle)))

    yield

    set_session_store(None)
    set_upstream_client(None)
    get_settings.cache_clear()


@pytest.fixture
async def api_client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
