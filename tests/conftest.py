"""Test configuration helpers and shared fixtures."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from tenacity import stop_after_attempt, wait_none


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

HOSTING_ORIGIN = "https://hosting.test.local"
IDENTITY_ORIGIN = "https://identity.test.local"

_SETTINGS_ENV = (
    "HOSTING_API_ORIGIN",
    "IDENTITY_API_ORIGIN",
    "HOSTING_ACCESS_TOKEN",
    "GOOGLE_ACCESS_TOKEN",
    "HOSTING_REQUEST_TIMEOUT",
    "OPERATION_POLL_INTERVAL_SECONDS",
    "OPERATION_POLL_MAX_INTERVAL_SECONDS",
    "OPERATION_POLL_MAX_ATTEMPTS",
)


@dataclass
class Route:
    method: str
    url: str
    params: Optional[Dict[str, Any]]
    body: Any
    status: int
    payload: Any
    calls: int = 0


@dataclass
class MockApi:
    """Expected-request router backing an :class:`httpx.MockTransport`.

    Each registered route answers exactly one request, in registration order.
    ``params`` and ``body`` are compared exactly when given.
    """

    routes: List[Route] = field(default_factory=list)
    requests: List[httpx.Request] = field(default_factory=list)

    def add(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Any = None,
        status: int = 200,
        payload: Any = None,
    ) -> Route:
        route = Route(method, url, params, body, status, payload)
        self.routes.append(route)
        return route

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        for route in self.routes:
            if route.calls or route.method != request.method or route.url != url:
                continue
            if route.params is not None:
                expected = {key: str(value) for key, value in route.params.items()}
                if dict(request.url.params) != expected:
                    continue
            if route.body is not None:
                if not request.content or json.loads(request.content) != route.body:
                    continue
            route.calls += 1
            if route.payload is None:
                return httpx.Response(route.status)
            return httpx.Response(route.status, json=route.payload)
        raise AssertionError(f"Unexpected request: {request.method} {request.url}")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def assert_all_called(self) -> None:
        pending = [f"{r.method} {r.url}" for r in self.routes if not r.calls]
        assert not pending, f"Routes never requested: {pending}"


@pytest.fixture(autouse=True)
def clear_settings_env(monkeypatch):
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def mock_api() -> MockApi:
    return MockApi()


@pytest_asyncio.fixture
async def identity(mock_api):
    from integration.identity_integration import IdentityIntegration

    integration = IdentityIntegration(
        api_origin=IDENTITY_ORIGIN, transport=mock_api.transport
    )
    yield integration
    await integration.aclose()


@pytest_asyncio.fixture
async def hosting(mock_api, identity):
    from integration.hosting_integration import HostingIntegration

    integration = HostingIntegration(
        api_origin=HOSTING_ORIGIN,
        transport=mock_api.transport,
        identity=identity,
        poll_wait=wait_none(),
        poll_stop=stop_after_attempt(5),
    )
    yield integration
    await integration.aclose()
