"""Pytest configuration - loads .env for integration tests and fakes the Flotiq backend."""

from pathlib import Path
from typing import Any

import httpx
import pytest
from dotenv import load_dotenv

from flotiq_cli.core.client import APIClient, HTTPTransport
from flotiq_cli.core.credentials import StaticCredentialProvider
from flotiq_cli.sdk import FlotiqClient

# Load .env from project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path)

BASE_URL = "https://cms.test/api"
TOKEN = "test-token"


class FakeBackend:
    """httpx.MockTransport handler with canned responses per (method, API path)."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Any] = {}

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        content: bytes | None = None,
        error: Exception | None = None,
    ) -> None:
        self._routes[(method, path)] = (status, json, content, error)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/api")
        status, body, content, error = self._routes.get(
            (request.method, path),
            (404, {"error": "Not found"}, None, None),
        )
        if error is not None:
            raise error
        if callable(body):
            body = body(request)
        if content is not None:
            return httpx.Response(status, content=content)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
async def http(backend):
    async with httpx.AsyncClient(transport=httpx.MockTransport(backend)) as c:
        yield c


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider(TOKEN, BASE_URL)


@pytest.fixture
def api(http, credentials) -> APIClient:
    return APIClient(credentials=credentials, transport=HTTPTransport(http))


@pytest.fixture
def client(http, credentials) -> FlotiqClient:
    return FlotiqClient(credentials=credentials, transport=HTTPTransport(http))
