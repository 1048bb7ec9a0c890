"""Shared test fixtures for unlock_x_api tests.

Provides:
  - JSON fixture loading helpers
  - Mock HTTP transport for httpx (intercepts all requests)
  - Pre-built credentials, including the OAuth reference example keys
  - Environment variable setup for ClientSettings.from_env
"""

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from unlock_x_api.client import XClient
from unlock_x_api.config import ClientSettings
from unlock_x_api.keys import AppOnly, KeyPair, UserContext

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> Any:
    """Load a JSON fixture file by name."""
    return json.loads((FIXTURES_DIR / name).read_text())


def load_fixture_raw(name: str) -> str:
    """Load a fixture file as raw text."""
    return (FIXTURES_DIR / name).read_text()


class MockTransport(httpx.AsyncBaseTransport):
    """Mock HTTP transport that returns preconfigured responses.

    Usage:
        transport = MockTransport(responses=[
            httpx.Response(200, json={"ids": [...]}),
            httpx.ConnectError("boom"),
        ])

    Each call pops the next entry. Exceptions are raised instead of returned.
    If the list is exhausted, returns a 500 error.
    """

    def __init__(self, responses: list[httpx.Response | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            response.stream = httpx.ByteStream(response.content)
            return response
        return httpx.Response(500, json={"error": "No more mock responses"})


class StallingTransport(MockTransport):
    """MockTransport that hangs on request number `stall_at` (0-based) until cancelled.

    The stalled request consumes no response; later requests pick up where
    the list left off. `stalled` is set once the hang begins.
    """

    def __init__(self, responses: list[httpx.Response | Exception], stall_at: int) -> None:
        super().__init__(responses)
        self.stall_at = stall_at
        self.stalled = asyncio.Event()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if len(self.requests) == self.stall_at:
            self.requests.append(request)
            self.stalled.set()
            await asyncio.Event().wait()
        return await super().handle_async_request(request)


class GarbledGzipTransport(httpx.AsyncBaseTransport):
    """Claims a gzip body but sends plain bytes, so httpx fails while decoding."""

    def __init__(self, body: bytes = b"not gzip") -> None:
        self.body = body
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(
            200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(self.body)
        )


def make_client(transport: httpx.AsyncBaseTransport, max_retries: int = 1) -> XClient:
    """XClient over a mock transport. One attempt by default so tests never back off."""
    return XClient(ClientSettings(max_retries=max_retries), transport=transport)


@pytest.fixture
def consumer() -> KeyPair:
    return KeyPair(
        key="xvz1evFS4wEEPTGEFPHBog",
        secret="kAcSOqF21Fu85e7zjz7ZN2U4ZRhfV3WpwPAoE3Z7kBw",
    )


@pytest.fixture
def access() -> KeyPair:
    return KeyPair(
        key="370773112-GmHxMAgYyLbNEtIKZeRNFsMKPR9EyMZeS9weJAEb",
        secret="LswwdoUaIvS8ltyTt5jkRh4J50vUPVVHtR2YPi5kE",
    )


@pytest.fixture
def user_credential(consumer: KeyPair, access: KeyPair) -> UserContext:
    return UserContext(consumer=consumer, access=access)


@pytest.fixture
def app_credential() -> AppOnly:
    return AppOnly(token="AAAAAAAAAAAAAAAAAAAAAtest-bearer")


@pytest.fixture
def rate_headers() -> dict[str, str]:
    return {
        "x-rate-limit-limit": "15",
        "x-rate-limit-remaining": "14",
        "x-rate-limit-reset": "1700000900",
    }


@pytest.fixture
def mock_env():
    """Set fake X credentials in environment variables."""
    env = {
        "X_CONSUMER_KEY": "test-consumer-key",
        "X_CONSUMER_SECRET": "test-consumer-secret",
        "X_ACCESS_TOKEN": "test-access-token",
        "X_ACCESS_TOKEN_SECRET": "test-access-secret",
        "X_BEARER_TOKEN": "test-bearer-token",
    }
    with patch.dict("os.environ", env, clear=True):
        yield env
