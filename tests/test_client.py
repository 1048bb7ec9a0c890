"""Tests for XClient transport handling."""

import httpx
import pytest
from unlock_x_api.client import XClient
from unlock_x_api.config import ClientSettings
from unlock_x_api.errors import BadStatus, TransportError
from unlock_x_api.models import XUser
from unlock_x_api.request import RequestBuilder, get
from unlock_x_api.response import parse_as

from .conftest import GarbledGzipTransport, MockTransport, make_client

URL = "https://api.twitter.com/1.1/account/verify_credentials.json"


class TestSend:
    async def test_call_decodes_and_attaches_metadata(self, app_credential, rate_headers):
        transport = MockTransport(
            [httpx.Response(200, json={"id": 1, "screen_name": "a"}, headers=rate_headers)]
        )
        async with make_client(transport) as client:
            envelope = await client.call(get(URL, app_credential), parse_as(XUser))
        assert envelope.payload.id == 1
        assert envelope.metadata.rate_limit_remaining == 14
        assert client.request_count == 1
        assert transport.requests[0].headers["Authorization"].startswith("Bearer ")

    async def test_transport_failure_is_wrapped(self, app_credential):
        transport = MockTransport([httpx.ConnectError("connection refused")])
        client = make_client(transport)
        with pytest.raises(TransportError) as exc_info:
            await client.send(get(URL, app_credential))
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        await client.close()

    async def test_transport_failure_is_retried(self, app_credential):
        transport = MockTransport(
            [
                httpx.ReadTimeout("timed out"),
                httpx.Response(200, json={"id": 2}),
            ]
        )
        client = make_client(transport, max_retries=2)
        envelope = await client.call(get(URL, app_credential), parse_as(XUser))
        assert envelope.payload.id == 2
        assert client.request_count == 2
        await client.close()

    async def test_undecodable_body_is_wrapped(self, app_credential):
        transport = GarbledGzipTransport()
        client = XClient(ClientSettings(max_retries=3), transport=transport)
        with pytest.raises(TransportError) as exc_info:
            await client.call(get(URL, app_credential), parse_as(XUser))
        assert isinstance(exc_info.value.cause, httpx.DecodingError)
        assert len(transport.requests) == 1
        await client.close()

    async def test_bad_status_is_not_retried(self, app_credential):
        transport = MockTransport([httpx.Response(503, text="over capacity")])
        client = make_client(transport, max_retries=3)
        with pytest.raises(BadStatus):
            await client.call(get(URL, app_credential), parse_as(XUser))
        assert len(transport.requests) == 1
        await client.close()

    async def test_call_text_returns_body(self, consumer):
        transport = MockTransport([httpx.Response(200, text="oauth_token=a&oauth_token_secret=b")])
        client = make_client(transport)
        request = RequestBuilder("POST", URL).sign_with_keys(consumer, None)
        assert await client.call_text(request) == "oauth_token=a&oauth_token_secret=b"
        await client.close()


class TestLifecycle:
    async def test_close_is_idempotent(self):
        client = XClient(ClientSettings())
        await client.http()
        await client.close()
        await client.close()
        assert client._client is None
