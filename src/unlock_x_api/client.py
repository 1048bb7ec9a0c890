"""HTTP transport for signed X API requests.

XClient owns one httpx.AsyncClient and sends the httpx.Request descriptors
built by `unlock_x_api.request`. It adds two things on top of httpx:

  - Retry with exponential backoff via tenacity, only for transport-level
    failures (connection reset, timeout). API errors are never retried here;
    rate limits and service errors go back to the caller as exceptions.
  - Classification of the response through `decode_response`, so callers get
    a ResponseEnvelope or an XApiError and never a raw httpx exception.

Each call sends exactly one request (plus transport retries of that same
request). There is no background work and no shared mutable state beyond
the connection pool.
"""

from __future__ import annotations

import logging
from typing import TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from unlock_x_api.config import ClientSettings
from unlock_x_api.errors import TransportError
from unlock_x_api.response import (
    Decoder,
    ResponseEnvelope,
    body_text,
    decode_httpx,
    raise_for_envelope,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class XClient:
    """Sends signed requests and decodes the responses."""

    def __init__(
        self,
        settings: ClientSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings or ClientSettings()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.request_count: int = 0

    async def http(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.timeout_seconds,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> XClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send one request, retrying transport failures with backoff.

        Raises:
            TransportError: The request failed at the transport level or its body
                could not be decoded.
        """
        client = await self.http()
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(httpx.TransportError),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            stop=stop_after_attempt(max(1, self.settings.max_retries)),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    self.request_count += 1
                    response = await client.send(request)
        except httpx.RequestError as e:
            # Only TransportError is retried; DecodingError and friends fail at once.
            logger.warning(f"{request.method} {request.url.copy_with(query=None)} failed: {e}")
            raise TransportError(e) from e

        logger.debug(
            f"{request.method} {request.url.copy_with(query=None)} -> {response.status_code}"
        )
        return response

    async def call(self, request: httpx.Request, decode: Decoder[T]) -> ResponseEnvelope[T]:
        """Send `request` and decode the JSON body with `decode`."""
        response = await self.send(request)
        return decode_httpx(response, decode)

    async def call_text(self, request: httpx.Request) -> str:
        """Send `request` and return the raw body after error classification.

        Used for the OAuth token endpoints, which answer `key=value&...`
        rather than JSON.
        """
        response = await self.send(request)
        text = body_text(response.content)
        raise_for_envelope(text, response.status_code, response.headers)
        return text
