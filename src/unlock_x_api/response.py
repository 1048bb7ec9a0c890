"""Response decoding and rate-limit metadata.

Every successful call comes back as a ResponseEnvelope: the decoded payload
plus the PageMetadata read from the `x-rate-limit-*` headers, so callers
always have rate-limit context at hand.

decode_response classifies a raw response in a fixed order:

  1. Error envelope (`{"errors": [{"code", "message"}]}`) → ServiceError,
     or RateLimited when code 88 is present and the reset header exists.
     Some error responses arrive with a 200, so this runs before the
     status check.
  2. Status outside 2xx/304 → BadStatus.
  3. Decode into the target type → InvalidResponse on failure.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import httpx
from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from unlock_x_api.errors import (
    BadStatus,
    ErrorCode,
    InvalidResponse,
    RateLimited,
    ServiceError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

RATE_LIMIT_LIMIT = "x-rate-limit-limit"
RATE_LIMIT_REMAINING = "x-rate-limit-remaining"
RATE_LIMIT_RESET = "x-rate-limit-reset"

RATE_LIMIT_EXCEEDED = 88

Decoder = Callable[[str], T]


class PageMetadata(BaseModel):
    """Rate-limit snapshot of one response. -1 means the header was absent."""

    model_config = ConfigDict(frozen=True)

    rate_limit: int = -1
    rate_limit_remaining: int = -1
    rate_limit_reset: int = -1

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> PageMetadata:
        headers = httpx.Headers(headers)
        return cls(
            rate_limit=_header_int(headers, RATE_LIMIT_LIMIT, -1),
            rate_limit_remaining=_header_int(headers, RATE_LIMIT_REMAINING, -1),
            rate_limit_reset=_header_int(headers, RATE_LIMIT_RESET, -1),
        )


def _header_int(headers: httpx.Headers, name: str, default: int) -> int:
    value = headers.get(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError as e:
        raise InvalidResponse(f"non-integer {name} header", value) from e


def _most_conservative(left: PageMetadata, right: PageMetadata) -> PageMetadata:
    """Latest reset wins; on equal resets, the lower remaining count wins."""
    if right.rate_limit_reset > left.rate_limit_reset:
        return right
    if (
        right.rate_limit_reset == left.rate_limit_reset
        and right.rate_limit_remaining < left.rate_limit_remaining
    ):
        return right
    return left


@dataclass(frozen=True)
class ResponseEnvelope(Generic[T]):
    """A decoded payload together with the rate-limit metadata of its response."""

    payload: T
    metadata: PageMetadata = field(default_factory=PageMetadata)

    def map(self, fn: Callable[[T], U]) -> ResponseEnvelope[U]:
        return ResponseEnvelope(payload=fn(self.payload), metadata=self.metadata)

    def unzip(self) -> list[ResponseEnvelope[Any]]:
        """Split a list payload into per-item envelopes sharing this metadata."""
        return [ResponseEnvelope(payload=item, metadata=self.metadata) for item in self.payload]

    def __iter__(self) -> Iterator[ResponseEnvelope[Any]]:
        return iter(self.unzip())

    @classmethod
    def merge(cls, envelopes: Iterable[ResponseEnvelope[T]]) -> ResponseEnvelope[list[T]]:
        """Fold item envelopes back into one list envelope.

        Keeps the most conservative metadata: latest reset time, ties broken
        by the lowest remaining count.
        """
        items: list[T] = []
        metadata: PageMetadata | None = None
        for envelope in envelopes:
            items.append(envelope.payload)
            if metadata is None:
                metadata = envelope.metadata
            else:
                metadata = _most_conservative(metadata, envelope.metadata)
        return ResponseEnvelope(payload=items, metadata=metadata or PageMetadata())


class ErrorEnvelope(BaseModel):
    """The platform's in-band error payload."""

    errors: list[ErrorCode]


def parse_as(target: Any) -> Decoder[Any]:
    """Decoder that validates JSON text into `target` (a model, list[model], dict, ...)."""
    return TypeAdapter(target).validate_json


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300 or status_code == 304


def _error_envelope(text: str) -> ErrorEnvelope | None:
    try:
        envelope = ErrorEnvelope.model_validate_json(text)
    except ValidationError:
        return None
    return envelope if envelope.errors else None


def raise_for_envelope(text: str, status_code: int, headers: Mapping[str, str]) -> None:
    """Steps 1 and 2 of decoding: raise for an error envelope or a bad status."""
    envelope = _error_envelope(text)
    if envelope is not None:
        headers = httpx.Headers(headers)
        rate_limited = any(e.code == RATE_LIMIT_EXCEEDED for e in envelope.errors)
        if rate_limited and RATE_LIMIT_RESET in headers:
            reset = _header_int(headers, RATE_LIMIT_RESET, -1)
            logger.warning(f"Rate limit exceeded, resets at {reset}")
            raise RateLimited(reset, envelope.errors)
        raise ServiceError(envelope.errors)

    if not _is_success(status_code):
        raise BadStatus(status_code)


def body_text(body: bytes | str) -> str:
    if isinstance(body, str):
        return body
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidResponse("stream did not contain valid UTF-8") from e


def decode_response(
    body: bytes | str,
    status_code: int,
    headers: Mapping[str, str],
    decode: Decoder[T],
) -> ResponseEnvelope[T]:
    """Classify a raw response and decode it into a ResponseEnvelope.

    Raises:
        RateLimited: Error envelope with code 88 and a reset header.
        ServiceError: Any other non-empty error envelope.
        BadStatus: Non-success status without an error envelope.
        InvalidResponse: Body or rate-limit headers did not parse.
    """
    text = body_text(body)
    raise_for_envelope(text, status_code, headers)

    try:
        payload = decode(text)
    except ValueError as e:
        raise InvalidResponse(f"could not decode response: {e}", text) from e

    return ResponseEnvelope(payload=payload, metadata=PageMetadata.from_headers(headers))


def decode_httpx(response: httpx.Response, decode: Decoder[T]) -> ResponseEnvelope[T]:
    return decode_response(response.content, response.status_code, response.headers, decode)
