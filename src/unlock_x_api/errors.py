"""Error taxonomy for X API calls.

Every failure a caller can recover from derives from XApiError, so a single
`except XApiError` covers the whole surface. RateLimited is split out of
ServiceError because sleeping until the reset time and retrying is the
common reaction to it; it still carries every sub-error from the payload.

SigningError is not an XApiError: signing with empty secret
material is a configuration bug, not something to retry.
"""

from __future__ import annotations

from pydantic import BaseModel


class ErrorCode(BaseModel):
    """One entry of the `{"errors": [...]}` envelope."""

    code: int
    message: str = ""

    def __str__(self) -> str:
        return f"#{self.code}: {self.message}"


class XApiError(Exception):
    """Base class for all recoverable API failures."""


class InvalidResponse(XApiError):
    """The body did not parse as the expected shape."""

    def __init__(self, context: str, raw_text: str | None = None) -> None:
        self.context = context
        self.raw_text = raw_text
        super().__init__(f"Invalid response received: {context}")


class MissingValue(XApiError):
    """A required field was absent from an otherwise valid response."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Value missing from response: {field}")


class ServiceError(XApiError):
    """The platform answered with its structured error envelope."""

    def __init__(self, errors: list[ErrorCode]) -> None:
        self.errors = list(errors)
        joined = ", ".join(str(e) for e in self.errors)
        super().__init__(f"Error(s) returned from X: {joined}")

    @property
    def codes(self) -> list[int]:
        return [e.code for e in self.errors]


class RateLimited(ServiceError):
    """Rate limit exceeded (code 88); retry after `reset` (unix seconds)."""

    def __init__(self, reset: int, errors: list[ErrorCode]) -> None:
        super().__init__(errors)
        self.reset = reset
        self.args = (f"Rate limit reached, hold until {reset}",)


class BadStatus(XApiError):
    """Non-success HTTP status without a parseable error envelope."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Error status received: {status_code}")


class TransportError(XApiError):
    """Network or stream failure. The underlying exception is kept as `cause`."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Network error: {cause}")


class BadUrl(XApiError):
    """A replayed URL did not match the API method it was given to."""

    def __init__(self, url: str) -> None:
        self.url = url
        super().__init__(f"URL given did not match API method: {url}")


class SigningError(ValueError):
    """Secret key material is missing, so the request cannot be signed."""
