"""Signed requests and cursored pagination for the X (Twitter) v1.1 API."""

from unlock_x_api.client import XClient
from unlock_x_api.config import ClientSettings
from unlock_x_api.cursor import CursorIter, IDCursor, ListCursor, UserCursor
from unlock_x_api.errors import (
    BadStatus,
    BadUrl,
    ErrorCode,
    InvalidResponse,
    MissingValue,
    RateLimited,
    ServiceError,
    SigningError,
    TransportError,
    XApiError,
)
from unlock_x_api.keys import AppOnly, Credential, KeyPair, UserContext
from unlock_x_api.response import PageMetadata, ResponseEnvelope
from unlock_x_api.timeline import Timeline

__all__ = [
    "AppOnly",
    "BadStatus",
    "BadUrl",
    "ClientSettings",
    "Credential",
    "CursorIter",
    "ErrorCode",
    "IDCursor",
    "InvalidResponse",
    "KeyPair",
    "ListCursor",
    "MissingValue",
    "PageMetadata",
    "RateLimited",
    "ResponseEnvelope",
    "ServiceError",
    "SigningError",
    "Timeline",
    "TransportError",
    "UserContext",
    "UserCursor",
    "XApiError",
    "XClient",
]
