"""Obtaining credentials: the three-legged handshake and app-only bearer tokens.

User context (three-legged OAuth 1.0a):

  1. `request_token`: POST with an `oauth_callback` ("oob" for PIN-based
     auth), signed with the consumer pair only. Returns a request-token pair.
  2. `authorize_url` / `authenticate_url`: send the user there. Pure
     formatting, no network.
  3. `access_token`: POST with the `oauth_verifier` the user brought back,
     signed with the consumer pair and the request token. Returns the
     access credential plus the user's id and screen name.

The token endpoints answer `key=value&...`, not JSON, so they go through
`XClient.call_text` and `parse_urlencoded`.

App only: `bearer_token` trades the consumer pair (Basic auth) for a bearer
token; `invalidate_bearer` revokes one.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict

from unlock_x_api import links
from unlock_x_api.client import XClient
from unlock_x_api.encoding import parse_urlencoded
from unlock_x_api.errors import InvalidResponse, MissingValue
from unlock_x_api.keys import AppOnly, Credential, KeyPair, UserContext
from unlock_x_api.models import XUser
from unlock_x_api.request import RequestBuilder, get
from unlock_x_api.response import ResponseEnvelope, parse_as

logger = logging.getLogger(__name__)

CLIENT_CREDENTIALS_BODY = "grant_type=client_credentials"
BEARER_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"


class AccessGrant(BaseModel):
    """Result of the last handshake step."""

    model_config = ConfigDict(frozen=True)

    credential: UserContext
    user_id: int
    screen_name: str


def _require(fields: dict[str, str], name: str) -> str:
    value = fields.get(name)
    if value is None:
        raise MissingValue(name)
    return value


async def request_token(client: XClient, consumer: KeyPair, callback: str = "oob") -> KeyPair:
    """Step 1: register a request token with the given callback URL."""
    request = (
        RequestBuilder("POST", links.REQUEST_TOKEN)
        .oauth_callback(callback)
        .sign_with_keys(consumer, None)
    )
    fields = parse_urlencoded(await client.call_text(request), "request_token response")

    token = KeyPair(
        key=_require(fields, "oauth_token"),
        secret=_require(fields, "oauth_token_secret"),
    )
    logger.info("Obtained request token")
    return token


def authorize_url(request_token: KeyPair) -> str:
    """Step 2: URL where the user approves the app (asks every time)."""
    return f"{links.AUTHORIZE}?oauth_token={request_token.key}"


def authenticate_url(request_token: KeyPair) -> str:
    """Step 2, "Sign in with X" variant: skips approval for returning users."""
    return f"{links.AUTHENTICATE}?oauth_token={request_token.key}"


async def access_token(
    client: XClient, consumer: KeyPair, request_token: KeyPair, verifier: str
) -> AccessGrant:
    """Step 3: exchange the verifier for an access token."""
    request = (
        RequestBuilder("POST", links.ACCESS_TOKEN)
        .oauth_verifier(verifier)
        .sign_with_keys(consumer, request_token)
    )
    fields = parse_urlencoded(await client.call_text(request), "access_token response")

    access = KeyPair(
        key=_require(fields, "oauth_token"),
        secret=_require(fields, "oauth_token_secret"),
    )
    raw_user_id = _require(fields, "user_id")
    try:
        user_id = int(raw_user_id)
    except ValueError as e:
        raise InvalidResponse("non-numeric user_id in access_token response", raw_user_id) from e
    screen_name = _require(fields, "screen_name")

    logger.info(f"Obtained access token for @{screen_name}")
    return AccessGrant(
        credential=UserContext(consumer=consumer, access=access),
        user_id=user_id,
        screen_name=screen_name,
    )


async def bearer_token(client: XClient, consumer: KeyPair) -> AppOnly:
    """Fetch the app's bearer token using the consumer pair."""
    request = (
        RequestBuilder("POST", links.BEARER_TOKEN)
        .with_body(CLIENT_CREDENTIALS_BODY, BEARER_CONTENT_TYPE)
        .sign_with_basic(consumer)
    )
    envelope = await client.call(request, parse_as(dict))
    token = envelope.payload.get("access_token")
    if not isinstance(token, str):
        raise MissingValue("access_token")
    logger.info("Obtained bearer token")
    return AppOnly(token=token)


async def invalidate_bearer(client: XClient, consumer: KeyPair, credential: AppOnly) -> AppOnly:
    """Revoke a bearer token. Returns the token the API reports as invalidated."""
    if not isinstance(credential, AppOnly):
        raise TypeError("invalidate_bearer needs an AppOnly credential")

    request = (
        RequestBuilder("POST", links.INVALIDATE_BEARER)
        .with_body(f"access_token={credential.token}", BEARER_CONTENT_TYPE)
        .sign_with_basic(consumer)
    )
    envelope = await client.call(request, parse_as(dict))
    token = envelope.payload.get("access_token")
    if not isinstance(token, str):
        raise MissingValue("access_token")
    logger.info("Invalidated bearer token")
    return AppOnly(token=token)


async def verify_credentials(client: XClient, credential: Credential) -> ResponseEnvelope[XUser]:
    """Check a credential by loading the user it acts for."""
    request = get(links.VERIFY_CREDENTIALS, credential)
    return await client.call(request, parse_as(XUser))
