"""OAuth 1.0a request signing, plus the Bearer and Basic header variants.

The signature is computed the way the X API verifies it:

  1. Collect the caller's params plus the oauth_* protocol params.
  2. Percent-encode every key and value, form `key=value` pairs and sort the
     pairs by their encoded form. The server rebuilds the same string, so the
     sort must be on the encoded pair, not on the raw key.
  3. Base string = encode(METHOD) & encode(url) & encode(joined pairs).
  4. Key = encode(consumer secret) & encode(token secret, or "").
  5. oauth_signature = base64(HMAC-SHA1(key, base string)).

A SigningContext is built fresh for every request (new nonce, current time)
and never reused. The `addon` carries the callback or verifier used during
the three-legged handshake; at most one of them exists by construction.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import string
import time
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field

from unlock_x_api.encoding import ParamSet, percent_encode
from unlock_x_api.errors import SigningError
from unlock_x_api.keys import AppOnly, Credential, KeyPair, UserContext

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"
NONCE_LENGTH = 32

_NONCE_ALPHABET = string.ascii_letters + string.digits

# Order of fields in the rendered Authorization header.
_HEADER_FIELDS = (
    "oauth_consumer_key",
    "oauth_nonce",
    "oauth_signature",
    "oauth_signature_method",
    "oauth_timestamp",
    "oauth_token",
    "oauth_version",
    "oauth_callback",
    "oauth_verifier",
)


def generate_nonce() -> str:
    """Random 32-character alphanumeric string."""
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(NONCE_LENGTH))


def current_timestamp() -> int:
    return int(time.time())


class Callback(BaseModel):
    """`oauth_callback`: sent when requesting a request token."""

    model_config = ConfigDict(frozen=True)

    url: str


class Verifier(BaseModel):
    """`oauth_verifier`: sent when exchanging a request token for an access token."""

    model_config = ConfigDict(frozen=True)

    code: str


AddOn = Callback | Verifier | None


class SigningContext(BaseModel):
    """Single-use inputs to one OAuth signature."""

    model_config = ConfigDict(frozen=True)

    consumer: KeyPair
    token: KeyPair | None = None
    nonce: str = Field(default_factory=generate_nonce)
    timestamp: int = Field(default_factory=current_timestamp)
    addon: AddOn = None

    def protocol_params(self) -> ParamSet:
        """The oauth_* params that take part in the signature (minus the signature)."""
        params: ParamSet = {
            "oauth_consumer_key": self.consumer.key,
            "oauth_nonce": self.nonce,
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(self.timestamp),
            "oauth_version": OAUTH_VERSION,
        }
        if self.token is not None:
            params["oauth_token"] = self.token.key
        if isinstance(self.addon, Callback):
            params["oauth_callback"] = self.addon.url
        elif isinstance(self.addon, Verifier):
            params["oauth_verifier"] = self.addon.code
        return params


class SignedHeader(BaseModel):
    """OAuth params plus their signature, ready to render as a header."""

    model_config = ConfigDict(frozen=True)

    params: dict[str, str]
    base_string: str

    @property
    def signature(self) -> str:
        return self.params["oauth_signature"]

    def __str__(self) -> str:
        pairs = [
            f'{name}="{percent_encode(self.params[name])}"'
            for name in _HEADER_FIELDS
            if name in self.params
        ]
        return "OAuth " + ", ".join(pairs)


def normalized_params(params: Mapping[str, str]) -> str:
    """Encoded `key=value` pairs, sorted by their encoded form and joined with `&`."""
    pairs = sorted(f"{percent_encode(k)}={percent_encode(v)}" for k, v in params.items())
    return "&".join(pairs)


def signature_base_string(method: str, url: str, params: Mapping[str, str]) -> str:
    return "&".join(
        (
            percent_encode(method.upper()),
            percent_encode(url),
            percent_encode(normalized_params(params)),
        )
    )


def signing_key(consumer: KeyPair, token: KeyPair | None) -> str:
    token_secret = token.secret if token is not None else ""
    return f"{percent_encode(consumer.secret)}&{percent_encode(token_secret)}"


def sign_request(
    context: SigningContext,
    method: str,
    url: str,
    params: Mapping[str, str] | None = None,
) -> SignedHeader:
    """Compute the HMAC-SHA1 signature for one request.

    Args:
        context: Fresh signing context (keys, nonce, timestamp, addon).
        method: HTTP method; upper-cased for the base string.
        url: Target URL without query string.
        params: Query or form params that will be sent with the request.

    Raises:
        SigningError: The consumer secret is empty.
    """
    if not context.consumer.secret:
        raise SigningError("Cannot sign a request with an empty consumer secret")

    protocol = context.protocol_params()
    all_params = {**(params or {}), **protocol}

    base_string = signature_base_string(method, url, all_params)
    key = signing_key(context.consumer, context.token)
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()

    protocol["oauth_signature"] = base64.b64encode(digest).decode("ascii")
    return SignedHeader(params=protocol, base_string=base_string)


def basic_header(consumer: KeyPair) -> str:
    """`Basic` auth from the consumer pair: only for the bearer-token endpoints."""
    if not consumer.key or not consumer.secret:
        raise SigningError("Basic authorization needs both consumer key and secret")
    raw = f"{percent_encode(consumer.key)}:{percent_encode(consumer.secret)}"
    return "Basic " + base64.b64encode(raw.encode("utf-8")).decode("ascii")


def bearer_header(credential: AppOnly) -> str:
    return f"Bearer {credential.token}"


def authorization_header(
    credential: Credential,
    method: str,
    url: str,
    params: Mapping[str, str] | None = None,
) -> str:
    """Authorization header for a regular API call made with `credential`.

    Bearer credentials ignore `params` entirely; user credentials sign them.
    """
    if isinstance(credential, AppOnly):
        return bearer_header(credential)
    if isinstance(credential, UserContext):
        context = SigningContext(consumer=credential.consumer, token=credential.access)
        return str(sign_request(context, method, url, params))
    raise TypeError(f"Unsupported credential type: {type(credential).__name__}")
