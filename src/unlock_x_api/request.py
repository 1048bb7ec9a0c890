"""Request assembler: turns (method, url, params, credential) into an httpx.Request.

Nothing here touches the network. The result is a request descriptor that
XClient (or any httpx client) can send.

Params given as query or form params take part in the OAuth signature;
a JSON or raw body never does. The signature is always computed over the
bare URL, without the query string. The query string on the wire doesn't
need the signature's sort order, only the same values.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from unlock_x_api.encoding import ParamSet, params_from_url, to_urlencoded
from unlock_x_api.keys import AppOnly, Credential, KeyPair, UserContext
from unlock_x_api.signing import (
    AddOn,
    Callback,
    SigningContext,
    Verifier,
    basic_header,
    bearer_header,
    sign_request,
)

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
JSON_CONTENT_TYPE = "application/json; charset=UTF-8"


class RequestBuilder:
    """Mutable description of one request, signed at the very end.

    Query and form params accumulate into the signature params. The query
    string itself is not cumulative: the last `with_query_params` wins, and
    each body setter replaces the previous body.
    """

    def __init__(self, method: str, url: str) -> None:
        self.method = method.upper()
        self.url = url
        self.params: ParamSet | None = None
        self.query: str | None = None
        self.body: bytes | None = None
        self.content_type: str | None = None
        self.addon: AddOn = None

    def _merge_params(self, params: ParamSet) -> None:
        if self.params is None:
            self.params = dict(params)
        else:
            self.params.update(params)

    def with_query_params(self, params: ParamSet) -> RequestBuilder:
        self._merge_params(params)
        self.query = to_urlencoded(params)
        return self

    def with_body_params(self, params: ParamSet) -> RequestBuilder:
        self._merge_params(params)
        self.body = to_urlencoded(params).encode("utf-8")
        self.content_type = FORM_CONTENT_TYPE
        return self

    def with_body_json(self, payload: Any) -> RequestBuilder:
        return self.with_body(json.dumps(payload), JSON_CONTENT_TYPE)

    def with_body(self, body: str | bytes, content_type: str) -> RequestBuilder:
        self.body = body.encode("utf-8") if isinstance(body, str) else body
        self.content_type = content_type
        return self

    def oauth_callback(self, url: str) -> RequestBuilder:
        self.addon = Callback(url=url)
        return self

    def oauth_verifier(self, code: str) -> RequestBuilder:
        self.addon = Verifier(code=code)
        return self

    def sign_with_keys(self, consumer: KeyPair, token: KeyPair | None = None) -> httpx.Request:
        """Sign with OAuth 1.0a. `token` is None only when asking for a request token."""
        context = SigningContext(consumer=consumer, token=token, addon=self.addon)
        header = sign_request(context, self.method, self.url, self.params)
        return self._build(str(header))

    def sign_with(self, credential: Credential) -> httpx.Request:
        if isinstance(credential, UserContext):
            return self.sign_with_keys(credential.consumer, credential.access)
        if isinstance(credential, AppOnly):
            return self._build(bearer_header(credential))
        raise TypeError(f"Unsupported credential type: {type(credential).__name__}")

    def sign_with_basic(self, consumer: KeyPair) -> httpx.Request:
        """Basic auth from the consumer pair, for the bearer-token endpoints only."""
        return self._build(basic_header(consumer))

    def _build(self, authorization: str) -> httpx.Request:
        full_url = f"{self.url}?{self.query}" if self.query else self.url
        headers = {"Authorization": authorization}
        if self.body is not None and self.content_type:
            headers["Content-Type"] = self.content_type

        logger.debug(f"Assembled {self.method} {self.url}")
        return httpx.Request(self.method, full_url, headers=headers, content=self.body)


def get(url: str, credential: Credential, params: ParamSet | None = None) -> httpx.Request:
    """Signed GET; params go into the query string and the signature."""
    builder = RequestBuilder("GET", url)
    if params:
        builder.with_query_params(params)
    return builder.sign_with(credential)


def replay(base: str, url: str, credential: Credential) -> httpx.Request:
    """Re-sign a GET the API handed back as a full URL (e.g. a geocode query link).

    Raises:
        BadUrl: `url` is not a query against `base`.
    """
    return get(base, credential, params_from_url(base, url))


def delete(url: str, credential: Credential, params: ParamSet | None = None) -> httpx.Request:
    builder = RequestBuilder("DELETE", url)
    if params:
        builder.with_query_params(params)
    return builder.sign_with(credential)


def post(url: str, credential: Credential, params: ParamSet | None = None) -> httpx.Request:
    """Signed POST; params go into a form-encoded body and the signature."""
    builder = RequestBuilder("POST", url)
    if params:
        builder.with_body_params(params)
    return builder.sign_with(credential)


def post_json(url: str, credential: Credential, payload: Any) -> httpx.Request:
    """Signed POST with a JSON body.

    The body is not part of the OAuth signature, so endpoints that expect
    signed params can't be called this way.
    """
    return RequestBuilder("POST", url).with_body_json(payload).sign_with(credential)


def post_raw(
    url: str, credential: Credential, body: str | bytes, content_type: str
) -> httpx.Request:
    """Signed POST with an arbitrary body. Only URL-level params are signed."""
    return RequestBuilder("POST", url).with_body(body, content_type).sign_with(credential)
