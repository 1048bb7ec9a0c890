"""Percent-encoding and parameter-set helpers.

The X API (and OAuth 1.0a) require one exact encoding rule: ASCII letters,
digits and `-._~` pass through, every other byte of the UTF-8 encoding
becomes `%XX` with uppercase hex. `urllib.parse.quote` with an empty safe
set implements exactly that rule, so the signer, the query-string builder
and the form-body builder all go through `percent_encode`.

A ParamSet is a plain `dict[str, str]`: case-sensitive keys, one value per
key, last write wins. The helpers below fill one in the way the API expects
user and list references to be spelled.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import quote, unquote

from unlock_x_api.errors import BadUrl, InvalidResponse

ParamSet = dict[str, str]

UserRef = int | str
ListRef = int | tuple[UserRef, str]


def percent_encode(value: str) -> str:
    """Encode `value` byte-wise, leaving only `[A-Za-z0-9-._~]` unescaped.

    Lone surrogates (which `json.loads` can produce) are encoded as their
    surrogate code units rather than rejected.
    """
    return quote(value.encode("utf-8", "surrogatepass"), safe="")


def to_urlencoded(params: Mapping[str, str]) -> str:
    """Render `key=value&...` with each value percent-encoded (keys are sent as-is)."""
    return "&".join(f"{k}={percent_encode(v)}" for k, v in params.items())


def add_param(params: ParamSet, key: str, value: object) -> ParamSet:
    """Insert `key` into `params` as a string. Returns `params` for chaining."""
    params[key] = value if isinstance(value, str) else str(value)
    return params


def add_opt_param(params: ParamSet, key: str, value: object | None) -> ParamSet:
    if value is not None:
        add_param(params, key, value)
    return params


def add_name_param(params: ParamSet, user: UserRef) -> ParamSet:
    """Reference a user by numeric id (`user_id`) or by handle (`screen_name`)."""
    if isinstance(user, int):
        return add_param(params, "user_id", user)
    return add_param(params, "screen_name", user)


def add_list_param(params: ParamSet, list_ref: ListRef) -> ParamSet:
    """Reference a list by id, or by (owner, slug)."""
    if isinstance(list_ref, int):
        return add_param(params, "list_id", list_ref)

    owner, slug = list_ref
    if isinstance(owner, int):
        add_param(params, "owner_id", owner)
    else:
        add_param(params, "owner_screen_name", owner)
    return add_param(params, "slug", slug)


def multiple_names_param(users: Iterable[UserRef]) -> tuple[str, str]:
    """Split mixed user references into comma-joined (ids, screen_names)."""
    ids: list[str] = []
    names: list[str] = []
    for user in users:
        if isinstance(user, int):
            ids.append(str(user))
        else:
            names.append(user)
    return ",".join(ids), ",".join(names)


def parse_urlencoded(body: str, context: str = "urlencoded body") -> dict[str, str]:
    """Parse a `key=value&...` body such as the OAuth token endpoints return.

    Empty segments are skipped. A segment without `=` means the body is not
    what we asked for, so it raises InvalidResponse with the raw text attached.
    """
    result: dict[str, str] = {}
    for segment in body.strip().split("&"):
        if not segment:
            continue
        key, sep, value = segment.partition("=")
        if not sep:
            raise InvalidResponse(f"unexpected segment in {context}", body)
        result[key] = unquote(value)
    return result


def params_from_url(base: str, url: str) -> ParamSet:
    """Rebuild the ParamSet of a URL the API handed back earlier.

    Used to replay links such as a search or reverse-geocode query URL. The
    URL must point at `base` and carry a well-formed query string.
    """
    base_part, sep, query = url.partition("?")
    if base_part != base or not sep or not query:
        raise BadUrl(url)

    params: ParamSet = {}
    for pair in query.split("&"):
        key, eq, value = pair.partition("=")
        if not key or not eq:
            raise BadUrl(url)
        params[unquote(key)] = unquote(value)
    return params
