"""Lazy cursored pagination.

Many v1.1 collections (follower ids, friend lists, owned lists, ...) are
paged with opaque numeric cursors: each page carries `previous_cursor` and
`next_cursor`, and a `next_cursor` of 0 marks the last page. CursorIter
walks such a collection one page at a time:

    async for envelope in follower_ids(client, credential, "unlockalabama"):
        print(envelope.payload, envelope.metadata.rate_limit_remaining)

Each item comes wrapped in a ResponseEnvelope carrying its page's rate-limit
metadata.

State machine:
  - Idle      next_cursor == -1, nothing buffered
  - Paging    a page is buffered, more may follow
  - Exhausted next_cursor == 0 and the buffer is drained

Failures are resumable. A failed fetch raises out of `advance()` (and so out
of `async for`) without touching cursor state; calling `advance()` again, or
re-entering `async for` on the same iterator, retries the same cursor. That
way a RateLimited halfway through a large collection costs one sleep, not
the whole walk. Cursor state only changes after a page has been fully
decoded, so cancelling a pending fetch leaves the iterator where it was.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel

from unlock_x_api import links
from unlock_x_api.client import XClient
from unlock_x_api.encoding import ParamSet, UserRef, add_name_param, add_param
from unlock_x_api.keys import Credential
from unlock_x_api.models import XList, XUser
from unlock_x_api.request import get
from unlock_x_api.response import ResponseEnvelope, parse_as

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ItemT_co = TypeVar("ItemT_co", covariant=True)


class CursorPage(Protocol[ItemT_co]):
    """Anything that can be paged by cursor."""

    def previous_cursor_id(self) -> int: ...

    def next_cursor_id(self) -> int: ...

    def into_items(self) -> list[ItemT_co]: ...


class _CursorFields(BaseModel):
    previous_cursor: int = 0
    next_cursor: int = 0

    def previous_cursor_id(self) -> int:
        return self.previous_cursor

    def next_cursor_id(self) -> int:
        return self.next_cursor


class IDCursor(_CursorFields):
    """Page of numeric user ids (friends/ids, followers/ids)."""

    ids: list[int] = []

    def into_items(self) -> list[int]:
        return list(self.ids)


class UserCursor(_CursorFields):
    """Page of user objects (friends/list, followers/list)."""

    users: list[XUser] = []

    def into_items(self) -> list[XUser]:
        return list(self.users)


class ListCursor(_CursorFields):
    """Page of list objects (lists/ownerships, lists/memberships)."""

    lists: list[XList] = []

    def into_items(self) -> list[XList]:
        return list(self.lists)


class CursorIter(Generic[ItemT]):
    """Async iterator over a cursored endpoint, one page in flight at a time.

    Page size is a capability of the endpoint: pass `page_size` at
    construction for endpoints that accept `count`. For endpoints that
    don't, `set_page_size` is a silent no-op.
    """

    def __init__(
        self,
        client: XClient,
        url: str,
        credential: Credential,
        page_type: type[CursorPage[ItemT]],
        params: ParamSet | None = None,
        page_size: int | None = None,
    ) -> None:
        self.client = client
        self.url = url
        self.credential = credential
        self.page_type = page_type
        self.params_base: ParamSet = dict(params or {})
        self.page_size = page_size
        self.previous_cursor: int = -1
        self.next_cursor: int = -1
        self._buffer: deque[ResponseEnvelope[ItemT]] | None = None
        self._decode = parse_as(page_type)

    @property
    def exhausted(self) -> bool:
        return self.next_cursor == 0 and not self._buffer

    def set_page_size(self, page_size: int) -> CursorIter[ItemT]:
        """Change the page size and restart from the first page.

        Ignored when the endpoint does not support page sizing.
        """
        if self.page_size is None:
            logger.debug(f"{self.url} does not support page size; ignoring {page_size}")
            return self

        self.page_size = page_size
        self.previous_cursor = -1
        self.next_cursor = -1
        self._buffer = None
        return self

    def _request_params(self) -> ParamSet:
        params = dict(self.params_base)
        add_param(params, "cursor", self.next_cursor)
        if self.page_size is not None:
            add_param(params, "count", self.page_size)
        return params

    async def call(self) -> ResponseEnvelope[CursorPage[ItemT]]:
        """Fetch the page at `next_cursor` without changing any iterator state."""
        request = get(self.url, self.credential, self._request_params())
        return await self.client.call(request, self._decode)

    async def advance(self) -> ResponseEnvelope[ItemT] | None:
        """Return the next item, fetching a page if needed. None at the end."""
        if self._buffer:
            return self._buffer.popleft()
        if self._buffer is not None and self.next_cursor == 0:
            return None

        page = await self.call()

        self.previous_cursor = page.payload.previous_cursor_id()
        self.next_cursor = page.payload.next_cursor_id()
        self._buffer = deque(page.map(lambda p: p.into_items()).unzip())
        logger.debug(
            f"{self.url}: page of {len(self._buffer)} items, next_cursor={self.next_cursor}"
        )

        if not self._buffer:
            return None
        return self._buffer.popleft()

    def __aiter__(self) -> CursorIter[ItemT]:
        return self

    async def __anext__(self) -> ResponseEnvelope[ItemT]:
        item = await self.advance()
        if item is None:
            raise StopAsyncIteration
        return item


def friend_ids(
    client: XClient, credential: Credential, user: UserRef, page_size: int = 500
) -> CursorIter[int]:
    """Ids of the accounts `user` follows."""
    params = add_name_param({}, user)
    return CursorIter(client, links.FRIENDS_IDS, credential, IDCursor, params, page_size)


def follower_ids(
    client: XClient, credential: Credential, user: UserRef, page_size: int = 500
) -> CursorIter[int]:
    """Ids of the accounts following `user`."""
    params = add_name_param({}, user)
    return CursorIter(client, links.FOLLOWERS_IDS, credential, IDCursor, params, page_size)


def friends(
    client: XClient, credential: Credential, user: UserRef, page_size: int = 20
) -> CursorIter[XUser]:
    params = add_name_param({}, user)
    return CursorIter(client, links.FRIENDS_LIST, credential, UserCursor, params, page_size)


def followers(
    client: XClient, credential: Credential, user: UserRef, page_size: int = 20
) -> CursorIter[XUser]:
    params = add_name_param({}, user)
    return CursorIter(client, links.FOLLOWERS_LIST, credential, UserCursor, params, page_size)


def owned_lists(
    client: XClient, credential: Credential, user: UserRef, page_size: int = 20
) -> CursorIter[XList]:
    params = add_name_param({}, user)
    return CursorIter(client, links.LISTS_OWNERSHIPS, credential, ListCursor, params, page_size)
