"""Id-bounded navigation of tweet timelines.

Timelines aren't cursored. They are bounded by tweet ids instead: `max_id`
(inclusive upper bound) and `since_id` (exclusive lower bound). A Timeline
remembers the newest and oldest id it has seen, so it can step in either
direction:

    timeline = user_timeline(client, credential, "unlockalabama")
    page = await timeline.start()        # newest page
    page = await timeline.older()        # the page below it
    page = await timeline.newer()        # anything posted since we started

`older`/`newer` update the tracked bounds from the page they return (an
empty page clears them). `call` fetches with explicit bounds and leaves
the tracked ones alone. Bounds are updated only after a page has decoded,
so a failed or cancelled fetch leaves the timeline as it was.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from unlock_x_api import links
from unlock_x_api.client import XClient
from unlock_x_api.encoding import ParamSet, UserRef, add_name_param, add_opt_param, add_param
from unlock_x_api.keys import Credential
from unlock_x_api.models import XTweet
from unlock_x_api.request import get
from unlock_x_api.response import ResponseEnvelope, parse_as

logger = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")

DEFAULT_PAGE_SIZE = 20


class Timeline(Generic[ItemT]):
    """Navigates an id-ordered collection, newest first.

    Items must expose an integer `id`.
    """

    def __init__(
        self,
        client: XClient,
        url: str,
        credential: Credential,
        params: ParamSet | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        item_type: Any = XTweet,
    ) -> None:
        self.client = client
        self.url = url
        self.credential = credential
        self.params_base: ParamSet = dict(params or {})
        self.count = page_size
        self.max_id: int | None = None
        self.min_id: int | None = None
        self._decode = parse_as(list[item_type])

    def reset(self) -> None:
        """Forget both bounds; the next `older()` starts from the newest item."""
        self.max_id = None
        self.min_id = None

    def set_page_size(self, page_size: int) -> Timeline[ItemT]:
        self.count = page_size
        return self

    async def start(self) -> ResponseEnvelope[list[ItemT]]:
        """Reset and load the newest page."""
        self.reset()
        return await self.older()

    async def older(self, since_id: int | None = None) -> ResponseEnvelope[list[ItemT]]:
        """Load the page strictly older than the oldest item seen so far."""
        max_id = self.min_id - 1 if self.min_id is not None else None
        page = await self.call(since_id, max_id)
        self._map_ids(page.payload)
        return page

    async def newer(self, max_id: int | None = None) -> ResponseEnvelope[list[ItemT]]:
        """Load items strictly newer than the newest item seen so far."""
        page = await self.call(self.max_id, max_id)
        self._map_ids(page.payload)
        return page

    async def call(
        self, since_id: int | None = None, max_id: int | None = None
    ) -> ResponseEnvelope[list[ItemT]]:
        """Fetch one page with explicit bounds. Tracked bounds are not updated."""
        params = dict(self.params_base)
        add_param(params, "count", self.count)
        add_opt_param(params, "since_id", since_id)
        add_opt_param(params, "max_id", max_id)
        request = get(self.url, self.credential, params)
        return await self.client.call(request, self._decode)

    def _map_ids(self, items: list[ItemT]) -> None:
        self.max_id = items[0].id if items else None
        self.min_id = items[-1].id if items else None
        logger.debug(f"{self.url}: {len(items)} items, max_id={self.max_id} min_id={self.min_id}")


def user_timeline(
    client: XClient,
    credential: Credential,
    user: UserRef,
    with_replies: bool = True,
    with_rts: bool = True,
) -> Timeline[XTweet]:
    """Tweets posted by `user`, newest first."""
    params = add_name_param({}, user)
    add_param(params, "exclude_replies", str(not with_replies).lower())
    add_param(params, "include_rts", str(with_rts).lower())
    add_param(params, "tweet_mode", "extended")
    return Timeline(client, links.USER_TIMELINE, credential, params)


def home_timeline(client: XClient, credential: Credential) -> Timeline[XTweet]:
    """The authenticated user's home timeline. Needs a user-context credential."""
    return Timeline(client, links.HOME_TIMELINE, credential, {"tweet_mode": "extended"})
