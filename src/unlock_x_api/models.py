"""Thin typed models for the v1.1 payloads the core itself returns.

Only the fields the pagination engine and the handshake rely on are typed
strictly (`id`); everything else is optional so that a partial object from
the API still validates. Unknown fields are ignored.
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator

# v1.1 timestamps look like "Wed Oct 10 20:19:24 +0000 2018"
_V1_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def _parse_v1_date(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return datetime.strptime(value, _V1_DATE_FORMAT)
        except ValueError:
            return value
    return value


V1Datetime = Annotated[datetime, BeforeValidator(_parse_v1_date)]


class XUser(BaseModel):
    """A user object from the v1.1 API."""

    id: int
    screen_name: str = ""
    name: str = ""
    description: str | None = None
    created_at: V1Datetime | None = None
    followers_count: int = 0
    friends_count: int = 0
    statuses_count: int = 0
    protected: bool = False
    verified: bool = False


class XTweet(BaseModel):
    """A tweet from the v1.1 API. `full_text` is set when tweet_mode=extended."""

    id: int
    text: str | None = None
    full_text: str | None = None
    created_at: V1Datetime | None = None
    user: XUser | None = None
    in_reply_to_status_id: int | None = None
    retweet_count: int = 0
    favorite_count: int = 0
    lang: str | None = None

    @property
    def content(self) -> str:
        return self.full_text or self.text or ""


class XList(BaseModel):
    """A list object from the v1.1 API."""

    id: int
    name: str = ""
    slug: str = ""
    description: str = ""
    member_count: int = 0
    subscriber_count: int = 0
    mode: str = "public"
    user: XUser | None = None
