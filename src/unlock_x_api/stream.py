"""Framing and classification for one streaming API connection.

The streaming endpoints hold a response open and write one JSON message per
line, delimited by `\\r\\n`. Blank lines are keep-alives. `iter_messages`
turns the ordered byte chunks of one connection into StreamMessages, in
arrival order, regardless of where chunk boundaries fall.

Reconnecting after a disconnect is up to the caller; `open_stream` ends
when the connection does.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any, Literal

import httpx
from pydantic import BaseModel, Field, ValidationError

from unlock_x_api import links
from unlock_x_api.client import XClient
from unlock_x_api.encoding import ParamSet
from unlock_x_api.errors import BadStatus, InvalidResponse, TransportError
from unlock_x_api.keys import Credential
from unlock_x_api.models import XTweet
from unlock_x_api.request import get, post

logger = logging.getLogger(__name__)

DELIMITER = b"\r\n"


class Ping(BaseModel):
    kind: Literal["ping"] = "ping"


class FriendList(BaseModel):
    kind: Literal["friends"] = "friends"
    ids: list[int]


class Delete(BaseModel):
    kind: Literal["delete"] = "delete"
    status_id: int
    user_id: int


class ScrubGeo(BaseModel):
    kind: Literal["scrub_geo"] = "scrub_geo"
    user_id: int
    up_to_status_id: int


class StatusWithheld(BaseModel):
    kind: Literal["status_withheld"] = "status_withheld"
    status_id: int
    user_id: int
    withheld_in_countries: list[str]


class UserWithheld(BaseModel):
    kind: Literal["user_withheld"] = "user_withheld"
    user_id: int
    withheld_in_countries: list[str]


class Disconnect(BaseModel):
    kind: Literal["disconnect"] = "disconnect"
    code: int
    reason: str


class Tweet(BaseModel):
    kind: Literal["tweet"] = "tweet"
    tweet: XTweet


class Unknown(BaseModel):
    kind: Literal["unknown"] = "unknown"
    raw: Any


StreamMessage = (
    Ping
    | FriendList
    | Delete
    | ScrubGeo
    | StatusWithheld
    | UserWithheld
    | Disconnect
    | Tweet
    | Unknown
)


def _classify(data: Any) -> StreamMessage:
    if not isinstance(data, dict):
        return Unknown(raw=data)

    if isinstance(data.get("delete"), dict) and "status" in data["delete"]:
        status = data["delete"]["status"]
        return Delete(status_id=status.get("id"), user_id=status.get("user_id"))
    if "scrub_geo" in data:
        scrub = data["scrub_geo"]
        return ScrubGeo(user_id=scrub.get("user_id"), up_to_status_id=scrub.get("up_to_status_id"))
    if "status_withheld" in data:
        withheld = data["status_withheld"]
        return StatusWithheld(
            status_id=withheld.get("id"),
            user_id=withheld.get("user_id"),
            withheld_in_countries=withheld.get("withheld_in_countries"),
        )
    if "user_withheld" in data:
        withheld = data["user_withheld"]
        return UserWithheld(
            user_id=withheld.get("id"),
            withheld_in_countries=withheld.get("withheld_in_countries"),
        )
    if "disconnect" in data:
        disconnect = data["disconnect"]
        return Disconnect(code=disconnect.get("code"), reason=disconnect.get("reason"))
    if "friends" in data:
        return FriendList(ids=data["friends"])

    try:
        return Tweet(tweet=XTweet.model_validate(data))
    except ValidationError:
        return Unknown(raw=data)


def parse_message(frame: str) -> StreamMessage:
    """Classify one delimited frame. Blank frames are keep-alive pings."""
    frame = frame.strip()
    if not frame:
        return Ping()
    try:
        data = json.loads(frame)
    except ValueError as e:
        raise InvalidResponse("stream message is not JSON", frame) from e
    try:
        return _classify(data)
    except (ValidationError, AttributeError, TypeError) as e:
        raise InvalidResponse(f"malformed stream message: {e}", frame) from e


async def iter_messages(chunks: AsyncIterable[bytes]) -> AsyncIterator[StreamMessage]:
    """Split an ordered byte stream on `\\r\\n` and yield messages in order."""
    buf = bytearray()
    async for chunk in chunks:
        buf.extend(chunk)
        while True:
            pos = buf.find(DELIMITER)
            if pos < 0:
                break
            raw = bytes(buf[:pos])
            del buf[: pos + len(DELIMITER)]
            try:
                frame = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise InvalidResponse("stream did not contain valid UTF-8") from e
            yield parse_message(frame)

    if buf.strip():
        logger.warning(f"Stream closed with {len(buf)} bytes of an incomplete message")


class FilterStream(BaseModel):
    """Options for `statuses/filter`: who to follow, what to track."""

    follow: list[int] = Field(default_factory=list)
    track: list[str] = Field(default_factory=list)
    language: list[str] = Field(default_factory=list)
    filter_level: Literal["none", "low", "medium"] | None = None

    def params(self) -> ParamSet:
        params: ParamSet = {}
        if self.filter_level is not None:
            params["filter_level"] = self.filter_level
        if self.follow:
            params["follow"] = ",".join(str(user_id) for user_id in self.follow)
        if self.track:
            params["track"] = ",".join(self.track)
        if self.language:
            params["language"] = ",".join(self.language)
        return params

    def request(self, credential: Credential) -> httpx.Request:
        return post(links.STREAM_FILTER, credential, self.params())


def sample_request(credential: Credential) -> httpx.Request:
    """Request for the random-sample stream."""
    return get(links.STREAM_SAMPLE, credential)


async def open_stream(client: XClient, request: httpx.Request) -> AsyncIterator[StreamMessage]:
    """Send `request` and yield messages until the connection closes.

    Raises:
        BadStatus: The stream endpoint refused the connection.
        TransportError: The connection failed, dropped, or sent an undecodable body.
        InvalidResponse: A frame was not valid UTF-8 or JSON.
    """
    http = await client.http()
    try:
        response = await http.send(request, stream=True)
    except httpx.RequestError as e:
        raise TransportError(e) from e

    try:
        if not response.is_success:
            raise BadStatus(response.status_code)
        logger.info(f"Stream connected to {request.url.copy_with(query=None)}")
        try:
            async for message in iter_messages(response.aiter_bytes()):
                yield message
        except httpx.RequestError as e:
            raise TransportError(e) from e
    finally:
        await response.aclose()
