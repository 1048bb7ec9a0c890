"""Credential models: who is making the request.

Two ways to authenticate against the X v1.1 API:

  - UserContext: the app's consumer key pair plus a user's access key pair.
    Every request is signed with OAuth 1.0a.
  - AppOnly: a bearer token previously obtained for the app itself. Requests
    carry a static `Bearer <token>` header and nothing is signed.

All models are frozen. A credential can be shared freely across concurrent
requests because signing only reads from it.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict


class KeyPair(BaseModel):
    """A key and its secret: used for both consumer and access/request tokens."""

    model_config = ConfigDict(frozen=True)

    key: str
    secret: str

    def __repr__(self) -> str:
        return f"KeyPair(key={self.key!r}, secret='***')"

    __str__ = __repr__


class UserContext(BaseModel):
    """Consumer + access key pairs. Signs with OAuth 1.0a."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    consumer: KeyPair
    access: KeyPair


class AppOnly(BaseModel):
    """An application-only bearer token."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["app"] = "app"
    token: str

    def __repr__(self) -> str:
        return "AppOnly(token='***')"

    __str__ = __repr__


Credential = UserContext | AppOnly
