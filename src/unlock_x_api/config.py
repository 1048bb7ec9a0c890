"""Client configuration from environment variables.

Credentials are read from the environment, never passed around as literals.
A `.env` file is loaded on request (local dev); deployed services set the
variables directly.

Credential selection:
  - X_CONSUMER_KEY/SECRET + X_ACCESS_TOKEN/SECRET → UserContext
  - X_BEARER_TOKEN → AppOnly
User context wins when both are configured, since it can call every endpoint.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

from unlock_x_api.keys import AppOnly, Credential, KeyPair, UserContext


class ClientSettings(BaseModel):
    """Connection and credential settings for XClient."""

    consumer_key: str = ""
    consumer_secret: str = ""
    access_token: str = ""
    access_token_secret: str = ""
    bearer_token: str = ""
    timeout_seconds: float = 30.0
    max_retries: int = 3

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> ClientSettings:
        """Read settings from os.environ, optionally loading `env_file` first."""
        if env_file is not None:
            load_dotenv(env_file)
        return cls(
            consumer_key=os.environ.get("X_CONSUMER_KEY", ""),
            consumer_secret=os.environ.get("X_CONSUMER_SECRET", ""),
            access_token=os.environ.get("X_ACCESS_TOKEN", ""),
            access_token_secret=os.environ.get("X_ACCESS_TOKEN_SECRET", ""),
            bearer_token=os.environ.get("X_BEARER_TOKEN", ""),
            timeout_seconds=float(os.environ.get("X_API_TIMEOUT_SECONDS", "30")),
            max_retries=int(os.environ.get("X_API_MAX_RETRIES", "3")),
        )

    def consumer(self) -> KeyPair:
        if not self.consumer_key or not self.consumer_secret:
            raise ValueError("X_CONSUMER_KEY and X_CONSUMER_SECRET must both be set")
        return KeyPair(key=self.consumer_key, secret=self.consumer_secret)

    def credential(self) -> Credential:
        """Pick the credential variant the configured variables describe."""
        if self.access_token and self.access_token_secret:
            return UserContext(
                consumer=self.consumer(),
                access=KeyPair(key=self.access_token, secret=self.access_token_secret),
            )
        if self.bearer_token:
            return AppOnly(token=self.bearer_token)
        raise ValueError(
            "No X credentials configured. Set X_ACCESS_TOKEN/X_ACCESS_TOKEN_SECRET "
            "(with the consumer pair) or X_BEARER_TOKEN."
        )
