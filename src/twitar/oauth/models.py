"""Typed, immutable records used by the OAuth core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, SecretStr


@dataclass(frozen=True, slots=True)
class KeyPair:
    """A named credential: consumer key/secret or token/token-secret."""

    key: str
    value: SecretStr

    @classmethod
    def new(cls, key: str, value: str) -> KeyPair:
        return cls(key=key, value=SecretStr(value))

    @classmethod
    def empty(cls) -> KeyPair:
        """Zero value for flows that carry no resource-owner token."""
        return cls(key="", value=SecretStr(""))


@dataclass(frozen=True, slots=True)
class Callback:
    """``oauth_callback`` add-on, used when requesting a request token."""

    url: str


@dataclass(frozen=True, slots=True)
class Verifier:
    """``oauth_verifier`` add-on, used when exchanging for an access token."""

    value: str


OAuthAddOn = Union[Callback, Verifier, None]


class OAuth2AccessGrant(BaseModel):
    """Successful body of the OAuth 2.0 token endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    token_type: str
    expires_in: int
    access_token: str
    scope: str
    refresh_token: str


Flow = Literal["oauth1", "oauth2"]


@dataclass(frozen=True, slots=True)
class RedirectOutcome:
    """Terminal result of handling one redirect callback."""

    status_code: int
    message: str
    flow: Flow | None = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
