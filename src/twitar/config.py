"""Process configuration.

:class:`TwitarConfig` is built **once** at startup (``TwitarConfig.from_env()``)
and handed to the service, the exchange engine and the app factory.  Nothing in
the OAuth core reads the environment on its own.

Environment variables
---------------------
TWITAR_CLIENT_ID / TWITAR_CLIENT_SECRET
    OAuth 2.0 client credentials (token endpoint Basic auth).
TWITAR_OAUTH2_CALLBACK
    OAuth 2.0 ``redirect_uri``.
TWITAR_OAUTH2_SCOPE
    Space-separated scopes requested on the authorize URL.
TWITAR_API_KEY / TWITAR_API_KEY_SECRET
    OAuth 1.0a consumer key and secret.
TWITAR_OAUTH1_CALLBACK
    ``oauth_callback`` sent when requesting a request token.
TWITAR_STATE
    Optional fixed anti-forgery ``state``; a random one is minted per flow
    when unset.
TWITAR_STORE
    ``redis`` (default) or ``memory``.
TWITAR_REDIS_URL
    Redis connection URL (default ``redis://localhost:6379/0``).
TWITAR_STORE_TTL
    Lifetime in seconds of single-use correlation entries (default 600).
TWITAR_HTTP_TIMEOUT
    Outbound HTTP timeout in seconds (default 10).
TWITAR_OAUTH1_MISMATCH_POLICY
    ``fallback`` (default) or ``reject``; see :class:`Oauth1MismatchPolicy`.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Final, Literal

from pydantic import SecretStr

from twitar.oauth.models import KeyPair
from twitar.utils.environment import env_float, env_int, env_str

_LOG = logging.getLogger("twitar.config")

DEFAULT_OAUTH2_SCOPE: Final[str] = "tweet.read tweet.write users.read offline.access"

OAUTH2_AUTHORIZE_URL: Final[str] = "https://twitter.com/i/oauth2/authorize"
OAUTH2_TOKEN_URL: Final[str] = "https://api.twitter.com/2/oauth2/token"
OAUTH1_REQUEST_TOKEN_URL: Final[str] = "https://api.twitter.com/oauth/request_token"
OAUTH1_AUTHORIZE_URL: Final[str] = "https://api.twitter.com/oauth/authorize"
OAUTH1_ACCESS_TOKEN_URL: Final[str] = "https://api.twitter.com/oauth/access_token"


class Oauth1MismatchPolicy(str, enum.Enum):
    """What to do when a 1.0a-shaped callback carries an unknown ``oauth_token``.

    ``FALLBACK`` re-reads the same query string as an OAuth 2.0 callback
    (historical behaviour).  ``REJECT`` answers 400 immediately.
    """

    FALLBACK = "fallback"
    REJECT = "reject"


StoreBackend = Literal["redis", "memory"]


@dataclass(frozen=True)
class TwitarConfig:
    """Immutable application configuration."""

    client_id: str = ""
    client_secret: SecretStr = field(default_factory=lambda: SecretStr(""))
    oauth2_callback: str = ""
    oauth2_scope: str = DEFAULT_OAUTH2_SCOPE
    api_key: str = ""
    api_key_secret: SecretStr = field(default_factory=lambda: SecretStr(""))
    oauth1_callback: str = ""
    state: str | None = None
    store_backend: StoreBackend = "redis"
    redis_url: str = "redis://localhost:6379/0"
    store_ttl_seconds: int = 600
    http_timeout: float = 10.0
    oauth1_mismatch_policy: Oauth1MismatchPolicy = Oauth1MismatchPolicy.FALLBACK

    oauth2_authorize_url: str = OAUTH2_AUTHORIZE_URL
    oauth2_token_url: str = OAUTH2_TOKEN_URL
    oauth1_request_token_url: str = OAUTH1_REQUEST_TOKEN_URL
    oauth1_authorize_url: str = OAUTH1_AUTHORIZE_URL
    oauth1_access_token_url: str = OAUTH1_ACCESS_TOKEN_URL

    @property
    def consumer(self) -> KeyPair:
        """OAuth 1.0a consumer credentials."""
        return KeyPair(key=self.api_key, value=self.api_key_secret)

    def is_oauth2_configured(self) -> bool:
        return bool(self.client_id and self.client_secret.get_secret_value() and self.oauth2_callback)

    def is_oauth1_configured(self) -> bool:
        return bool(self.api_key and self.api_key_secret.get_secret_value() and self.oauth1_callback)

    @classmethod
    def from_env(cls) -> TwitarConfig:
        """Build the configuration from ``TWITAR_*`` environment variables."""
        backend = env_str("TWITAR_STORE", "redis").lower()
        if backend not in ("redis", "memory"):
            raise ValueError(f"TWITAR_STORE must be 'redis' or 'memory', got {backend!r}")

        policy_raw = env_str("TWITAR_OAUTH1_MISMATCH_POLICY", "fallback").lower()
        try:
            policy = Oauth1MismatchPolicy(policy_raw)
        except ValueError:
            raise ValueError(
                f"TWITAR_OAUTH1_MISMATCH_POLICY must be 'fallback' or 'reject', got {policy_raw!r}"
            ) from None

        store_ttl = env_int("TWITAR_STORE_TTL", 600)
        if store_ttl <= 0:
            raise ValueError(f"TWITAR_STORE_TTL must be a positive number of seconds, got {store_ttl}")

        config = cls(
            client_id=env_str("TWITAR_CLIENT_ID"),
            client_secret=SecretStr(env_str("TWITAR_CLIENT_SECRET")),
            oauth2_callback=env_str("TWITAR_OAUTH2_CALLBACK"),
            oauth2_scope=env_str("TWITAR_OAUTH2_SCOPE", DEFAULT_OAUTH2_SCOPE),
            api_key=env_str("TWITAR_API_KEY"),
            api_key_secret=SecretStr(env_str("TWITAR_API_KEY_SECRET")),
            oauth1_callback=env_str("TWITAR_OAUTH1_CALLBACK"),
            state=env_str("TWITAR_STATE") or None,
            store_backend=backend,  # type: ignore[arg-type]
            redis_url=env_str("TWITAR_REDIS_URL", "redis://localhost:6379/0"),
            store_ttl_seconds=store_ttl,
            http_timeout=env_float("TWITAR_HTTP_TIMEOUT", 10.0),
            oauth1_mismatch_policy=policy,
        )
        if not config.is_oauth2_configured():
            _LOG.warning("OAuth 2.0 client is not fully configured; the PKCE flow will fail.")
        if not config.is_oauth1_configured():
            _LOG.warning("OAuth 1.0a consumer is not fully configured; the 1.0a flow will fail.")
        return config
