"""Credential store: async get/set of short strings keyed by name.

This module introduces a *narrow* persistence interface
(:class:`CredentialStore`) and two implementations:

* :class:`RedisCredentialStore` – production backend on ``redis.asyncio``.
* :class:`MemoryCredentialStore` – single-process backend on a cachetools
  ``TLRUCache`` (development and tests).

Single-use entries
------------------
The redirect ``state``, the request ``oauth_token`` and the PKCE verifier are
*single-use*.  They are never read with a plain ``get``; callers use

* :meth:`CredentialStore.take` – atomic get-and-delete (``GETDEL``), and
* :meth:`CredentialStore.consume` – atomic compare-and-delete that only
  removes the entry when it equals the expected value,

so two racing callbacks cannot both redeem the same entry.

Key names
---------
The constants below are a persisted-state contract shared with deployed
instances and MUST NOT change.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Callable, Final, Protocol, runtime_checkable

import redis.asyncio as aioredis
from cachetools import TLRUCache
from redis.exceptions import RedisError

from twitar.oauth.errors import StoreError
from twitar.oauth.state import states_match

_LOG = logging.getLogger("twitar.oauth.store")

# --------------------------------------------------------------------------- #
# persisted key names                                                         #
# --------------------------------------------------------------------------- #
CODE_VERIFIER: Final[str] = "tolumide_test_pkce"
OAUTH2_STATE: Final[str] = "oauth2_state"
ACCESS_TOKEN: Final[str] = "tolumide_test_access"
REFRESH_TOKEN: Final[str] = "tolumide_refresh_token"
TOKEN_TYPE: Final[str] = "tolumide_token_type"

OAUTH_TOKEN: Final[str] = "oauth_token"
OAUTH_TOKEN_SECRET: Final[str] = "oauth_token_secret"
OAUTH_VERIFIER: Final[str] = "oauth_verifier"
OAUTH1_ACCESS_TOKEN: Final[str] = "oauth1_access_token"
OAUTH1_ACCESS_TOKEN_SECRET: Final[str] = "oauth1_access_token_secret"

# compare-and-delete, executed atomically by the Redis server
_CONSUME_SCRIPT: Final[str] = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
end
return 0
"""


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class CredentialStore(Protocol):
    """Minimal persistence contract for tokens and correlation values."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def take(self, key: str) -> str | None: ...

    async def consume(self, key: str, expected: str) -> bool: ...

    async def close(self) -> None: ...


# --------------------------------------------------------------------------- #
# Redis implementation                                                        #
# --------------------------------------------------------------------------- #


class RedisCredentialStore(CredentialStore):
    """``redis.asyncio`` implementation of :class:`CredentialStore`.

    Every Redis failure is re-raised as :class:`~twitar.oauth.errors.StoreError`
    so callers handle one error type regardless of backend.
    """

    def __init__(self, client: aioredis.Redis) -> None:
        self.redis = client

    @classmethod
    def from_url(cls, url: str) -> RedisCredentialStore:
        client = aioredis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        return cls(client)

    async def get(self, key: str) -> str | None:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            raise StoreError(f"Failed to read {key!r} from Redis: {e}") from e

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        try:
            await self.redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            raise StoreError(f"Failed to write {key!r} to Redis: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(key)
        except RedisError as e:
            raise StoreError(f"Failed to delete {key!r} from Redis: {e}") from e

    async def take(self, key: str) -> str | None:
        try:
            return await self.redis.getdel(key)
        except RedisError as e:
            raise StoreError(f"Failed to take {key!r} from Redis: {e}") from e

    async def consume(self, key: str, expected: str) -> bool:
        try:
            removed = await self.redis.eval(_CONSUME_SCRIPT, 1, key, expected)
        except RedisError as e:
            raise StoreError(f"Failed to consume {key!r} from Redis: {e}") from e
        return bool(removed)

    async def close(self) -> None:
        await self.redis.aclose()
        _LOG.debug("Redis credential store connection closed")


# --------------------------------------------------------------------------- #
# In-memory implementation                                                    #
# --------------------------------------------------------------------------- #


def _ttu(_key: str, value: tuple[str, int | None], now: float) -> float:
    ttl = value[1]
    return math.inf if ttl is None else now + ttl


class MemoryCredentialStore(CredentialStore):
    """Process-local store; entries may carry an individual TTL."""

    def __init__(self, maxsize: int = 1024, *, timer: Callable[[], float] = time.monotonic) -> None:
        self._cache: TLRUCache = TLRUCache(maxsize=maxsize, ttu=_ttu, timer=timer)
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> str | None:
        entry = self._cache.get(key)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        async with self._lock:
            self._cache[key] = (value, ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._cache.pop(key, None)

    async def take(self, key: str) -> str | None:
        async with self._lock:
            entry = self._cache.pop(key, None)
        return entry[0] if entry is not None else None

    async def consume(self, key: str, expected: str) -> bool:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None or not states_match(expected, entry[0]):
                return False
            del self._cache[key]
            return True

    async def close(self) -> None:
        self._cache.clear()
