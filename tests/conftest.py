"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest
from pydantic import SecretStr

from twitar.config import TwitarConfig
from twitar.oauth.provider import ProviderClient
from twitar.oauth.store import MemoryCredentialStore

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture()
def config() -> TwitarConfig:
    """Fully configured settings pointing at fake endpoints."""
    return TwitarConfig(
        client_id="client-123",
        client_secret=SecretStr("client-secret"),
        oauth2_callback="https://app.example.test/twitter/oauth",
        api_key="consumer-key",
        api_key_secret=SecretStr("consumer-secret"),
        oauth1_callback="https://app.example.test/twitter/oauth",
        store_backend="memory",
    )


@pytest.fixture()
def store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


class RecordingStore(MemoryCredentialStore):
    """MemoryCredentialStore that records every write."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[tuple[str, str]] = []

    async def set(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        self.writes.append((key, value))
        await super().set(key, value, ttl_seconds=ttl_seconds)


@pytest.fixture()
def recording_store() -> RecordingStore:
    return RecordingStore()


class FakeProvider:
    """``httpx.MockTransport`` handler that records requests and replays responses."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Handler] = {}

    def on(self, path: str, handler: Handler) -> None:
        self.routes[path] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.path)
        if handler is None:
            return httpx.Response(404, json={"errors": [{"code": 34, "message": "not found"}]})
        return handler(request)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture()
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture()
def provider(fake_provider: FakeProvider) -> ProviderClient:
    return ProviderClient(httpx.AsyncClient(transport=httpx.MockTransport(fake_provider)))
