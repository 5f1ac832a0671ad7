"""Starlette application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from twitar.config import TwitarConfig
from twitar.oauth.provider import ProviderClient
from twitar.oauth.service import TwitarAuthService
from twitar.oauth.store import CredentialStore, MemoryCredentialStore, RedisCredentialStore

from .auth import envelope, register_auth_routes
from .correlation import CorrelationIdMiddleware

logger = logging.getLogger("twitar.server.app")


async def health_check(request: Request) -> JSONResponse:
    return envelope("ok")


async def not_found(request: Request, exc: Exception) -> JSONResponse:
    return envelope("Not found", status_code=404)


def build_store(config: TwitarConfig) -> CredentialStore:
    """Return the credential store selected by ``config.store_backend``."""
    if config.store_backend == "memory":
        logger.warning("Using in-memory credential store; state is lost on restart.")
        return MemoryCredentialStore()
    return RedisCredentialStore.from_url(config.redis_url)


def create_app(
    config: TwitarConfig | None = None,
    *,
    store: CredentialStore | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Starlette:
    """Return the ASGI application wired to *config*.

    *store* and *http_client* override the configured backends (tests inject a
    :class:`MemoryCredentialStore` and an ``httpx.MockTransport`` client).
    """
    config = config or TwitarConfig.from_env()
    store = store or build_store(config)
    provider = ProviderClient(
        http_client or httpx.AsyncClient(timeout=config.http_timeout),
        timeout=config.http_timeout,
    )
    svc = TwitarAuthService(config=config, store=store, provider=provider)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        logger.info("twitar starting (store=%s)", config.store_backend)
        try:
            yield
        finally:
            await provider.aclose()
            await store.close()
            logger.info("twitar stopped")

    app = Starlette(
        middleware=[Middleware(CorrelationIdMiddleware)],
        exception_handlers={404: not_found},
        lifespan=lifespan,
    )
    app.add_route("/", health_check, methods=["GET"])
    register_auth_routes(app, svc)
    app.state.auth_service = svc
    return app
