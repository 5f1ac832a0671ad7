"""
Unit tests for the OAuth 2.0 PKCE exchange state machine.

Coverage:
* State mismatch rejects before any token-endpoint call
* Token request body carries exactly one code and one code_verifier
* Basic auth on the token request
* Malformed and non-2xx token responses are rejected
"""

from __future__ import annotations

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from twitar.oauth.errors import (
    InvalidCredentialError,
    MalformedResponseError,
    ProviderError,
)
from twitar.oauth.exchange import ExchangeState, PkceExchange
from twitar.oauth.store import ACCESS_TOKEN, CODE_VERIFIER, OAUTH2_STATE, REFRESH_TOKEN, TOKEN_TYPE

pytestmark = pytest.mark.anyio

TOKEN_PATH = "/2/oauth2/token"
GRANT = {
    "token_type": "bearer",
    "expires_in": 7200,
    "access_token": "AT1",
    "scope": "tweet.read",
    "refresh_token": "RT1",
}


@pytest.fixture()
def exchange(config, store, provider) -> PkceExchange:
    return PkceExchange(config=config, store=store, provider=provider)


async def _prime(store, state: str = "xyz", verifier: str = "pkce123") -> None:
    await store.set(OAUTH2_STATE, state)
    await store.set(CODE_VERIFIER, verifier)


async def test_happy_path_persists_grant(exchange, store, fake_provider) -> None:
    await _prime(store)
    fake_provider.on(TOKEN_PATH, lambda r: httpx.Response(200, json=GRANT))

    grant = await exchange.run({"code": "abc123", "state": "xyz"})

    assert grant.access_token == "AT1"
    assert exchange.state is ExchangeState.GRANT_PERSISTED
    assert await store.get(ACCESS_TOKEN) == "AT1"
    assert await store.get(REFRESH_TOKEN) == "RT1"
    assert await store.get(TOKEN_TYPE) == "bearer"
    # single-use correlation values are gone
    assert await store.get(OAUTH2_STATE) is None
    assert await store.get(CODE_VERIFIER) is None


async def test_token_request_body_and_basic_auth(exchange, config, store, fake_provider) -> None:
    await _prime(store)
    fake_provider.on(TOKEN_PATH, lambda r: httpx.Response(200, json=GRANT))

    await exchange.run({"code": "abc123", "state": "xyz"})

    (request,) = fake_provider.calls_to(TOKEN_PATH)
    assert request.method == "POST"
    body = parse_qs(request.content.decode())
    assert body["code_verifier"] == ["pkce123"]
    assert body["code"] == ["abc123"]
    assert body["grant_type"] == ["authorization_code"]
    assert body["client_id"] == [config.client_id]
    assert body["redirect_uri"] == [config.oauth2_callback]

    expected = base64.b64encode(b"client-123:client-secret").decode("ascii")
    assert request.headers["Authorization"] == f"Basic {expected}"


async def test_state_mismatch_makes_no_token_call(exchange, store, fake_provider) -> None:
    await _prime(store, state="xyz")

    with pytest.raises(InvalidCredentialError):
        await exchange.run({"code": "abc123", "state": "forged"})

    assert exchange.state is ExchangeState.REJECTED
    assert fake_provider.calls_to(TOKEN_PATH) == []
    assert await store.get(OAUTH2_STATE) == "xyz"
    assert await store.get(ACCESS_TOKEN) is None


async def test_state_is_single_use(config, store, provider, fake_provider) -> None:
    await _prime(store)
    fake_provider.on(TOKEN_PATH, lambda r: httpx.Response(200, json=GRANT))
    await PkceExchange(config=config, store=store, provider=provider).run(
        {"code": "abc123", "state": "xyz"}
    )

    with pytest.raises(InvalidCredentialError):
        await PkceExchange(config=config, store=store, provider=provider).run(
            {"code": "abc123", "state": "xyz"}
        )
    assert len(fake_provider.calls_to(TOKEN_PATH)) == 1


@pytest.mark.parametrize("query", [{"code": "abc123"}, {"state": "xyz"}, {"code": "", "state": "xyz"}])
async def test_missing_code_or_state(exchange, store, query) -> None:
    await _prime(store)
    with pytest.raises(InvalidCredentialError):
        await exchange.run(query)


async def test_missing_verifier_is_rejected(exchange, store, fake_provider) -> None:
    await store.set(OAUTH2_STATE, "xyz")
    with pytest.raises(InvalidCredentialError):
        await exchange.run({"code": "abc123", "state": "xyz"})
    assert fake_provider.calls_to(TOKEN_PATH) == []


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"access_token": "AT1"}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_malformed_grant_is_rejected(exchange, store, fake_provider, response) -> None:
    await _prime(store)
    fake_provider.on(TOKEN_PATH, lambda r: response)

    with pytest.raises(MalformedResponseError):
        await exchange.run({"code": "abc123", "state": "xyz"})
    assert exchange.state is ExchangeState.REJECTED
    assert await store.get(ACCESS_TOKEN) is None


async def test_non_2xx_is_rejected(exchange, store, fake_provider) -> None:
    await _prime(store)
    fake_provider.on(
        TOKEN_PATH,
        lambda r: httpx.Response(400, json={"error": "invalid_request", "error_description": "bad code"}),
    )

    with pytest.raises(ProviderError):
        await exchange.run({"code": "abc123", "state": "xyz"})
    assert exchange.state is ExchangeState.REJECTED
    assert await store.get(ACCESS_TOKEN) is None


async def test_exchange_instance_is_single_use(exchange, store, fake_provider) -> None:
    await _prime(store)
    fake_provider.on(TOKEN_PATH, lambda r: httpx.Response(200, json=GRANT))
    await exchange.run({"code": "abc123", "state": "xyz"})
    with pytest.raises(RuntimeError):
        await exchange.run({"code": "abc123", "state": "xyz"})
