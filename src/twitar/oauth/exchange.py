"""OAuth 2.0 authorization-code + PKCE exchange.

State machine
-------------
::

    AWAITING_CALLBACK ─▶ STATE_VALIDATED ─▶ CODE_EXCHANGE_PENDING ─▶ GRANT_PERSISTED
            │                   │                     │
            └───────────────────┴─────────────────────┴──────▶ REJECTED

* ``AWAITING_CALLBACK → STATE_VALIDATED``: the callback carries ``code`` and
  ``state`` and the stored state is consumed by compare-and-delete.
* ``STATE_VALIDATED → CODE_EXCHANGE_PENDING``: the stored PKCE verifier is taken
  (single-use) and the token request is built.
* ``CODE_EXCHANGE_PENDING → GRANT_PERSISTED``: a 2xx body that validates as
  :class:`~twitar.oauth.models.OAuth2AccessGrant` is written to the store.

Any failure moves the machine to ``REJECTED`` and the error propagates; the
exchange is never retried here.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from twitar.oauth import store as keys
from twitar.oauth.errors import InvalidCredentialError, MalformedResponseError, TwitarError
from twitar.oauth.log_utils import get_auth_logger
from twitar.oauth.models import OAuth2AccessGrant
from twitar.oauth.provider import ProviderClient
from twitar.oauth.store import CredentialStore

if TYPE_CHECKING:  # pragma: no cover
    from twitar.config import TwitarConfig


class ExchangeState(str, enum.Enum):
    AWAITING_CALLBACK = "awaiting_callback"
    STATE_VALIDATED = "state_validated"
    CODE_EXCHANGE_PENDING = "code_exchange_pending"
    GRANT_PERSISTED = "grant_persisted"
    REJECTED = "rejected"


class PkceExchange:
    """Drive one OAuth 2.0 callback from ``state`` check to persisted grant.

    Instances are single-use: create one per callback.
    """

    def __init__(
        self,
        *,
        config: TwitarConfig,
        store: CredentialStore,
        provider: ProviderClient,
        correlation_id: str | None = None,
    ) -> None:
        self.config = config
        self.store = store
        self.provider = provider
        self.state = ExchangeState.AWAITING_CALLBACK
        self._log = get_auth_logger(
            base_logger_name="twitar.oauth.exchange",
            flow="oauth2",
            correlation_id=correlation_id,
        )

    async def run(self, query: Mapping[str, str]) -> OAuth2AccessGrant:
        """Validate *query*, exchange its code and persist the grant."""
        if self.state is not ExchangeState.AWAITING_CALLBACK:
            raise RuntimeError(f"exchange already finished in state {self.state.value}")
        try:
            code = await self.validate_state(query)
            request = await self.build_token_request(code)
            grant = await self.exchange(request)
            await self.persist(grant)
        except TwitarError as exc:
            self.state = ExchangeState.REJECTED
            self._log.warning("OAuth 2.0 exchange rejected: %s", exc.code)
            raise
        return grant

    # ---------------- transitions ---------------------------------------- #
    async def validate_state(self, query: Mapping[str, str]) -> str:
        """Consume the stored ``state``; return the authorization ``code``."""
        code = query.get("code")
        state = query.get("state")
        if not code or not state:
            raise InvalidCredentialError("Callback is missing code or state")

        if not await self.store.consume(keys.OAUTH2_STATE, state):
            raise InvalidCredentialError(
                "The state value obtained from the redirect uri does not match the local one"
            )
        self.state = ExchangeState.STATE_VALIDATED
        return code

    async def build_token_request(self, code: str) -> httpx.Request:
        """Take the stored verifier and build the token-endpoint request."""
        verifier = await self.store.take(keys.CODE_VERIFIER)
        if not verifier:
            raise InvalidCredentialError("No PKCE code verifier is stored for this flow")

        body = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.oauth2_callback,
            "code_verifier": verifier,
        }
        self.state = ExchangeState.CODE_EXCHANGE_PENDING
        return httpx.Request(
            "POST",
            self.config.oauth2_token_url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def exchange(self, request: httpx.Request) -> OAuth2AccessGrant:
        """POST the token request with Basic auth and parse the grant."""
        auth = httpx.BasicAuth(
            self.config.client_id,
            self.config.client_secret.get_secret_value(),
        )
        response = await self.provider.send(request, auth=auth)
        try:
            return OAuth2AccessGrant.model_validate(response.json())
        except ValueError as e:
            # ValidationError subclasses ValueError, as does JSONDecodeError
            reason = "shape mismatch" if isinstance(e, ValidationError) else "invalid JSON"
            raise MalformedResponseError(f"Token endpoint body rejected: {reason}") from None

    async def persist(self, grant: OAuth2AccessGrant) -> None:
        await self.store.set(keys.ACCESS_TOKEN, grant.access_token)
        await self.store.set(keys.REFRESH_TOKEN, grant.refresh_token)
        await self.store.set(keys.TOKEN_TYPE, grant.token_type)
        self.state = ExchangeState.GRANT_PERSISTED
        self._log.info("Persisted OAuth 2.0 grant (expires in %ss)", grant.expires_in)
