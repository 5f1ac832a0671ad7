"""TwitarAuthService – orchestration of both Twitter OAuth flows.

Handlers in :mod:`twitar.servers.auth` call the façade methods below:

* :meth:`TwitarAuthService.build_oauth2_authorize_url` /
  :meth:`TwitarAuthService.build_oauth1_authorize_url` start a flow and store
  the single-use correlation values (``state`` + PKCE verifier, or the request
  ``oauth_token`` + secret).
* :meth:`TwitarAuthService.handle_redirect` classifies the provider callback
  and completes the matching flow.

Side effects are gated behind validation: nothing is written to the store for
a callback before its ``state`` / ``oauth_token`` check has passed.

**No secrets are logged** (tokens, verifiers, state values, secrets).
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from urllib.parse import urlencode

from twitar.config import Oauth1MismatchPolicy, TwitarConfig
from twitar.oauth import store as keys
from twitar.oauth.errors import InvalidCredentialError, MalformedResponseError, TwitarError
from twitar.oauth.exchange import PkceExchange
from twitar.oauth.log_utils import get_auth_logger
from twitar.oauth.models import Callback, KeyPair, RedirectOutcome, Verifier
from twitar.oauth.pkce import CHALLENGE_METHOD, code_challenge_s256, generate_code_verifier
from twitar.oauth.provider import ProviderClient, parse_form_body
from twitar.oauth.state import generate_state
from twitar.oauth.store import CredentialStore
from twitar.utils.logging import mask_sensitive

_LOG = logging.getLogger("twitar.oauth.service")

ACCESS_GRANTED = "Access Granted"
BAD_REQUEST = "Bad request"


def _has_all(query: Mapping[str, str], *names: str) -> bool:
    return all(query.get(name) for name in names)


class TwitarAuthService:
    """Application service orchestrating the OAuth web flows."""

    def __init__(
        self,
        *,
        config: TwitarConfig,
        store: CredentialStore,
        provider: ProviderClient,
    ) -> None:
        self.config = config
        self.store = store
        self.provider = provider

    # ------------------------------------------------------------------ #
    # Flow kick-off                                                      #
    # ------------------------------------------------------------------ #
    async def build_oauth2_authorize_url(self) -> str:
        """Store a fresh PKCE verifier and ``state``; return the authorize URL."""
        verifier = generate_code_verifier()
        state = generate_state(self.config.state)
        ttl = self.config.store_ttl_seconds

        await self.store.set(keys.CODE_VERIFIER, verifier, ttl_seconds=ttl)
        await self.store.set(keys.OAUTH2_STATE, state, ttl_seconds=ttl)

        query = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.oauth2_callback,
            "scope": self.config.oauth2_scope,
            "state": state,
            "code_challenge": code_challenge_s256(verifier),
            "code_challenge_method": CHALLENGE_METHOD,
        }
        _LOG.debug("Built OAuth 2.0 authorize URL (scope=%s)", self.config.oauth2_scope)
        return f"{self.config.oauth2_authorize_url}?{urlencode(query)}"

    async def build_oauth1_authorize_url(self) -> str:
        """Obtain a request token and return the user authorization URL."""
        response = await self.provider.send_signed(
            "POST",
            self.config.oauth1_request_token_url,
            consumer=self.config.consumer,
            addon=Callback(self.config.oauth1_callback),
        )
        values = parse_form_body(response, "oauth_token", "oauth_token_secret")
        if values.get("oauth_callback_confirmed") != "true":
            raise MalformedResponseError("Provider did not confirm the oauth_callback")

        ttl = self.config.store_ttl_seconds
        await self.store.set(keys.OAUTH_TOKEN, values["oauth_token"], ttl_seconds=ttl)
        await self.store.set(keys.OAUTH_TOKEN_SECRET, values["oauth_token_secret"], ttl_seconds=ttl)

        _LOG.debug("Obtained OAuth 1.0a request token")
        return f"{self.config.oauth1_authorize_url}?{urlencode({'oauth_token': values['oauth_token']})}"

    # ------------------------------------------------------------------ #
    # Redirect callback                                                  #
    # ------------------------------------------------------------------ #
    async def handle_redirect(
        self,
        query: Mapping[str, str],
        *,
        correlation_id: str | None = None,
    ) -> RedirectOutcome:
        """Classify the callback in *query* and complete the matching flow.

        1. ``oauth_token`` + ``oauth_verifier`` → OAuth 1.0a.  An unknown token
           falls through to step 2 under ``FALLBACK`` and is rejected under
           ``REJECT``.
        2. ``code`` + ``state`` → OAuth 2.0 PKCE exchange.
        3. Anything else → 400, nothing persisted.
        """
        log = get_auth_logger(
            base_logger_name="twitar.oauth.service", correlation_id=correlation_id
        )
        try:
            if _has_all(query, "oauth_token", "oauth_verifier"):
                if await self.complete_oauth1(query, correlation_id=correlation_id):
                    return RedirectOutcome(200, ACCESS_GRANTED, flow="oauth1")
                if self.config.oauth1_mismatch_policy is Oauth1MismatchPolicy.REJECT:
                    log.info("Rejected OAuth 1.0a callback with unknown oauth_token")
                    return RedirectOutcome(400, BAD_REQUEST, flow="oauth1")
                log.info(
                    "Unknown oauth_token %s; retrying callback as OAuth 2.0",
                    mask_sensitive(query["oauth_token"], 4),
                )

            if _has_all(query, "code", "state"):
                exchange = PkceExchange(
                    config=self.config,
                    store=self.store,
                    provider=self.provider,
                    correlation_id=correlation_id,
                )
                await exchange.run(query)
                return RedirectOutcome(200, ACCESS_GRANTED, flow="oauth2")
        except TwitarError as exc:
            log.warning("Redirect handling failed: %s", exc.code)
            return RedirectOutcome(400, BAD_REQUEST)

        log.info("Callback matched neither OAuth 1.0a nor OAuth 2.0 shape")
        return RedirectOutcome(400, BAD_REQUEST)

    async def complete_oauth1(
        self,
        query: Mapping[str, str],
        *,
        correlation_id: str | None = None,
    ) -> bool:
        """Exchange the request token + verifier for an access token.

        Returns ``False`` (and changes nothing) when the callback's
        ``oauth_token`` is not the one stored for this flow.
        """
        log = get_auth_logger(
            base_logger_name="twitar.oauth.service", flow="oauth1", correlation_id=correlation_id
        )
        oauth_token = query["oauth_token"]
        verifier = query["oauth_verifier"]

        if not await self.store.consume(keys.OAUTH_TOKEN, oauth_token):
            return False

        token_secret = await self.store.take(keys.OAUTH_TOKEN_SECRET)
        if token_secret is None:
            raise InvalidCredentialError("No request token secret is stored for this flow")
        await self.store.set(keys.OAUTH_VERIFIER, verifier, ttl_seconds=self.config.store_ttl_seconds)

        response = await self.provider.send_signed(
            "POST",
            self.config.oauth1_access_token_url,
            consumer=self.config.consumer,
            token=KeyPair.new(oauth_token, token_secret),
            addon=Verifier(verifier),
        )
        values = parse_form_body(response, "oauth_token", "oauth_token_secret")
        await self.store.set(keys.OAUTH1_ACCESS_TOKEN, values["oauth_token"])
        await self.store.set(keys.OAUTH1_ACCESS_TOKEN_SECRET, values["oauth_token_secret"])

        log.info("Persisted OAuth 1.0a access token (screen_name=%s)", values.get("screen_name", "-"))
        return True
