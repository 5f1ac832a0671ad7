"""Outbound HTTP to the Twitter API with response interception.

Every call made by the OAuth core goes through :class:`ProviderClient.send`,
which turns transport failures and unsuccessful responses into the error
taxonomy of :mod:`twitar.oauth.errors`.  Classification order matters:

1. ``httpx`` request failures (transport, timeout, redirects) → :class:`TransportError`;
   an undecodable body (bad ``Content-Encoding``) → :class:`MalformedResponseError`
2. rate limiting (HTTP 429 or provider error code 88) → :class:`RateLimitedError`
   carrying the ``x-rate-limit-reset`` epoch so callers can back off
3. structured error bodies (``{"errors": [...]}`` or ``{"error": ...}``)
   → :class:`ProviderError`
4. any other non-2xx → :class:`BadStatusError`

Request and response bodies are never logged: token endpoints echo secrets.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Final
from urllib.parse import parse_qsl

import httpx

from twitar.oauth.errors import (
    BadStatusError,
    MalformedResponseError,
    ProviderError,
    RateLimitedError,
    TransportError,
)
from twitar.oauth.models import KeyPair, OAuthAddOn
from twitar.oauth.oauth1 import SignatureInputs, build_signed_request

_LOG = logging.getLogger("twitar.oauth.provider")

RATE_LIMIT_CODE: Final[int] = 88
RATE_LIMIT_RESET_HEADER: Final[str] = "x-rate-limit-reset"


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _first_error(body: Any) -> tuple[str | None, str | None]:
    """Return ``(code, message)`` of the first error in a provider body."""
    if not isinstance(body, dict):
        return None, None
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        first = errors[0]
        code = first.get("code")
        message = first.get("message") or first.get("detail") or first.get("title")
        return (str(code) if code is not None else None), message
    if "error" in body:
        return str(body["error"]), body.get("error_description") or body.get("detail")
    return None, None


def _reset_at(response: httpx.Response) -> int | None:
    raw = response.headers.get(RATE_LIMIT_RESET_HEADER)
    if raw and raw.strip().isdigit():
        return int(raw)
    return None


def raise_for_provider_status(response: httpx.Response) -> None:
    """Raise the matching :class:`~twitar.oauth.errors.TwitarError` for *response*."""
    if response.is_success:
        return

    body = _json_or_none(response)
    code, message = _first_error(body)

    if response.status_code == 429 or code == str(RATE_LIMIT_CODE):
        reset_at = _reset_at(response)
        _LOG.warning("Rate limited by provider (reset_at=%s)", reset_at)
        raise RateLimitedError(message or "Rate limit exceeded", reset_at=reset_at)

    if code is not None or message is not None:
        _LOG.warning("Provider error status=%s code=%s", response.status_code, code)
        raise ProviderError(
            message or "Provider returned an error",
            status_code=response.status_code,
            provider_code=code,
        )

    _LOG.warning("Provider returned unexpected status=%s", response.status_code)
    raise BadStatusError(response.status_code)


def parse_form_body(response: httpx.Response, *required: str) -> dict[str, str]:
    """Parse an ``application/x-www-form-urlencoded`` body (1.0a token endpoints)."""
    values = dict(parse_qsl(response.text, keep_blank_values=True))
    missing = [name for name in required if not values.get(name)]
    if missing:
        raise MalformedResponseError(f"Response is missing {', '.join(missing)}")
    return values


class ProviderClient:
    """Thin wrapper around a shared :class:`httpx.AsyncClient`."""

    def __init__(self, http: httpx.AsyncClient, *, timeout: float = 10.0) -> None:
        self.http = http
        self.timeout = timeout

    async def send(
        self,
        request: httpx.Request,
        *,
        auth: httpx.Auth | None = None,
    ) -> httpx.Response:
        """Dispatch *request* and return the successful response."""
        request.extensions["timeout"] = httpx.Timeout(self.timeout).as_dict()
        try:
            response = await self.http.send(request, auth=auth)
        except httpx.TimeoutException as e:
            raise TransportError(f"Request to {request.url.host} timed out") from e
        except httpx.DecodingError as e:
            raise MalformedResponseError(f"Response from {request.url.host} could not be decoded") from e
        except httpx.RequestError as e:
            # TransportError, TooManyRedirects, ...
            raise TransportError(f"Request to {request.url.host} failed: {e}") from e

        _LOG.debug(
            "%s %s%s -> %s",
            request.method,
            request.url.host,
            request.url.path,
            response.status_code,
        )
        raise_for_provider_status(response)
        return response

    async def send_signed(
        self,
        method: str,
        url: str,
        *,
        consumer: KeyPair,
        token: KeyPair | None = None,
        addon: OAuthAddOn = None,
        params: Mapping[str, str] | None = None,
        data: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Sign with a fresh nonce/timestamp, then dispatch."""
        oauth = SignatureInputs.fresh(consumer, token, addon)
        request = build_signed_request(method, url, oauth, params=params, data=data)
        return await self.send(request)

    async def aclose(self) -> None:
        await self.http.aclose()
