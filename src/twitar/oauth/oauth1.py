"""OAuth 1.0a signature engine (HMAC-SHA1).

Implements RFC 5849 §3.4 as documented by Twitter:
https://developer.twitter.com/en/docs/authentication/oauth-1-0a/creating-a-signature

Steps
-----
1. Merge the ``oauth_*`` protocol parameters with the caller's request
   parameters (protocol values win on name collisions).
2. Build the canonical parameter string (:func:`twitar.oauth.codec.canonicalize`).
3. Build the signature base string ``METHOD&encode(url)&encode(params)``.
4. Build the signing key ``encode(consumer_secret)&encode(token_secret)``.
5. ``oauth_signature = base64(HMAC_SHA1(key, base_string))``.

Secrets
-------
The base string and signing key only ever exist as locals of
:func:`_compute_signature`; neither is stored on any object, returned, or
logged.  Consumer / token secrets travel as :class:`pydantic.SecretStr` and are
only exposed inside that function.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Final
from urllib.parse import urlsplit, urlunsplit

import httpx

from twitar.oauth.clock import Clock, NonceFactory, default_clock, default_nonce
from twitar.oauth.codec import canonicalize, decode, encode
from twitar.oauth.hmac_signer import sign_b64
from twitar.oauth.models import Callback, KeyPair, OAuthAddOn, Verifier

_LOG = logging.getLogger("twitar.oauth.oauth1")

SIGNATURE_METHOD: Final[str] = "HMAC-SHA1"
OAUTH_VERSION: Final[str] = "1.0"
_DEFAULT_PORTS: Final[dict[str, str]] = {"http": "80", "https": "443"}


@dataclass(frozen=True, slots=True)
class SignatureInputs:
    """OAuth material needed to sign one request."""

    consumer: KeyPair
    nonce: str
    timestamp: int
    token: KeyPair | None = None
    addon: OAuthAddOn = None

    @classmethod
    def fresh(
        cls,
        consumer: KeyPair,
        token: KeyPair | None = None,
        addon: OAuthAddOn = None,
        *,
        clock: Clock = default_clock,
        nonce_factory: NonceFactory = default_nonce,
    ) -> SignatureInputs:
        """Return inputs with a new nonce and the current timestamp.

        Call this once per dispatch (including retries) so that no two sent
        requests share a nonce/timestamp pair.
        """
        return cls(
            consumer=consumer,
            nonce=nonce_factory(),
            timestamp=int(clock()),
            token=token,
            addon=addon,
        )

    def protocol_params(self) -> dict[str, str]:
        """Return every ``oauth_*`` parameter except the signature."""
        params = {
            "oauth_consumer_key": self.consumer.key,
            "oauth_nonce": self.nonce,
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": str(self.timestamp),
            "oauth_version": OAUTH_VERSION,
        }
        if self.token is not None and self.token.key:
            params["oauth_token"] = self.token.key
        if isinstance(self.addon, Callback):
            params["oauth_callback"] = self.addon.url
        elif isinstance(self.addon, Verifier):
            params["oauth_verifier"] = self.addon.value
        return params


@dataclass(frozen=True, slots=True)
class SignedHeader:
    """Signed ``oauth_*`` parameters, addressed by name."""

    consumer_key: str
    nonce: str
    signature: str = field(repr=False)
    timestamp: str
    signature_method: str = SIGNATURE_METHOD
    version: str = OAUTH_VERSION
    token: str | None = field(default=None, repr=False)
    callback: str | None = None
    verifier: str | None = field(default=None, repr=False)

    def params(self) -> list[tuple[str, str]]:
        """Return ``(name, value)`` pairs in the documented emission order.

        ``oauth_consumer_key, oauth_nonce, oauth_signature,
        oauth_signature_method, oauth_timestamp, oauth_version`` followed by
        ``oauth_token``, ``oauth_callback`` and ``oauth_verifier`` when set.
        """
        pairs = [
            ("oauth_consumer_key", self.consumer_key),
            ("oauth_nonce", self.nonce),
            ("oauth_signature", self.signature),
            ("oauth_signature_method", self.signature_method),
            ("oauth_timestamp", self.timestamp),
            ("oauth_version", self.version),
        ]
        if self.token is not None:
            pairs.append(("oauth_token", self.token))
        if self.callback is not None:
            pairs.append(("oauth_callback", self.callback))
        if self.verifier is not None:
            pairs.append(("oauth_verifier", self.verifier))
        return pairs

    def to_header(self) -> str:
        """Render the ``Authorization`` header value (``OAuth k="v", ...``)."""
        return "OAuth " + ", ".join(f'{encode(k)}="{encode(v)}"' for k, v in self.params())


# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #


def _query_pairs(query: str) -> list[tuple[str, str]]:
    pairs = []
    for segment in query.split("&"):
        if not segment:
            continue
        name, _, value = segment.partition("=")
        pairs.append((decode(name), decode(value)))
    return pairs


def normalize_url(url: str) -> tuple[str, list[tuple[str, str]]]:
    """Split *url* into its base-string URL and its decoded query pairs.

    The returned URL has a lowercased scheme and host, no default port
    (``:80`` for http, ``:443`` for https) and neither query nor fragment.
    Query pairs are percent-decoded exactly once here (a literal ``+`` stays
    a plus) because canonicalization encodes them again.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    host, sep, port = netloc.rpartition(":")
    if sep and port == _DEFAULT_PORTS.get(scheme):
        netloc = host
    base = urlunsplit((scheme, netloc, parts.path, "", ""))
    return base, _query_pairs(parts.query)


def signature_base_string(method: str, url: str, param_string: str) -> str:
    """Return ``METHOD&encode(url)&encode(param_string)``."""
    return f"{method.upper()}&{encode(url)}&{encode(param_string)}"


def _compute_signature(
    method: str,
    url: str,
    param_string: str,
    consumer: KeyPair,
    token: KeyPair | None,
) -> str:
    token_secret = token.value.get_secret_value() if token is not None else ""
    signing_key = f"{encode(consumer.value.get_secret_value())}&{encode(token_secret)}"
    base_string = signature_base_string(method, url, param_string)
    return sign_b64(signing_key.encode("utf-8"), base_string.encode("utf-8"))


# --------------------------------------------------------------------------- #
# public API                                                                  #
# --------------------------------------------------------------------------- #


def sign_request(
    method: str,
    base_url: str,
    request_params: Mapping[str, str] | None,
    oauth: SignatureInputs,
) -> SignedHeader:
    """Sign one request and return its ``oauth_*`` parameters.

    Parameters
    ----------
    method:
        HTTP method (case-insensitive).
    base_url:
        Target URL.  Any query component is folded into the parameter set.
    request_params:
        Additional query / form-body parameters covered by the signature.
    oauth:
        Consumer/token credentials, nonce, timestamp and optional add-on.
    """
    url, query_pairs = normalize_url(base_url)

    merged: dict[str, str] = dict(query_pairs)
    merged.update(request_params or {})
    # protocol parameters take precedence over caller-supplied names
    merged.update(oauth.protocol_params())

    param_string = canonicalize(merged)
    signature = _compute_signature(method, url, param_string, oauth.consumer, oauth.token)

    _LOG.debug(
        "Signed %s %s with %d parameters (consumer=%s****)",
        method.upper(),
        url,
        len(merged),
        oauth.consumer.key[:4],
    )
    return SignedHeader(
        consumer_key=oauth.consumer.key,
        nonce=oauth.nonce,
        signature=signature,
        timestamp=str(oauth.timestamp),
        token=oauth.token.key if oauth.token is not None and oauth.token.key else None,
        callback=oauth.addon.url if isinstance(oauth.addon, Callback) else None,
        verifier=oauth.addon.value if isinstance(oauth.addon, Verifier) else None,
    )


def build_signed_request(
    method: str,
    url: str,
    oauth: SignatureInputs,
    *,
    params: Mapping[str, str] | None = None,
    data: Mapping[str, str] | None = None,
) -> httpx.Request:
    """Return an :class:`httpx.Request` carrying an ``Authorization: OAuth`` header.

    Query *params* and form-encoded *data* are both covered by the signature.
    """
    signed = {**(params or {}), **(data or {})}
    header = sign_request(method, url, signed, oauth)
    return httpx.Request(
        method.upper(),
        url,
        params=params,
        data=dict(data) if data else None,
        headers={"Authorization": header.to_header()},
    )
