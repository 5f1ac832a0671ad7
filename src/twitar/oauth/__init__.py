"""OAuth core package.

This namespace hosts the **HTTP-agnostic** building blocks for signing Twitter
API requests (OAuth 1.0a) and completing redirect handshakes (OAuth 1.0a and
OAuth 2.0 + PKCE).

Sub-modules
-----------
clock
    Test-friendly time and nonce sources.
codec
    RFC 3986 percent-encoding and canonical parameter strings.
hmac_signer
    HMAC-SHA1 primitive.
oauth1
    OAuth 1.0a signature engine.
pkce
    Proof-Key for Code Exchange helpers.
state
    Anti-forgery ``state`` helpers.
models
    Immutable records (key pairs, add-ons, access grants).
errors
    Exception taxonomy.
store
    Credential store interface and backends.
provider
    Outbound HTTP with error interception.
exchange
    OAuth 2.0 PKCE exchange state machine.
service
    Redirect handling and flow kick-off.
log_utils
    Structured logging helpers.

Leaf objects are re-exported here; ``exchange`` and ``service`` are imported
from their modules because they depend on :mod:`twitar.config`.
"""

from __future__ import annotations

from .clock import Clock, default_clock, default_nonce  # noqa: F401
from .codec import canonicalize, decode, encode  # noqa: F401
from .errors import (  # noqa: F401
    BadStatusError,
    InvalidCredentialError,
    MalformedResponseError,
    ProviderError,
    RateLimitedError,
    StoreError,
    TransportError,
    TwitarError,
)
from .hmac_signer import sign  # noqa: F401
from .log_utils import get_auth_logger  # noqa: F401
from .models import Callback, KeyPair, OAuth2AccessGrant, RedirectOutcome, Verifier  # noqa: F401
from .oauth1 import SignatureInputs, SignedHeader, sign_request  # noqa: F401
from .pkce import code_challenge_s256, generate_code_verifier  # noqa: F401
from .state import generate_state, states_match  # noqa: F401
from .store import CredentialStore, MemoryCredentialStore, RedisCredentialStore  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    "default_nonce",
    # codec
    "canonicalize",
    "decode",
    "encode",
    # errors
    "BadStatusError",
    "InvalidCredentialError",
    "MalformedResponseError",
    "ProviderError",
    "RateLimitedError",
    "StoreError",
    "TransportError",
    "TwitarError",
    # signing
    "sign",
    "SignatureInputs",
    "SignedHeader",
    "sign_request",
    # models
    "Callback",
    "KeyPair",
    "OAuth2AccessGrant",
    "RedirectOutcome",
    "Verifier",
    # pkce / state
    "code_challenge_s256",
    "generate_code_verifier",
    "generate_state",
    "states_match",
    # store
    "CredentialStore",
    "MemoryCredentialStore",
    "RedisCredentialStore",
    # logging helpers
    "get_auth_logger",
]
