"""PKCE for the Twitter OAuth 2.0 authorization-code flow.

Lifecycle of one verifier:

* minted by :meth:`TwitarAuthService.build_oauth2_authorize_url`, whose
  authorize URL carries only the derived ``code_challenge`` and
  ``code_challenge_method=S256``;
* stored under :data:`twitar.oauth.store.CODE_VERIFIER` with the
  ``TWITAR_STORE_TTL`` lifetime;
* read back exactly once with ``store.take`` (get-and-delete) when the
  callback's ``code`` is exchanged, so a replayed callback finds nothing.

Twitter also accepts ``plain`` challenges; they are never sent from here.
Verifiers and challenges are never logged.
"""

from __future__ import annotations

import base64
import secrets
from hashlib import sha256
from typing import Final

CHALLENGE_METHOD: Final[str] = "S256"

# RFC 7636 §4.1
_MIN_LEN: Final[int] = 43
_MAX_LEN: Final[int] = 128


def generate_code_verifier(length: int = 64) -> str:
    """Return a random verifier of *length* characters.

    ``token_urlsafe`` draws from ``A-Z a-z 0-9 - _``, a subset of the
    characters RFC 7636 allows, and yields at least *length* characters for
    *length* random bytes.
    """
    if length < _MIN_LEN or length > _MAX_LEN:
        raise ValueError(f"code verifier length must be {_MIN_LEN}-{_MAX_LEN} characters")
    return secrets.token_urlsafe(length)[:length]


def code_challenge_s256(verifier: str) -> str:
    hashed = sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(hashed).decode("ascii").rstrip("=")
