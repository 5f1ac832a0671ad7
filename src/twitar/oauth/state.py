"""Anti-forgery ``state`` helpers for the OAuth 2.0 redirect.

A ``state`` value is generated when the authorize URL is built, written to the
credential store under :data:`twitar.oauth.store.OAUTH2_STATE`, and consumed
(compare-and-delete) when the callback arrives.  A callback whose ``state``
does not equal the stored value is rejected before any token-endpoint call.

The full state string is never logged; only a masked prefix is.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from typing import Final

_LOG = logging.getLogger("twitar.oauth.state")

_STATE_BYTES: Final[int] = 24


def generate_state(configured: str | None = None) -> str:
    """Return the ``state`` value for a new authorization request.

    A non-empty *configured* value (``TWITAR_STATE``) is used verbatim;
    otherwise a random URL-safe token is minted.
    """
    if configured:
        return configured
    state = secrets.token_urlsafe(_STATE_BYTES)
    _LOG.debug("Generated state %s****", state[:4])
    return state


def states_match(received: str | None, stored: str | None) -> bool:
    """Constant-time comparison; ``False`` when either side is missing."""
    if not received or not stored:
        return False
    return hmac.compare_digest(received.encode("utf-8"), stored.encode("utf-8"))
