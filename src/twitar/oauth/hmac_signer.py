"""HMAC-SHA1 primitive used by the OAuth 1.0a signature engine."""

from __future__ import annotations

import base64
import hmac
from hashlib import sha1


def sign(key: bytes, message: bytes) -> bytes:
    """Return the raw 20-byte HMAC-SHA1 of *message* under *key*."""
    return hmac.new(key, msg=message, digestmod=sha1).digest()


def sign_b64(key: bytes, message: bytes) -> str:
    """Return the base64-encoded HMAC-SHA1 (the ``oauth_signature`` value)."""
    return base64.b64encode(sign(key, message)).decode("ascii")
