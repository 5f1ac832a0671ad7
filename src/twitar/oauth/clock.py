"""Injectable sources for ``oauth_timestamp`` and ``oauth_nonce``.

Signing code takes these as parameters instead of reading the wall clock or
generating randomness inline; tests substitute fixed values to reproduce
Twitter's published signing example.

>>> from twitar.oauth.clock import default_clock, default_nonce
>>> len(default_nonce())
32
"""

from __future__ import annotations

import time
import uuid
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> float: ...


class NonceFactory(Protocol):
    def __call__(self) -> str: ...


def default_clock() -> float:
    """Seconds since the epoch, from ``time.time()``."""
    return time.time()


def default_nonce() -> str:
    """32 lowercase hex characters from a UUID4."""
    return uuid.uuid4().hex
