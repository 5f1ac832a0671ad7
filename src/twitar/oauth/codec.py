"""RFC 3986 percent-encoding and canonical parameter strings.

OAuth 1.0a (RFC 5849 §3.6) requires *strict* RFC 3986 encoding: only the
unreserved set ``A-Z a-z 0-9 - . _ ~`` survives untouched, everything else is
UTF-8 encoded and written as ``%XX`` with uppercase hex.  Generic URL encoders
(``urlencode``, ``quote_plus``) turn spaces into ``+`` and leave ``!*'()``
alone, which silently breaks signatures.

The canonical parameter string sorts pairs by *encoded* key, then by encoded
value.  The ordering is part of the protocol contract, so it is always an
explicit sort and never depends on mapping iteration order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from urllib.parse import quote, unquote

# ``quote`` always keeps ``A-Za-z0-9_.-~``; nothing else may be added.
_SAFE = ""


def encode(value: str) -> str:
    """Percent-encode *value* per RFC 3986 (uppercase hex, UTF-8)."""
    return quote(value, safe=_SAFE)


def decode(value: str) -> str:
    """Apply exactly one percent-decoding pass (``+`` stays a literal plus)."""
    return unquote(value)


def _pairs(params: Mapping[str, str] | Iterable[tuple[str, str]]) -> Iterable[tuple[str, str]]:
    if isinstance(params, Mapping):
        return params.items()
    return params


def canonicalize(params: Mapping[str, str] | Iterable[tuple[str, str]]) -> str:
    """Return the canonical ``k1=v1&k2=v2`` string for *params*.

    Keys and values are encoded first; pairs are then sorted byte-wise by
    encoded key and, for duplicate keys, by encoded value.
    """
    encoded = sorted((encode(k), encode(v)) for k, v in _pairs(params))
    return "&".join(f"{k}={v}" for k, v in encoded)
