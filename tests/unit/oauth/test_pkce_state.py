"""
Unit tests for PKCE helpers and anti-forgery state helpers.

These tests are CI-safe (no network), cover:
* Code-verifier / S256 challenge generation
* State generation (configured vs. random)
* Constant-time state comparison
"""

from __future__ import annotations

import base64
import re
from hashlib import sha256

import pytest

from twitar.oauth.pkce import code_challenge_s256, generate_code_verifier
from twitar.oauth.state import generate_state, states_match

ALLOWED_CHARS_RE = re.compile(r"^[A-Za-z0-9\-._~]+$")  # RFC-7636


# --------------------------------------------------------------------------- #
# PKCE                                                                        #
# --------------------------------------------------------------------------- #
def test_generate_code_verifier_default_length() -> None:
    verifier = generate_code_verifier()
    assert len(verifier) == 64
    assert ALLOWED_CHARS_RE.match(verifier), "Verifier contains non-RFC chars"


def test_generate_code_verifier_invalid_len() -> None:
    with pytest.raises(ValueError):
        generate_code_verifier(42)
    with pytest.raises(ValueError):
        generate_code_verifier(129)


def test_code_challenge_s256_rfc7636_appendix_b() -> None:
    verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
    assert code_challenge_s256(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


def test_code_challenge_s256_matches_reference() -> None:
    verifier = "test_verifier_1234567890"
    digest = sha256(verifier.encode("ascii")).digest()
    expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    assert code_challenge_s256(verifier) == expected


# --------------------------------------------------------------------------- #
# STATE                                                                       #
# --------------------------------------------------------------------------- #
def test_generate_state_uses_configured_value() -> None:
    assert generate_state("fixed-state") == "fixed-state"


def test_generate_state_is_random_when_unset() -> None:
    first, second = generate_state(), generate_state(None)
    assert first != second
    assert len(first) >= 32


@pytest.mark.parametrize(
    ("received", "stored", "expected"),
    [
        ("xyz", "xyz", True),
        ("xyz", "xyZ", False),
        ("", "", False),
        (None, "xyz", False),
        ("xyz", None, False),
    ],
)
def test_states_match(received, stored, expected) -> None:
    assert states_match(received, stored) is expected


@pytest.mark.parametrize("length", [43, 100, 128])
def test_generate_code_verifier_exact_length(length: int) -> None:
    verifier = generate_code_verifier(length)
    assert len(verifier) == length
    assert ALLOWED_CHARS_RE.match(verifier)
