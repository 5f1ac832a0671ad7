"""Exception types raised by the OAuth core.

Only lightweight, **data-carrying** exceptions live here so that the HTTP
layer can transform them into responses.  None of them ever carries a base
string, signing key, verifier or token in its message or payload.
"""

from __future__ import annotations


class TwitarError(RuntimeError):
    """Base class for every failure surfaced by the signing/exchange core."""

    code: str = "twitar_error"

    def to_payload(self) -> dict[str, str]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.code, "message": str(self)}


class InvalidCredentialError(TwitarError):
    """A callback's ``state`` / ``oauth_token`` did not match the stored value."""

    code = "invalid_credential"


class RateLimitedError(TwitarError):
    """The provider signalled quota exhaustion."""

    code = "rate_limited"

    def __init__(self, message: str, *, reset_at: int | None = None) -> None:
        super().__init__(message)
        self.reset_at = reset_at

    def to_payload(self) -> dict[str, str]:
        payload = super().to_payload()
        if self.reset_at is not None:
            payload["reset_at"] = str(self.reset_at)
        return payload


class ProviderError(TwitarError):
    """The provider answered with a structured error payload."""

    code = "provider_error"

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        provider_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider_code = provider_code


class BadStatusError(TwitarError):
    """Non-2xx response without a structured error body."""

    code = "bad_status"

    def __init__(self, status_code: int) -> None:
        super().__init__(f"Provider returned HTTP {status_code}")
        self.status_code = status_code


class TransportError(TwitarError):
    """Network, connection or timeout failure talking to the provider."""

    code = "transport_error"


class StoreError(TwitarError):
    """Credential store I/O failure."""

    code = "store_error"


class MalformedResponseError(TwitarError):
    """Provider body could not be parsed into the expected shape."""

    code = "malformed_response"
