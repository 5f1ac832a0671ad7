"""Log adapter for the OAuth flows.

Records emitted through :func:`get_auth_logger` carry at most two context
attributes, ``flow`` (``oauth1`` / ``oauth2``) and ``correlation_id`` (set by
:class:`twitar.servers.correlation.CorrelationIdMiddleware`).  Anything else
passed as context, whether to the adapter or as ``extra=`` at the call site,
is dropped, so a token or verifier can never ride along in ``extra``.  The context is also appended to the message text as
``[flow=oauth2 correlation_id=...]`` for plain formatters.

>>> log = get_auth_logger(flow="oauth2", correlation_id="4f1c")
>>> log.info("Exchanging authorization code")
"""

from __future__ import annotations

import logging
from typing import Any, MutableMapping

CONTEXT_KEYS = ("flow", "correlation_id")


class AuthContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that only ever carries :data:`CONTEXT_KEYS`."""

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        kept = {key: context[key] for key in CONTEXT_KEYS if context.get(key) is not None}
        super().__init__(logger, kept)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        call_site = kwargs.get("extra") or {}
        kwargs["extra"] = {
            **self.extra,
            **{key: call_site[key] for key in CONTEXT_KEYS if call_site.get(key) is not None},
        }
        if not self.extra:
            return msg, kwargs
        suffix = " ".join(f"{key}={value}" for key, value in self.extra.items())
        return f"{msg} [{suffix}]", kwargs


def get_auth_logger(
    *,
    base_logger_name: str = "twitar.oauth",
    flow: str | None = None,
    correlation_id: str | None = None,
) -> AuthContextAdapter:
    return AuthContextAdapter(
        logging.getLogger(base_logger_name), flow=flow, correlation_id=correlation_id
    )
