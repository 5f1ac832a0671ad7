"""Browser-facing OAuth endpoints.

Handlers are intentionally thin:

1. Parse HTTP-layer parameters.
2. Delegate to :class:`~twitar.oauth.service.TwitarAuthService`.
3. Return a JSON envelope ``{"message": ..., "body": ...}``.

SECURITY NOTE
-------------
• No raw secrets (state, verifiers, request / access tokens, client secrets)
  are ever logged or echoed back.
• Correlation IDs from ``request.state.correlation_id`` are included in INFO
  logs to aid troubleshooting.
"""

from __future__ import annotations

import logging
from typing import Any

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from twitar.oauth.errors import TwitarError
from twitar.oauth.service import TwitarAuthService

_LOG = logging.getLogger("twitar.auth.routes")

ENABLE_PATH = "/enable"
REDIRECT_PATH = "/twitter/oauth"


def envelope(message: str, body: Any = None, status_code: int = 200) -> JSONResponse:
    """Return the service's standard JSON response body."""
    return JSONResponse({"message": message, "body": body}, status_code=status_code)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", "-")


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def register_auth_routes(
    app: Starlette,
    svc: TwitarAuthService,
    *,
    enable_path: str = ENABLE_PATH,
    redirect_path: str = REDIRECT_PATH,
) -> None:
    """Attach the OAuth endpoints for *svc* to *app*."""

    # ----- GET /enable ---------------------------------------------------- #
    async def _enable(request: Request) -> Response:
        flow = request.query_params.get("flow", "oauth2")
        if flow not in ("oauth1", "oauth2"):
            return envelope("unsupported flow", status_code=400)

        try:
            if flow == "oauth1":
                authorize_url = await svc.build_oauth1_authorize_url()
            else:
                authorize_url = await svc.build_oauth2_authorize_url()
        except TwitarError as exc:
            _LOG.warning(
                "OAuth start failed flow=%s error=%s correlation_id=%s",
                flow,
                exc.code,
                _correlation_id(request),
            )
            return envelope("Bad request", status_code=400)

        _LOG.info("OAuth start flow=%s correlation_id=%s", flow, _correlation_id(request))

        # explicit ?format= wins over the Accept header
        fmt_param = request.query_params.get("format")
        accept_header = (request.headers.get("accept") or "").lower()

        def _json_resp() -> JSONResponse:
            return envelope("Authorize", {"authorize_url": authorize_url})

        def _redirect_resp() -> RedirectResponse:
            return RedirectResponse(authorize_url, status_code=303)

        if fmt_param == "json":
            return _json_resp()
        if fmt_param == "redirect":
            return _redirect_resp()
        if "text/html" in accept_header:
            return _redirect_resp()
        return _json_resp()

    # ----- GET /twitter/oauth --------------------------------------------- #
    async def _oauth_callback(request: Request) -> Response:
        outcome = await svc.handle_redirect(
            request.query_params, correlation_id=_correlation_id(request)
        )
        _LOG.info(
            "OAuth callback flow=%s status=%s correlation_id=%s",
            outcome.flow or "-",
            outcome.status_code,
            _correlation_id(request),
        )
        return envelope(outcome.message, status_code=outcome.status_code)

    app.add_route(enable_path, _enable, methods=["GET"])
    app.add_route(redirect_path, _oauth_callback, methods=["GET"])
