"""Per-request correlation IDs.

A caller-supplied ``X-Correlation-ID`` is reused; otherwise a UUID4 hex is
minted.  Route handlers read it from ``request.state.correlation_id`` and pass
it to the OAuth service so every log line of one callback can be grouped.
The value is echoed back on the response.
"""

from __future__ import annotations

import logging
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

HEADER = "X-Correlation-ID"

_LOG = logging.getLogger("twitar.server.correlation")


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, header: str = HEADER) -> None:
        super().__init__(app)
        self.header = header

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        cid = request.headers.get(self.header) or uuid.uuid4().hex
        request.state.correlation_id = cid
        _LOG.debug("%s %s correlation_id=%s", request.method, request.url.path, cid)

        response = await call_next(request)
        response.headers[self.header] = cid
        return response
