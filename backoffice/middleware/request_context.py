"""Request id and per-request summary line.

The request id is the client's X-Request-ID when sent, otherwise a
fresh UUID.  It is echoed on every response, login redirects and 404s
included, and is visible to every log record made while the request
runs (see backoffice.core.logging).
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from backoffice.core.logging import request_id_var
from backoffice.middleware.metrics import route_label

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            start = time.perf_counter()
            response = await call_next(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 1)
            route = route_label(request)
            logger.info(
                "%s %s [%s] %d %.1fms",
                request.method,
                request.url.path,
                route,
                response.status_code,
                duration_ms,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "route": route,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                },
            )
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        return response
