"""HTTP request metrics, labelled by route name.

Route names (``users.store``, ``login``, ``health``) keep label
cardinality fixed: every unmatched path, 404s included, shares
the ``unmatched`` label.
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from backoffice.core.metrics import ACTIVE_REQUESTS, REQUEST_COUNT, REQUEST_DURATION

UNMATCHED = "unmatched"


def route_label(request: Request) -> str:
    """Name of the route the router matched; only known after dispatch."""
    route = request.scope.get("route")
    return getattr(route, "name", None) or UNMATCHED


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            ACTIVE_REQUESTS.dec()
            route = route_label(request)
            REQUEST_COUNT.labels(request.method, route, str(status_code)).inc()
            REQUEST_DURATION.labels(request.method, route).observe(
                time.perf_counter() - start
            )
