"""Prometheus HTTP instrumentation.

Every route here carries a learner id (and usually an item id) in its URL,
so the raw path would give each learner their own time series.  The
endpoint label is the matched route template instead:

  /v1/learners/u-42/lessons/l-7/progress
    -> /v1/learners/{user_id}/lessons/{lesson_id}/progress

Unmatched requests (404s) are grouped under "unmatched".
"""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from progress_service.core.metrics import (
    ACTIVE_REQUESTS,
    REQUEST_COUNT,
    REQUEST_DURATION,
)

_UNMATCHED = "unmatched"


def endpoint_label(request: Request) -> str:
    route = request.scope.get("route")
    path_format = getattr(route, "path_format", None)
    return path_format or _UNMATCHED


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # Scrapes would otherwise count themselves.
        if request.url.path == "/metrics":
            return await call_next(request)

        ACTIVE_REQUESTS.inc()
        start = time.monotonic()
        status_code = "500"  # unhandled exceptions become 500s

        try:
            response = await call_next(request)
            status_code = str(response.status_code)
            return response
        finally:
            # Route is resolved during call_next, so read the label afterwards.
            endpoint = endpoint_label(request)
            ACTIVE_REQUESTS.dec()
            REQUEST_COUNT.labels(
                method=request.method, endpoint=endpoint, status_code=status_code
            ).inc()
            REQUEST_DURATION.labels(method=request.method, endpoint=endpoint).observe(
                time.monotonic() - start
            )
