"""Request correlation: one id per request, visible on every log line.

The id comes from the caller's X-Request-ID header when present (so a
gateway's id flows through), otherwise a fresh UUID.  It is kept in
``request_id_var``; the log handler stamps it onto every record emitted
while the request is in flight.
"""

from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from progress_service.core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Assign the request id, then log one summary line per request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        req_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(req_id)
        start = time.monotonic()
        try:
            response = await call_next(request)
        finally:
            duration_ms = round((time.monotonic() - start) * 1000, 1)
            request_id_var.reset(token)

        # user_id is lifted from the path so JSON logs can be filtered by learner.
        logger.info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": duration_ms,
                "user_id": request.path_params.get("user_id"),
            },
        )

        response.headers[REQUEST_ID_HEADER] = req_id
        return response
