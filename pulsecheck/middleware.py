"""ASGI middleware binding request context for health-check logging.

Every runner/service log line emitted while serving a probe request carries
``request_id``, ``correlation_id`` and the probed path. The elapsed time of
each request is logged once it completes.
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

_CORRELATION_HEADER = "X-Correlation-ID"
_REQUEST_HEADER = "X-Request-ID"

log = structlog.get_logger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Binds request IDs and path into structlog context vars."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(_REQUEST_HEADER) or str(uuid.uuid4())
        correlation_id = request.headers.get(_CORRELATION_HEADER) or request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            correlation_id=correlation_id,
            path=request.url.path,
        )

        started = time.perf_counter()
        response: Response = await call_next(request)
        log.debug(
            "health_request_completed",
            method=request.method,
            status_code=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 3),
        )

        response.headers[_REQUEST_HEADER] = request_id
        response.headers[_CORRELATION_HEADER] = correlation_id
        return response
