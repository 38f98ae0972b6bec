"""Per-request logger middleware for Starlette / FastAPI applications.

Each request gets its own logger derived from the application logger,
carrying the HTTP method, the path and the Cloud Trace id propagated by
Cloud Run in ``x-cloud-trace-context``.  Handlers pick it up from
``request.state.logger`` (see ``cloudlog.dependencies``).  Deriving is
copy-on-branch, so concurrent requests never share field maps.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from cloudlog.logger import Logger

TRACE_HEADER = "x-cloud-trace-context"


def trace_id(request: Request) -> str:
    """Return the trace id part of the Cloud Trace header, or ``""``."""
    header = request.headers.get(TRACE_HEADER, "")
    return header.split("/")[0] if header else ""


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attaches a request-scoped logger and logs method, path, status and latency."""

    def __init__(self, app, logger: Logger) -> None:
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next) -> Response:
        fields = {"httpMethod": request.method, "path": request.url.path}
        trace = trace_id(request)
        if trace:
            fields["trace"] = trace
        request_logger = self.logger.with_fields(fields)
        request.state.logger = request_logger

        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                "%s %s failed: %s", request.method, request.url.path, e, exc_info=e
            )
            raise
        duration_ms = round((time.monotonic() - start) * 1000, 1)

        request_logger.with_fields(status=response.status_code, latencyMs=duration_ms).info(
            "%s %s -> %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        return response
