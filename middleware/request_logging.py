"""
One `request_finished` line per request, with the elapsed time echoed back
in the X-Response-Time-Ms header.

Only the method and path are logged. The query string is left out, and so
is the summarize body, which carries article headlines and URLs.
"""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

# Polled by the platform health check.
QUIET_PATHS = frozenset({"/health"})


def level_for(status: int, path: str) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.DEBUG if path in QUIET_PATHS else logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Response-Time-Ms"] = f"{elapsed_ms:.1f}"

        path = request.url.path
        logger.log(
            level_for(response.status_code, path),
            "request_finished method=%s path=%s status=%s duration_ms=%.1f",
            request.method, path, response.status_code, elapsed_ms,
        )
        return response
