"""
Request middleware: request ids, structlog context and per-route timing.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ticketing.core.logging import get_logger
from ticketing.core.metrics import record_http_request

logger = get_logger(__name__)

# Scraped or polled constantly; timed but not logged
UNLOGGED_PATHS = {"/health", "/metrics"}


def _route_template(request: Request) -> str:
    """/api/v1/events/{event_id} rather than /api/v1/events/42, to bound label cardinality."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    if not path:
        return "unmatched"
    # Routes of an included router may carry only their own path. Whatever
    # precedes the concrete route path in the URL is the mount prefix.
    try:
        concrete = path.format(**request.path_params)
    except (KeyError, IndexError, ValueError):
        return path
    full = request.url.path
    if full != concrete and full.endswith(concrete):
        return full[: len(full) - len(concrete)] + path
    return path


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Binds request_id, method and path to the structlog context so every
    booking log line can be correlated with its request, then logs the
    outcome and records it in the request metrics.

    WebSocket traffic bypasses it; the realtime registry logs its own lifecycle.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            record_http_request(request.method, _route_template(request), 500, time.perf_counter() - started)
            logger.exception("request_failed")
            raise

        elapsed = time.perf_counter() - started
        record_http_request(request.method, _route_template(request), response.status_code, elapsed)
        if request.url.path not in UNLOGGED_PATHS:
            log = logger.warning if response.status_code >= 500 else logger.info
            log("request_completed", status_code=response.status_code, duration_ms=round(elapsed * 1000, 2))

        response.headers["X-Request-ID"] = request_id
        return response
