"""Request-tracking middleware for FastAPI."""

from __future__ import annotations

import logging
import secrets
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
API_VERSION_HEADER = "X-API-Version"
API_VERSION = "1.0"


def new_request_id() -> str:
    return f"req_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Assigns a correlation id and logs each request with its duration.

    The middleware:
    1. Reuses an incoming X-Request-ID or generates one
    2. Stores it on request.state.request_id for the context dependency
    3. Logs start and completion, warning when the request was slow
    4. Echoes the id (and the API version) on the response

    It never rejects or rewrites a request.
    """

    def __init__(self, app, slow_request_ms: int = 2000):
        super().__init__(app)
        self.slow_request_ms = slow_request_ms

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
        request.state.request_id = request_id
        started = time.perf_counter()

        logger.info("[%s] %s %s started", request_id, request.method, request.url.path)
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "[%s] %s %s finished %d in %.1fms",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        if duration_ms > self.slow_request_ms:
            logger.warning(
                "[%s] Slow request: %s %s took %.1fms",
                request_id,
                request.method,
                request.url.path,
                duration_ms,
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[API_VERSION_HEADER] = API_VERSION
        return response


def get_request_id(request: Request) -> str:
    """Correlation id of the current request (generated if the middleware is absent)."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = new_request_id()
        request.state.request_id = request_id
    return request_id
