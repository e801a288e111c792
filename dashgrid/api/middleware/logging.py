"""Request logging middleware.

Every layout request gets a request id, either the caller's ``X-Request-ID``
or a fresh short id. It is stored on ``request.state`` and echoed back, so
editor-side logs can be matched with engine logs.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("dashgrid.api")

REQUEST_ID_HEADER = "X-Request-ID"


def status_log_level(status: int) -> int:
    """Log level for a response status: errors loud, client mistakes as warnings."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per layout request with status and elapsed time."""

    def __init__(self, app, exclude_paths: list[str] | None = None):
        super().__init__(app)
        self.exclude_paths = tuple(exclude_paths or ["/health"])

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith(self.exclude_paths):
            return await call_next(request)

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        label = f"[{request_id}] {request.method} {path}"
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(f"{label} failed after {self._elapsed_ms(started):.1f}ms: {e}")
            raise

        logger.log(
            status_log_level(response.status_code),
            f"{label} -> {response.status_code} in {self._elapsed_ms(started):.1f}ms",
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return (time.perf_counter() - started) * 1000
