"""
HTTP request logging middleware.

Logs every request with method, path, status code, and duration. The
Farcaster ID a request is about (``?fid=`` or ``/users/<fid>``) is bound
into the log context so provider and cache logs can be traced back to it.
"""

import re
import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("http")

_USER_PATH = re.compile(r"/users/(\d+)")


def request_fid(request: Request) -> Optional[int]:
    """FID named in the query string or a ``/users/<fid>`` path, if any."""
    raw = request.query_params.get("fid")
    if raw is None:
        match = _USER_PATH.search(request.url.path)
        raw = match.group(1) if match else None
    if raw is None or not raw.isdigit():
        return None
    return int(raw)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log HTTP requests with timing, status and FID."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid.uuid4())[:8])

        # Bind request context for all downstream logs
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)
        fid = request_fid(request)
        if fid is not None:
            structlog.contextvars.bind_contextvars(fid=fid)

        start = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 1)

            log = logger.info if status_code < 400 else logger.warning
            if status_code >= 500:
                log = logger.error

            log(
                "http_request",
                method=request.method,
                path=request.url.path,
                status=status_code,
                duration_ms=duration_ms,
                client=request.client.host if request.client else None,
            )
