"""Request logging middleware."""

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Probes hit these constantly; keep them out of the log
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request with a generated request ID and its duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        path = request.url.path
        quiet = path in QUIET_PATHS

        start_time = time.perf_counter()
        if not quiet:
            logger.info(f"[{request_id}] {request.method} {path} started")

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error(
                f"[{request_id}] {request.method} {path} failed after {duration_ms}ms: {e}",
                extra={"request_id": request_id, "client_ip": request.client.host if request.client else None},
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        if not quiet:
            logger.info(
                f"[{request_id}] {request.method} {path} -> {response.status_code} in {duration_ms}ms",
                extra={"request_id": request_id, "status_code": response.status_code},
            )

        response.headers["X-Request-ID"] = request_id
        return response
