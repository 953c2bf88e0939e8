"""
FastAPI middleware for logging and request tracking.

Implements request ID tracking and timing middleware.
"""

import logging
import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging requests and tracking timing.

    Features:
    - Reuses the caller's X-Request-ID or generates one
    - Logs request completion with status and elapsed time
    - Adds X-Request-ID and X-Response-Time headers to response
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request with logging and timing."""
        req_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - start_time
            logger.error(
                f"[{req_id}] {request.method} {request.url.path} failed after {elapsed:.2f}s: {e}",
                extra={"request_id": req_id, "elapsed_ms": elapsed * 1000},
                exc_info=True,
            )
            raise

        elapsed = time.perf_counter() - start_time

        logger.info(
            f"[{req_id}] {request.method} {request.url.path} {response.status_code} in {elapsed:.2f}s",
            extra={
                "request_id": req_id,
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "elapsed_ms": elapsed * 1000,
            },
        )

        response.headers["X-Request-ID"] = req_id
        response.headers["X-Response-Time"] = f"{elapsed:.3f}s"

        return response
