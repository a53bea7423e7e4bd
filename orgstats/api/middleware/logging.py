"""
Request logging middleware.
Provides request IDs and structured logging for all API requests.
"""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from orgstats.core.logger import get_logger

logger = get_logger(__name__)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Add a unique request ID to each request and echo it in the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging HTTP requests and responses.
    Adds structured context to logs including timing, status codes, and request metadata.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request and log details.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware or route handler

        Returns:
            Response from downstream handlers
        """
        start_time = time.time()

        # Set by RequestIdMiddleware, which wraps this one
        request_id = getattr(request.state, "request_id", "unknown")

        client_host = request.client.host if request.client else "unknown"
        method = request.method
        path = request.url.path

        logger.info(
            "Incoming request",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "client_ip": client_host,
                "user_agent": request.headers.get("user-agent", "unknown"),
            },
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "Request failed with exception",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round(process_time * 1000, 2),
                    "error_type": type(e).__name__,
                },
            )
            # Re-raise to be handled by exception handlers
            raise

        process_time = time.time() - start_time
        logger.info(
            "Request completed",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "duration_ms": round(process_time * 1000, 2),
                "success": 200 <= response.status_code < 400,
            },
        )

        response.headers["X-Process-Time"] = str(round(process_time, 3))
        return response
