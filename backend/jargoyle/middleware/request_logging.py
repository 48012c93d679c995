"""Request logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with method, path, status, timing and the login provider.

    Health checks are skipped.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/health":
            return await call_next(request)

        start_time = time.time()

        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            client_ip = forwarded_for.split(",")[0].strip()

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                "Request exception: method=%s path=%s duration_ms=%.2f client_ip=%s",
                request.method,
                request.url.path,
                duration_ms,
                client_ip,
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "client_ip": client_ip,
        }

        principal = getattr(request.state, "principal", None)
        if principal is not None:
            log_data["provider"] = principal.provider

        if response.status_code >= 500:
            logger.error("Request failed: %s", log_data)
        elif response.status_code >= 400:
            logger.warning("Client error: %s", log_data)
        elif duration_ms > SLOW_REQUEST_MS:
            logger.warning("Slow request: %s", log_data)
        else:
            logger.info("Request: %s", log_data)

        return response
