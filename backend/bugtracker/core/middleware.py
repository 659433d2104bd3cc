"""
Bug Tracker - HTTP Middleware

Request tracing (id + timing), response hardening headers and a body size cap.
"""

import time
from typing import Callable, Dict, FrozenSet
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from bugtracker.core.logging_config import (
    logger,
    generate_request_id,
    set_request_id,
    set_user_id,
)


REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"

# Health checks and docs are served constantly and carry nothing worth tracing
QUIET_PATHS: FrozenSet[str] = frozenset({
    "/",
    "/health",
    "/api/health",
    "/docs",
    "/redoc",
    "/openapi.json",
    "/favicon.ico",
})

SLOW_REQUEST_MS = 1000

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def is_quiet_path(path: str) -> bool:
    return path in QUIET_PATHS


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (reusing the caller's X-Request-ID when
    sent), times it, and logs the outcome through ``logger.log_request``.

    The id and elapsed time are echoed back as response headers so a client
    report can be matched to a server log line.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_id(request_id)

        method, path = request.method, request.url.path
        quiet = is_quiet_path(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.log_error_with_context(
                exc,
                context=f"{method} {path}",
                duration_ms=elapsed_ms,
            )
            raise
        else:
            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[RESPONSE_TIME_HEADER] = f"{elapsed_ms:.2f}ms"

            if not quiet:
                client_ip = request.client.host if request.client else "unknown"
                logger.log_request(
                    method, path, response.status_code, elapsed_ms,
                    client_ip=client_ip,
                )
                if elapsed_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {method} {path} took {elapsed_ms:.0f}ms",
                        extra={"event_type": "slow_request", "http_path": path, "duration_ms": elapsed_ms},
                    )
            return response
        finally:
            set_request_id("")
            set_user_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies whose declared Content-Length exceeds ``max_size`` bytes"""

    def __init__(self, app: ASGIApp, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        declared = request.headers.get("content-length", "")

        if declared.isdigit() and int(declared) > self.max_size:
            logger.warning(
                f"Rejected {declared}-byte body on {request.url.path} (limit {self.max_size})",
                extra={"event_type": "request_too_large", "http_path": request.url.path},
            )
            return JSONResponse(
                status_code=413,
                content={"error": f"Request body too large. Maximum size is {self.max_size} bytes"},
            )

        return await call_next(request)


__all__ = [
    "RequestLoggingMiddleware",
    "SecurityHeadersMiddleware",
    "RequestSizeLimitMiddleware",
    "is_quiet_path",
    "QUIET_PATHS",
    "SECURITY_HEADERS",
]
