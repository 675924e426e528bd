"""
HTTP Middleware

Request id propagation, one structured log line per request, and the security
response headers.
"""
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.vanproperty.utils.logger import bind_request_context, clear_request_context, get_logger

logger = get_logger("vanproperty.request")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Accepts an incoming X-Request-ID or generates one, binds it into the
    logging context and echoes it on the response.
    """

    header = "X-Request-ID"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.header) or str(uuid.uuid4())
        request.state.request_id = request_id

        clear_request_context()
        bind_request_context(request_id=request_id)
        try:
            response = await call_next(request)
            response.headers[self.header] = request_id
            return response
        finally:
            clear_request_context()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Emits one ``http_request`` event per request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            logger.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=request.url.query or "",
                status_code=status_code,
                latency_ms=int((time.perf_counter() - started) * 1000),
                request_id=getattr(request.state, "request_id", None),
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response
