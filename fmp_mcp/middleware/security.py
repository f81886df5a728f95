"""Security headers middleware for the SSE transport.

Adds the OWASP Secure Headers Project recommendations plus an
``X-Request-ID`` to every HTTP response.
"""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from fmp_mcp.config import settings

SECURITY_HEADERS = {
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https:; "
        "connect-src 'self'; "
        "frame-ancestors 'none'; "
        "base-uri 'self'; "
        "form-action 'self'"
    ),
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": (
        "accelerometer=(), camera=(), geolocation=(), gyroscope=(), "
        "magnetometer=(), microphone=(), payment=(), usb=()"
    ),
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add ``SECURITY_HEADERS`` and a per-request ``X-Request-ID``.

    The request ID is always added; the other headers only when
    ``settings.enable_security_headers`` is on.

    Usage:
        app.add_middleware(SecurityHeadersMiddleware)
    """

    def __init__(self, app: Callable, enabled: bool = True):
        super().__init__(app)
        self.enabled = enabled and settings.enable_security_headers

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        response = await call_next(request)

        if self.enabled:
            for name, value in SECURITY_HEADERS.items():
                response.headers[name] = value
        response.headers["X-Request-ID"] = request_id
        return response


def parse_cors_origins(origins_string: str) -> list[str]:
    """Parse CORS origins from comma-separated string.

    Example:
        >>> parse_cors_origins("https://app1.com, https://app2.com")
        ['https://app1.com', 'https://app2.com']

        >>> parse_cors_origins("*")
        ['*']
    """
    if origins_string == "*":
        return ["*"]

    return [origin.strip() for origin in origins_string.split(",") if origin.strip()]
