"""
Security Headers Middleware

Adds the standard hardening headers to every response.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from server_template.config import settings

STATIC_SECURITY_HEADERS = {
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add security headers to all responses.

    Includes:
    - Strict-Transport-Security (HSTS)
    - Content-Security-Policy
    - X-Frame-Options
    - Referrer-Policy
    - Cross-origin isolation and legacy browser hardening headers

    Server identification headers are removed.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if settings.SECURITY_HSTS_ENABLED:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={settings.SECURITY_HSTS_MAX_AGE}; includeSubDomains"
            )

        if settings.SECURITY_CSP_ENABLED:
            response.headers["Content-Security-Policy"] = settings.SECURITY_CSP_POLICY

        response.headers["X-Frame-Options"] = settings.SECURITY_X_FRAME_OPTIONS
        response.headers["Referrer-Policy"] = settings.SECURITY_REFERRER_POLICY

        for header, value in STATIC_SECURITY_HEADERS.items():
            response.headers[header] = value

        # MutableHeaders doesn't support .pop()
        for header in ("Server", "X-Powered-By"):
            if header in response.headers:
                del response.headers[header]

        return response
