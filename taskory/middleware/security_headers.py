"""
Security headers middleware.

Adds a fixed set of defensive response headers. Values can be overridden
through SECURITY_HEADER_* environment variables; HSTS is only sent over
HTTPS and only when SECURITY_HSTS_ENABLED=true.
"""
import os
import logging
from typing import Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cross-Origin-Opener-Policy": "same-origin",
    # Attachments are downloaded by the web frontend on another origin
    "Cross-Origin-Resource-Policy": "same-site",
}


def _env_name(header: str) -> str:
    return "SECURITY_HEADER_" + header.upper().replace("-", "_")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware for adding security headers to all responses."""

    def __init__(self, app):
        super().__init__(app)
        self.headers = {
            name: os.getenv(_env_name(name), default)
            for name, default in DEFAULT_HEADERS.items()
        }
        self.hsts_enabled = os.getenv("SECURITY_HSTS_ENABLED", "false").lower() == "true"
        self.hsts_max_age = int(os.getenv("SECURITY_HSTS_MAX_AGE", "31536000"))
        logger.debug("Security headers middleware initialized", extra={"hsts_enabled": self.hsts_enabled})

    def _is_https(self, request: Request) -> bool:
        """Check if request is over HTTPS (directly or behind a proxy)."""
        if request.headers.get("X-Forwarded-Proto", "").lower() == "https":
            return True
        return request.url.scheme == "https"

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            if value:
                response.headers[name] = value
        if self.hsts_enabled and self._is_https(request):
            response.headers["Strict-Transport-Security"] = f"max-age={self.hsts_max_age}; includeSubDomains"
        return response
