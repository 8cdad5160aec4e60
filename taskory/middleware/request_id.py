"""
Request ID propagation.

Every request gets an ID (taken from X-Request-ID when the client sends one)
that is stored in a context variable for log records and error payloads.
"""
import uuid
from contextvars import ContextVar
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the ID of the request being handled, if any."""
    return _request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a request ID and echoes it in the response headers."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response
