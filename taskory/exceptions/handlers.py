"""
Exception handlers for the application.
"""
import sqlite3
import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from taskory.middleware.request_id import get_request_id
from taskory.exceptions.errors import (
    ServiceError,
    NotFoundError,
    ValidationError,
    ConflictError,
    PermissionDeniedError,
    to_http_exception,
)

logger = logging.getLogger(__name__)

# Expected business conditions are logged as warnings, everything else as errors
_EXPECTED_ERRORS = (NotFoundError, ValidationError, ConflictError, PermissionDeniedError)


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    request_id = get_request_id() or '-'
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "An unexpected error occurred. Please try again or contact support if the issue persists.",
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )


async def sqlite_exception_handler(request: Request, exc: sqlite3.Error) -> JSONResponse:
    """
    Handler for SQLite database errors.
    """
    request_id = get_request_id() or '-'
    logger.error(
        f"Database error in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "error_type": type(exc).__name__,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "A database operation failed. Please try again or contact support if the issue persists.",
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors with clear messages.
    """
    request_id = get_request_id() or '-'
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {', '.join(errors)}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "errors": errors,
        }
    )
    response = JSONResponse(
        status_code=422,
        content={
            "status": "error",
            "message": "One or more fields failed validation",
            "errors": errors,
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )
    if request_id != '-':
        response.headers["X-Request-ID"] = request_id
    return response


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """
    Handler for standard ServiceError exceptions.

    Converts ServiceError to the HTTP status code of its class with a
    human-readable message.
    """
    request_id = get_request_id() or '-'

    if not exc.request_id:
        exc.request_id = request_id

    log_level = logging.WARNING if isinstance(exc, _EXPECTED_ERRORS) else logging.ERROR
    logger.log(
        log_level,
        f"Service error in {request.method} {request.url.path}: {exc.message}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "error_type": exc.__class__.__name__,
            "error_message": exc.message,
        }
    )

    http_exc = to_http_exception(exc)
    return JSONResponse(
        status_code=http_exc.status_code,
        content=http_exc.detail
    )


def setup_exception_handlers(app):
    """
    Register exception handlers with the FastAPI app.

    Note: ServiceError handler must be registered before the generic Exception handler
    to ensure ServiceError exceptions are caught first.
    """
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(sqlite3.Error, sqlite_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
