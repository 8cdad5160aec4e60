"""
Standard Exception Hierarchy for the Taskory service

All service exceptions inherit from ServiceError so that HTTP handlers can
convert them to a response in one place. Services raise them for business
conditions (missing records, conflicts, permission checks); they are never
used for programming errors.
"""
from typing import Any

from fastapi import HTTPException


# ============================================================================
# Base Exception Class
# ============================================================================

class ServiceError(Exception):
    """Base exception for all service errors.

    Attributes:
        message: Human-readable error message
        request_id: Optional request ID for tracing
        context: Dictionary of additional context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        *,
        request_id: str | None = None,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.context = context or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
        }
        if self.request_id:
            result["request_id"] = self.request_id
        if self.context:
            result["context"] = self.context
        if self.original_error:
            result["original_error"] = {
                "type": type(self.original_error).__name__,
                "message": str(self.original_error)
            }
        return result


# ============================================================================
# Common Exception Types
# ============================================================================

class NotFoundError(ServiceError):
    """Raised when a requested resource is not found.

    Attributes:
        resource_type: Type of resource (e.g., "Task", "Project", "Invitation")
        resource_id: ID of the resource that was not found
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str | int,
        *,
        message: str | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        if message is None:
            message = f"{resource_type} with ID '{resource_id}' not found"

        super().__init__(message, request_id=request_id, context=context)
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        self.context.setdefault("resource_type", resource_type)
        self.context.setdefault("resource_id", str(resource_id))


class ValidationError(ServiceError):
    """Raised when input validation fails.

    Attributes:
        field: Optional field name that failed validation
        value: Optional value that failed validation
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        super().__init__(message, request_id=request_id, context=context)
        self.field = field
        self.value = value
        if field is not None:
            self.context.setdefault("field", field)
        if value is not None:
            self.context.setdefault("value", str(value))


class ConflictError(ServiceError):
    """Raised when a request collides with the current state of a resource.

    These are expected business conditions (duplicate membership, an
    invitation redeemed by the wrong account) and carry a message suitable
    for direct display.
    """


class PermissionDeniedError(ServiceError):
    """Raised when the acting user may not perform the operation."""

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, **kwargs)


class DatabaseError(ServiceError):
    """Raised when a database operation fails.

    Attributes:
        operation: Optional database operation that failed (e.g., "INSERT", "SELECT")
    """

    def __init__(
        self,
        message: str,
        *,
        original_error: Exception | None = None,
        operation: str | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        super().__init__(message, request_id=request_id, context=context, original_error=original_error)
        self.operation = operation
        if operation is not None:
            self.context.setdefault("operation", operation)


# ============================================================================
# Service-Specific Exceptions
# ============================================================================

class TaskNotFoundError(NotFoundError):
    """Raised when a task is not found."""

    def __init__(self, task_id: str | int, **kwargs):
        super().__init__("Task", task_id, **kwargs)
        self.task_id = task_id


class ProjectNotFoundError(NotFoundError):
    """Raised when a project is not found."""

    def __init__(self, project_id: str | int, **kwargs):
        super().__init__("Project", project_id, **kwargs)
        self.project_id = project_id


class OrganizationNotFoundError(NotFoundError):
    """Raised when an organization is not found."""

    def __init__(self, organization_id: str | int, **kwargs):
        super().__init__("Organization", organization_id, **kwargs)
        self.organization_id = organization_id


class CommentNotFoundError(NotFoundError):
    """Raised when a comment is not found."""

    def __init__(self, comment_id: str | int, **kwargs):
        super().__init__("Comment", comment_id, **kwargs)
        self.comment_id = comment_id


class AttachmentNotFoundError(NotFoundError):
    """Raised when an attachment is not found."""

    def __init__(self, attachment_id: str | int, **kwargs):
        super().__init__("Attachment", attachment_id, **kwargs)
        self.attachment_id = attachment_id


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(self, user_ref: str | int, **kwargs):
        kwargs.setdefault("message", f"User with email {user_ref} not found.")
        super().__init__("User", user_ref, **kwargs)


class InvitationNotFoundError(NotFoundError):
    """Raised when an invitation token does not resolve to a live invitation."""

    def __init__(self, token: str, **kwargs):
        kwargs.setdefault("message", "Invalid invitation token.")
        super().__init__("Invitation", token, **kwargs)


class AlreadyMemberError(ConflictError):
    """Raised when a user is already a member of the target organization or project."""

    def __init__(self, scope: str, **kwargs):
        super().__init__(f"User is already a member of this {scope}.", **kwargs)
        self.scope = scope
        self.context.setdefault("scope", scope)


class InvitationEmailMismatchError(ConflictError):
    """Raised when an invitation is redeemed by an account with a different email."""

    def __init__(self, invited_email: str, user_email: str, **kwargs):
        super().__init__(f"This invitation is for {invited_email}, not {user_email}.", **kwargs)
        self.invited_email = invited_email
        self.user_email = user_email


# ============================================================================
# Helper Functions for FastAPI Integration
# ============================================================================

_STATUS_CODE_MAP = {
    NotFoundError: 404,
    ValidationError: 422,
    ConflictError: 409,
    PermissionDeniedError: 403,
    DatabaseError: 500,
}


def status_code_for(exc: ServiceError, default_status_code: int = 500) -> int:
    """Resolve the HTTP status code for an exception, walking its class hierarchy."""
    for cls in type(exc).__mro__:
        if cls in _STATUS_CODE_MAP:
            return _STATUS_CODE_MAP[cls]
    return default_status_code


def to_http_exception(
    exc: ServiceError,
    *,
    default_status_code: int = 500,
    include_context: bool = True
) -> HTTPException:
    """Convert ServiceError to FastAPI HTTPException.

    Args:
        exc: Service error to convert
        default_status_code: Default status code if mapping not found
        include_context: Whether to include exception context in response

    Returns:
        HTTPException with appropriate status code and detail
    """
    status_code = status_code_for(exc, default_status_code)

    detail = {
        "status": "error",
        "error": exc.__class__.__name__,
        "message": exc.message,
    }

    if include_context and exc.context:
        detail["context"] = exc.context

    if exc.request_id:
        detail["request_id"] = exc.request_id

    return HTTPException(status_code=status_code, detail=detail)


__all__ = [
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "PermissionDeniedError",
    "DatabaseError",
    "TaskNotFoundError",
    "ProjectNotFoundError",
    "OrganizationNotFoundError",
    "CommentNotFoundError",
    "AttachmentNotFoundError",
    "UserNotFoundError",
    "InvitationNotFoundError",
    "AlreadyMemberError",
    "InvitationEmailMismatchError",
    "status_code_for",
    "to_http_exception",
]
