"""
Exception handlers and standard exceptions for the application.
"""
from taskory.exceptions.errors import (
    ServiceError,
    NotFoundError,
    ValidationError,
    ConflictError,
    PermissionDeniedError,
    DatabaseError,
    TaskNotFoundError,
    ProjectNotFoundError,
    OrganizationNotFoundError,
    CommentNotFoundError,
    AttachmentNotFoundError,
    UserNotFoundError,
    InvitationNotFoundError,
    AlreadyMemberError,
    InvitationEmailMismatchError,
    status_code_for,
    to_http_exception,
)

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
