"""
Service layer for business logic.
Services contain pure business logic without HTTP framework dependencies.
"""

from taskory.services.task_service import TaskService
from taskory.services.activity_service import ActivityFeedService
from taskory.services.comment_service import CommentService
from taskory.services.reorder_service import ReorderService
from taskory.services.invitation_service import InvitationService, InviteResult
from taskory.services.attachment_service import AttachmentService
from taskory.services.project_service import ProjectService

__all__ = [
    "TaskService",
    "ActivityFeedService",
    "CommentService",
    "ReorderService",
    "InvitationService",
    "InviteResult",
    "AttachmentService",
    "ProjectService",
]
