"""
Storage layer.

Repositories wrap raw SQL for one table family each and are wired together
by taskory.database.TaskoryDatabase.
"""
from taskory.storage.activity_repository import ActivityRepository
from taskory.storage.attachment_repository import AttachmentRepository, OWNER_TASK, OWNER_PROJECT, OWNER_TYPES
from taskory.storage.comment_repository import CommentRepository
from taskory.storage.invitation_repository import InvitationRepository
from taskory.storage.organization_repository import OrganizationRepository
from taskory.storage.project_repository import ProjectRepository
from taskory.storage.schema import SchemaManager
from taskory.storage.task_repository import TaskRepository
from taskory.storage.user_repository import UserRepository

__all__ = [
    'ActivityRepository',
    'AttachmentRepository',
    'CommentRepository',
    'InvitationRepository',
    'OrganizationRepository',
    'ProjectRepository',
    'SchemaManager',
    'TaskRepository',
    'UserRepository',
    'OWNER_TASK',
    'OWNER_PROJECT',
    'OWNER_TYPES',
]
