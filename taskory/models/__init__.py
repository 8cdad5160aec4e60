from taskory.models.task_models import (
    Priority,
    TaskCreate,
    TaskUpdate,
    ReorderItem,
    ReorderRequest,
    TaskListFilters,
)
from taskory.models.project_models import (
    OrganizationCreate,
    ProjectCreate,
    ProjectMemberAdd,
    InviteRequest,
    AcceptInviteRequest,
)
from taskory.models.uploads import FileUpload

__all__ = [
    'Priority',
    'TaskCreate',
    'TaskUpdate',
    'ReorderItem',
    'ReorderRequest',
    'TaskListFilters',
    'OrganizationCreate',
    'ProjectCreate',
    'ProjectMemberAdd',
    'InviteRequest',
    'AcceptInviteRequest',
    'FileUpload',
]
