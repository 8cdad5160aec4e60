"""
Task routes: CRUD, reordering, the per-task feed and comment posting.
"""
import logging
from datetime import date
from typing import Optional, List, Dict, Any

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile

from taskory.api.responses import success
from taskory.api.routes.uploads import to_file_uploads
from taskory.auth.dependencies import get_current_user, require_project_access, require_task_access
from taskory.dependencies import ServiceContainer, get_container
from taskory.exceptions import ValidationError
from taskory.models import TaskCreate, TaskUpdate, ReorderRequest, TaskListFilters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
def list_tasks(
    project_id: int,
    assignee_id: Optional[int] = None,
    assignee_ids: List[int] = Query([]),
    status_ids: List[int] = Query([]),
    date_created_start: Optional[date] = None,
    date_created_end: Optional[date] = None,
    date_updated_start: Optional[date] = None,
    date_updated_end: Optional[date] = None,
    due_date_start: Optional[date] = None,
    due_date_end: Optional[date] = None,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    filters = TaskListFilters(
        assignee_id=assignee_id,
        assignee_ids=assignee_ids,
        status_ids=status_ids,
        date_created_start=date_created_start,
        date_created_end=date_created_end,
        date_updated_start=date_updated_start,
        date_updated_end=date_updated_end,
        due_date_start=due_date_start,
        due_date_end=due_date_end,
    )
    tasks = container.task_service.list_tasks(project_id, filters.model_dump(mode="json"))
    return success(tasks)


@router.post("")
def create_task(
    payload: TaskCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, payload.project_id, user)
    fields = payload.model_dump(mode="json")
    container.task_service.validate_references(payload.project_id, fields)
    task = container.task_service.create_task(fields, user["id"])
    return success(task, "Task created successfully", 201)


@router.post("/reorder")
def reorder_tasks(
    payload: ReorderRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    tasks = container.db.tasks.get_many(item.id for item in payload.tasks)
    for item in payload.tasks:
        if item.id not in tasks:
            raise ValidationError(f"The selected task {item.id} is invalid.", field="tasks.id", value=item.id)
    for project_id in {task["project_id"] for task in tasks.values()}:
        require_project_access(container.db, project_id, user)

    container.reorder_service.reorder((item.id, item.position) for item in payload.tasks)
    return Response(status_code=200)


@router.get("/{task_id}")
def get_task(
    task_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    task, _ = require_task_access(container.db, task_id, user)
    return success(task)


@router.patch("/{task_id}")
@router.put("/{task_id}")
def update_task(
    task_id: int,
    payload: TaskUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    task, _ = require_task_access(container.db, task_id, user)
    changes = payload.changes()
    container.task_service.validate_references(task["project_id"], changes, task_id=task_id)
    updated = container.task_service.update_task(task_id, changes, user["id"])
    return success(updated, "Task updated successfully")


@router.delete("/{task_id}")
def delete_task(
    task_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_task_access(container.db, task_id, user)
    container.task_service.delete_task(task_id)
    return success([], "Task deleted successfully")


@router.get("/{task_id}/comments")
def task_feed(
    task_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_task_access(container.db, task_id, user)
    return success(container.activity_service.task_feed(task_id))


@router.post("/{task_id}/comments")
def post_comment(
    task_id: int,
    content: Optional[str] = Form(None),
    files: Optional[List[UploadFile]] = File(None),
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_task_access(container.db, task_id, user)
    comment = container.comment_service.post_comment(
        task_id, user["id"], content, to_file_uploads(files, container.attachment_service.max_size)
    )
    return success(comment, "Comment posted successfully", 201)
