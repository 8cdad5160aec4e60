"""
Project routes: details, activity feeds, files and members.
"""
from typing import Dict, Any

from fastapi import APIRouter, Depends, Query

from taskory.api.responses import success
from taskory.auth.dependencies import get_current_user, require_project_access
from taskory.dependencies import ServiceContainer, get_container
from taskory.models import ProjectMemberAdd

router = APIRouter(prefix="/projects", tags=["projects"])


@router.get("/{project_id}")
def get_project(
    project_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    project = require_project_access(container.db, project_id, user)
    project["statuses"] = container.db.projects.list_statuses(project_id)
    return success(project)


@router.get("/{project_id}/activity")
def project_activity(
    project_id: int,
    page: int = Query(1, ge=1),
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    return success(container.activity_service.project_feed(project_id, page))


@router.get("/{project_id}/dashboard")
def project_dashboard(
    project_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    return success(container.activity_service.recent_project_activity(project_id))


@router.get("/{project_id}/attachments")
def project_attachments(
    project_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    attachments = container.attachment_service.list_for_project(project_id)
    for attachment in attachments:
        attachment["file_url"] = container.activity_service.file_url(attachment["file_path"])
    return success(attachments)


@router.get("/{project_id}/members")
def list_members(
    project_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    return success(container.project_service.list_members(project_id))


@router.post("/{project_id}/members")
def add_member(
    project_id: int,
    payload: ProjectMemberAdd,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_project_access(container.db, project_id, user)
    member = container.project_service.add_user_to_project(project_id, payload.email)
    return success(member, "User added to project successfully", 201)
