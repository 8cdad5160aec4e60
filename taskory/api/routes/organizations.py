"""
Organization routes, including the invitation workflow.
"""
import logging
from typing import Dict, Any

from fastapi import APIRouter, Depends

from taskory.api.responses import success
from taskory.auth.dependencies import get_current_user, require_organization_member
from taskory.dependencies import ServiceContainer, get_container
from taskory.models import OrganizationCreate, InviteRequest, AcceptInviteRequest, ProjectCreate
from taskory.services.invitation_service import MEMBER_ADDED

logger = logging.getLogger(__name__)

router = APIRouter(tags=["organizations"])


@router.get("/organizations")
def list_organizations(
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return success(container.project_service.list_organizations(user["id"]))


@router.post("/organizations")
def create_organization(
    payload: OrganizationCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    organization = container.project_service.create_organization(payload.name, user["id"])
    return success(organization, "Organization created successfully", 201)


@router.get("/organizations/{organization_id}")
def get_organization(
    organization_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    return success(require_organization_member(container.db, organization_id, user))


@router.get("/organizations/{organization_id}/members")
def list_organization_members(
    organization_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_organization_member(container.db, organization_id, user)
    return success(container.project_service.list_organization_members(organization_id))


@router.get("/organizations/{organization_id}/projects")
def list_projects(
    organization_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_organization_member(container.db, organization_id, user)
    return success(container.project_service.list_projects(organization_id))


@router.post("/organizations/{organization_id}/projects")
def create_project(
    organization_id: int,
    payload: ProjectCreate,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_organization_member(container.db, organization_id, user)
    project = container.project_service.create_project(organization_id, payload, creator_id=user["id"])
    return success(project, "Project created successfully", 201)


@router.post("/organizations/{organization_id}/invite")
def invite(
    organization_id: int,
    payload: InviteRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    require_organization_member(container.db, organization_id, user)
    result = container.invitation_service.invite(organization_id, payload.email, payload.project_id)
    if result.kind == MEMBER_ADDED:
        return success(result.data, "User added to project successfully", 200)
    logger.info(f"User {user['id']} invited {payload.email} to organization {organization_id}")
    return success(result.data, "Invitation sent successfully", 201)


@router.post("/invitations/accept")
def accept_invitation(
    payload: AcceptInviteRequest,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    organization = container.invitation_service.accept(payload.token, user)
    return success(organization, "Invitation accepted successfully")
