"""
Authentication and authorization dependencies for FastAPI.

Users authenticate with an opaque bearer token; only its SHA-256 hash is
stored. Authorization is checked here, at the boundary, before any service
runs.
"""
import hashlib
import logging
import secrets
from typing import Optional, Dict, Any, Tuple

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskory.database import TaskoryDatabase
from taskory.dependencies import get_db
from taskory.exceptions import (
    OrganizationNotFoundError,
    PermissionDeniedError,
    ProjectNotFoundError,
    TaskNotFoundError,
)

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_api_token() -> str:
    return secrets.token_urlsafe(32)


async def get_current_user(
    request: Request,
    authorization: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: TaskoryDatabase = Depends(get_db)
) -> Dict[str, Any]:
    """
    Resolve the acting user from the Authorization: Bearer token.

    Raises:
        HTTPException 401 if the token is missing or unknown
    """
    if not authorization or not authorization.credentials:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Authorization: Bearer token."
        )

    user = db.users.get_by_token_hash(hash_token(authorization.credentials))
    if not user:
        logger.warning(f"Rejected unknown bearer token for {request.url.path}")
        raise HTTPException(status_code=401, detail="Invalid API token")

    request.state.user_id = user["id"]
    return user


def require_organization_member(db: TaskoryDatabase, organization_id: int, user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns:
        The organization, if the user owns it or belongs to it

    Raises:
        OrganizationNotFoundError, PermissionDeniedError
    """
    organization = db.organizations.get_by_id(organization_id)
    if not organization:
        raise OrganizationNotFoundError(organization_id)
    if organization["owner_id"] != user["id"] and not db.organizations.is_member(organization_id, user["id"]):
        raise PermissionDeniedError(context={"organization_id": organization_id})
    return organization


def require_project_access(db: TaskoryDatabase, project_id: int, user: Dict[str, Any]) -> Dict[str, Any]:
    """
    A project is open to its members and to members of its organization.

    Raises:
        ProjectNotFoundError, PermissionDeniedError
    """
    project = db.projects.get_by_id(project_id)
    if not project:
        raise ProjectNotFoundError(project_id)
    if db.projects.is_member(project_id, user["id"]):
        return project
    organization = db.organizations.get_by_id(project["organization_id"])
    if organization and (
        organization["owner_id"] == user["id"]
        or db.organizations.is_member(project["organization_id"], user["id"])
    ):
        return project
    raise PermissionDeniedError(context={"project_id": project_id})


def require_task_access(db: TaskoryDatabase, task_id: int, user: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """
    Returns:
        Tuple of (task, project) when the user may access the task's project
    """
    task = db.tasks.get_by_id(task_id)
    if not task:
        raise TaskNotFoundError(task_id)
    project = require_project_access(db, task["project_id"], user)
    return task, project
