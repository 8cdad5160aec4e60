"""
Project service - business logic for organization and project operations.
This layer contains no HTTP framework dependencies.
Handles the membership side effects of creating organizations and projects.
"""
import logging
from typing import Optional, Dict, Any, List

from taskory.database import TaskoryDatabase
from taskory.exceptions import (
    AlreadyMemberError,
    ConflictError,
    OrganizationNotFoundError,
    ProjectNotFoundError,
    UserNotFoundError,
)
from taskory.models import ProjectCreate

logger = logging.getLogger(__name__)


class ProjectService:
    """Service for organization and project business logic."""

    def __init__(self, db: TaskoryDatabase):
        """Initialize project service with database dependency."""
        self.db = db

    def create_organization(self, name: str, owner_id: int) -> Dict[str, Any]:
        """Create an organization; the owner becomes a member with role 'owner'."""
        organization_id = self.db.organizations.create(name, owner_id)
        return self.db.organizations.get_by_id(organization_id)

    def get_organization(self, organization_id: int) -> Dict[str, Any]:
        organization = self.db.organizations.get_by_id(organization_id)
        if not organization:
            raise OrganizationNotFoundError(organization_id)
        return organization

    def list_organizations(self, user_id: int) -> List[Dict[str, Any]]:
        return self.db.organizations.list_for_user(user_id)

    def get_project(self, project_id: int) -> Dict[str, Any]:
        project = self.db.projects.get_by_id(project_id)
        if not project:
            raise ProjectNotFoundError(project_id)
        return project

    def list_projects(self, organization_id: int) -> List[Dict[str, Any]]:
        return self.db.projects.list(organization_id)

    def create_project(
        self,
        organization_id: int,
        project_data: ProjectCreate,
        creator_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create a project with the default status set.

        Args:
            organization_id: Owning organization
            project_data: Project creation data
            creator_id: User creating the project, attached as 'admin'

        Returns:
            Created project dictionary with its statuses

        Raises:
            OrganizationNotFoundError: If the organization does not exist
        """
        self.get_organization(organization_id)
        data = project_data.model_dump(mode="json")
        project_id = self.db.projects.create(
            organization_id,
            data["name"],
            description=data.get("description"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date")
        )
        self.db.projects.seed_default_statuses(project_id)
        if creator_id is not None:
            self.db.projects.add_member(project_id, creator_id, "admin")

        project = self.db.projects.get_by_id(project_id)
        project["statuses"] = self.db.projects.list_statuses(project_id)
        return project

    def add_user_to_project(self, project_id: int, email: str) -> Dict[str, Any]:
        """
        Add an existing organization member to a project by email.

        Raises:
            UserNotFoundError: If no user has that email
            AlreadyMemberError: If the user is already in the project
            ConflictError: If the user is not a member of the project's organization
        """
        project = self.get_project(project_id)
        user = self.db.users.get_by_email(email)
        if not user:
            raise UserNotFoundError(email)

        if self.db.projects.is_member(project_id, user["id"]):
            raise AlreadyMemberError("project")

        if not self.db.organizations.is_member(project["organization_id"], user["id"]):
            organization = self.get_organization(project["organization_id"])
            raise ConflictError(
                f"User must be a member of the organization ({organization['name']}) "
                f"before being added to the project."
            )

        self.db.projects.add_member(project_id, user["id"], "member")
        return user

    def list_members(self, project_id: int) -> List[Dict[str, Any]]:
        self.get_project(project_id)
        return self.db.projects.list_members(project_id)

    def list_organization_members(self, organization_id: int) -> List[Dict[str, Any]]:
        self.get_organization(organization_id)
        return self.db.organizations.list_members(organization_id)
