"""
Invitation service - issuing and redeeming organization invitations.
This layer contains no HTTP framework dependencies.

An invitation is bound to one email address within one organization. Issuing
a second invitation to the same address replaces the token of the first,
and redeeming deletes the row, so every token works at most once.
"""
import logging
import secrets
import string
from dataclasses import dataclass
from typing import Optional, Dict, Any

from taskory.config import get_settings
from taskory.database import TaskoryDatabase
from taskory.exceptions import (
    AlreadyMemberError,
    InvitationEmailMismatchError,
    InvitationNotFoundError,
    OrganizationNotFoundError,
    ValidationError,
)
from taskory.notifications import Notifier, LogNotifier, dispatch, invitation_message

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_letters + string.digits

INVITED = "invited"
MEMBER_ADDED = "member_added"


def generate_token(length: Optional[int] = None) -> str:
    """Random alphanumeric invitation token."""
    length = length or get_settings().invitation_token_length
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


@dataclass
class InviteResult:
    """
    Outcome of invite().

    kind is INVITED when an invitation was stored and mailed (data is the
    invitation), MEMBER_ADDED when an existing organization member was put
    straight into the project (data is the user).
    """
    kind: str
    data: Dict[str, Any]


class InvitationService:
    """Service for invitation business logic."""

    def __init__(self, db: TaskoryDatabase, notifier: Optional[Notifier] = None):
        self.db = db
        self.notifier = notifier or LogNotifier()

    def _get_organization(self, organization_id: int) -> Dict[str, Any]:
        organization = self.db.organizations.get_by_id(organization_id)
        if not organization:
            raise OrganizationNotFoundError(organization_id)
        return organization

    def invite(self, organization_id: int, email: str, project_id: Optional[int] = None) -> InviteResult:
        """
        Invite an email address to an organization, optionally into a project.

        An address that already belongs to an organization member is added
        to the project directly, without a token or mail.

        Raises:
            OrganizationNotFoundError: If the organization does not exist
            AlreadyMemberError: If there is nothing left to grant
            ValidationError: If project_id does not belong to the organization
        """
        organization = self._get_organization(organization_id)

        existing_user = self.db.users.get_by_email(email)
        if existing_user and self.db.organizations.is_member(organization_id, existing_user["id"]):
            if project_id is not None:
                project = self.db.projects.get_by_id(project_id, organization_id=organization_id)
                if project:
                    if self.db.projects.is_member(project_id, existing_user["id"]):
                        raise AlreadyMemberError("project")
                    self.db.projects.add_member(project_id, existing_user["id"], "member")
                    logger.info(f"Added organization member {existing_user['id']} to project {project_id} directly")
                    return InviteResult(MEMBER_ADDED, existing_user)
            raise AlreadyMemberError("organization")

        if project_id is not None and not self.db.projects.get_by_id(project_id, organization_id=organization_id):
            raise ValidationError(
                "Project invalid or does not belong to organization.",
                field="project_id",
                value=project_id
            )

        invitation = self.db.invitations.upsert(
            organization_id,
            email,
            generate_token(),
            role="member",
            project_id=project_id
        )
        dispatch(self.notifier, invitation_message(invitation, organization))
        return InviteResult(INVITED, invitation)

    def accept(self, token: str, user: Dict[str, Any]) -> Dict[str, Any]:
        """
        Redeem an invitation for the acting user.

        Returns:
            The organization joined

        Raises:
            InvitationNotFoundError: If the token is unknown or already used
            InvitationEmailMismatchError: If the user's email is not the invited one
        """
        invitation = self.db.invitations.get_by_token(token)
        if not invitation:
            raise InvitationNotFoundError(token)

        if user["email"] != invitation["email"]:
            raise InvitationEmailMismatchError(invitation["email"], user["email"])

        organization_id = invitation["organization_id"]
        if not self.db.organizations.is_member(organization_id, user["id"]):
            self.db.organizations.add_member(organization_id, user["id"], invitation["role"])

        project_id = invitation["project_id"]
        if project_id is not None:
            project = self.db.projects.get_by_id(project_id, organization_id=organization_id)
            if project and not self.db.projects.is_member(project_id, user["id"]):
                self.db.projects.add_member(project_id, user["id"], "member")

        self.db.invitations.delete(invitation["id"])
        logger.info(f"User {user['id']} accepted invitation {invitation['id']} to organization {organization_id}")
        return self._get_organization(organization_id)
