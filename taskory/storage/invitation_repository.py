"""
Repository for organization invitations.

At most one live invitation exists per (organization, email). Re-inviting
goes through a single INSERT ... ON CONFLICT statement so two concurrent
invites for the same address cannot both insert.
"""
import logging
from typing import Optional, Dict, Any

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)


class InvitationRepository(Repository):
    """Repository for invitation operations."""

    def upsert(
        self,
        organization_id: int,
        email: str,
        token: str,
        role: str = "member",
        project_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Create the invitation for (organization, email) or replace its token,
        role and project.

        Returns:
            The stored invitation dictionary
        """
        now = utc_now()
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            self._execute_with_logging(
                cursor,
                """
                INSERT INTO invitations (email, token, organization_id, project_id, role, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (organization_id, email) DO UPDATE SET
                    token = excluded.token,
                    role = excluded.role,
                    project_id = excluded.project_id,
                    updated_at = excluded.updated_at
                """,
                (email, token, organization_id, project_id, role, now, now)
            )
            self._execute_with_logging(
                cursor,
                "SELECT * FROM invitations WHERE organization_id = ? AND email = ?",
                (organization_id, email)
            )
            invitation = dict(cursor.fetchone())
            conn.commit()
        finally:
            self.adapter.close(conn)

        logger.info(f"Stored invitation {invitation['id']} for {email} to organization {organization_id}")
        return invitation

    def get_by_token(self, token: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM invitations WHERE token = ?", (token,))

    def get_for_email(self, organization_id: int, email: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one(
            "SELECT * FROM invitations WHERE organization_id = ? AND email = ?",
            (organization_id, email)
        )

    def delete(self, invitation_id: int) -> bool:
        return self._modify("DELETE FROM invitations WHERE id = ?", (invitation_id,)) > 0
