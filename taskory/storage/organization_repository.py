"""
Repository for organizations and organization membership.
"""
import logging
from typing import Optional, List, Dict, Any

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)


class OrganizationRepository(Repository):
    """Repository for organization operations."""

    def create(self, name: str, owner_id: Optional[int] = None) -> int:
        """
        Create an organization and return its ID.

        The owner, when given, is attached as a member with role 'owner'.
        """
        now = utc_now()
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            organization_id = self._execute_insert(
                cursor,
                "INSERT INTO organizations (name, owner_id, created_at, updated_at) VALUES (?, ?, ?, ?)",
                (name, owner_id, now, now)
            )
            if owner_id is not None:
                self._execute_with_logging(
                    cursor,
                    "INSERT INTO organization_user (organization_id, user_id, role, created_at) VALUES (?, ?, 'owner', ?)",
                    (organization_id, owner_id, now)
                )
            conn.commit()
            logger.info(f"Created organization {organization_id}: {name}")
            return organization_id
        except Exception:
            conn.rollback()
            raise
        finally:
            self.adapter.close(conn)

    def get_by_id(self, organization_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM organizations WHERE id = ?", (organization_id,))

    def is_member(self, organization_id: int, user_id: int) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS present FROM organization_user WHERE organization_id = ? AND user_id = ?",
            (organization_id, user_id)
        )
        return row is not None

    def add_member(self, organization_id: int, user_id: int, role: str = "member") -> None:
        """Attach a user to an organization with the given role."""
        self._insert(
            "INSERT INTO organization_user (organization_id, user_id, role, created_at) VALUES (?, ?, ?, ?)",
            (organization_id, user_id, role, utc_now())
        )
        logger.info(f"Added user {user_id} to organization {organization_id} as {role}")

    def get_member_role(self, organization_id: int, user_id: int) -> Optional[str]:
        row = self._fetch_one(
            "SELECT role FROM organization_user WHERE organization_id = ? AND user_id = ?",
            (organization_id, user_id)
        )
        return row["role"] if row else None

    def list_members(self, organization_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT u.id, u.name, u.email, ou.role
            FROM organization_user ou
            JOIN users u ON u.id = ou.user_id
            WHERE ou.organization_id = ?
            ORDER BY u.name
            """,
            (organization_id,)
        )

    def list_for_user(self, user_id: int) -> List[Dict[str, Any]]:
        """Organizations the user owns or belongs to."""
        return self._fetch_all(
            """
            SELECT DISTINCT o.* FROM organizations o
            LEFT JOIN organization_user ou ON ou.organization_id = o.id
            WHERE o.owner_id = ? OR ou.user_id = ?
            ORDER BY o.id
            """,
            (user_id, user_id)
        )
