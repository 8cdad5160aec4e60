"""
Repository for projects, project membership and task statuses.
"""
import logging
from typing import Optional, List, Dict, Any

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)

DEFAULT_STATUSES = [
    {"name": "To Do", "color": "#64748b", "position": 0, "is_default": 1, "is_completed": 0},
    {"name": "In Progress", "color": "#3b82f6", "position": 1, "is_default": 0, "is_completed": 0},
    {"name": "In Review", "color": "#8b5cf6", "position": 2, "is_default": 0, "is_completed": 0},
    {"name": "Completed", "color": "#10b981", "position": 3, "is_default": 0, "is_completed": 1},
]


class ProjectRepository(Repository):
    """Repository for project operations."""

    def create(
        self,
        organization_id: int,
        name: str,
        description: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> int:
        now = utc_now()
        project_id = self._insert(
            """
            INSERT INTO projects (organization_id, name, description, start_date, end_date, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (organization_id, name, description, start_date, end_date, now, now)
        )
        logger.info(f"Created project {project_id} in organization {organization_id}")
        return project_id

    def get_by_id(self, project_id: int, organization_id: Optional[int] = None) -> Optional[Dict[str, Any]]:
        """
        Get a project by ID, optionally restricted to one organization.

        Returns:
            Project dictionary, or None if missing or owned by another organization
        """
        if organization_id is not None:
            return self._fetch_one(
                "SELECT * FROM projects WHERE id = ? AND organization_id = ?",
                (project_id, organization_id)
            )
        return self._fetch_one("SELECT * FROM projects WHERE id = ?", (project_id,))

    def list(self, organization_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            "SELECT * FROM projects WHERE organization_id = ? ORDER BY id",
            (organization_id,)
        )

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def is_member(self, project_id: int, user_id: int) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS present FROM project_user WHERE project_id = ? AND user_id = ?",
            (project_id, user_id)
        )
        return row is not None

    def add_member(self, project_id: int, user_id: int, role: str = "member") -> None:
        self._insert(
            "INSERT INTO project_user (project_id, user_id, role, created_at) VALUES (?, ?, ?, ?)",
            (project_id, user_id, role, utc_now())
        )
        logger.info(f"Added user {user_id} to project {project_id} as {role}")

    def get_member_role(self, project_id: int, user_id: int) -> Optional[str]:
        row = self._fetch_one(
            "SELECT role FROM project_user WHERE project_id = ? AND user_id = ?",
            (project_id, user_id)
        )
        return row["role"] if row else None

    def list_members(self, project_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            """
            SELECT u.id, u.name, u.email, pu.role
            FROM project_user pu
            JOIN users u ON u.id = pu.user_id
            WHERE pu.project_id = ?
            ORDER BY u.name
            """,
            (project_id,)
        )

    # ------------------------------------------------------------------
    # Statuses
    # ------------------------------------------------------------------

    def seed_default_statuses(self, project_id: int) -> List[int]:
        """Create the default status set for a new project."""
        now = utc_now()
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            status_ids = []
            for status in DEFAULT_STATUSES:
                status_ids.append(self._execute_insert(
                    cursor,
                    """
                    INSERT INTO task_statuses (project_id, name, color, position, is_default, is_completed, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (project_id, status["name"], status["color"], status["position"],
                     status["is_default"], status["is_completed"], now, now)
                ))
            conn.commit()
            return status_ids
        finally:
            self.adapter.close(conn)

    def get_status(self, status_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if status_id is None:
            return None
        return self._fetch_one("SELECT * FROM task_statuses WHERE id = ?", (status_id,))

    def list_statuses(self, project_id: int) -> List[Dict[str, Any]]:
        return self._fetch_all(
            "SELECT * FROM task_statuses WHERE project_id = ? ORDER BY position, id",
            (project_id,)
        )

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    def create_milestone(self, project_id: int, name: str, due_date: Optional[str] = None) -> int:
        now = utc_now()
        return self._insert(
            "INSERT INTO milestones (project_id, name, due_date, created_at, updated_at) VALUES (?, ?, ?, ?, ?)",
            (project_id, name, due_date, now, now)
        )

    def milestone_exists(self, project_id: int, milestone_id: int) -> bool:
        row = self._fetch_one(
            "SELECT 1 AS present FROM milestones WHERE id = ? AND project_id = ?",
            (milestone_id, project_id)
        )
        return row is not None
