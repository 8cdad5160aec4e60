"""
Repository for task rows.

Positions are kept per sibling group: the tasks sharing one project and one
parent value (NULL parent counts as its own group).
"""
import logging
from typing import Optional, List, Dict, Any, Iterable

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)

# Columns a caller may write through create()/update()
WRITABLE_COLUMNS = (
    "project_id", "parent_id", "status_id", "milestone_id", "title", "description",
    "assignee_id", "creator_id", "priority", "estimated_hours", "actual_hours",
    "start_date", "due_date", "position",
)

# Filter key -> (SQL fragment, operator) for date range filters on list_top_level()
_DATE_FILTERS = {
    "date_created_start": ("substr(t.created_at, 1, 10)", ">="),
    "date_created_end": ("substr(t.created_at, 1, 10)", "<="),
    "date_updated_start": ("substr(t.updated_at, 1, 10)", ">="),
    "date_updated_end": ("substr(t.updated_at, 1, 10)", "<="),
    "due_date_start": ("t.due_date", ">="),
    "due_date_end": ("t.due_date", "<="),
}


class TaskRepository(Repository):
    """Repository for task operations."""

    def create(self, fields: Dict[str, Any]) -> int:
        """
        Insert a task and return its ID.

        Args:
            fields: Column values; keys outside WRITABLE_COLUMNS are ignored
        """
        values = {key: fields[key] for key in WRITABLE_COLUMNS if key in fields}
        now = utc_now()
        values["created_at"] = now
        values["updated_at"] = now
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        task_id = self._insert(
            f"INSERT INTO tasks ({columns}) VALUES ({placeholders})",
            tuple(values.values())
        )
        logger.info(f"Created task {task_id} in project {values.get('project_id')}")
        return task_id

    def get_by_id(self, task_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM tasks WHERE id = ?", (task_id,))

    def get_many(self, task_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
        ids = sorted(set(task_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = self._fetch_all(f"SELECT * FROM tasks WHERE id IN ({placeholders})", tuple(ids))
        return {row["id"]: row for row in rows}

    def update(self, task_id: int, changes: Dict[str, Any]) -> bool:
        """
        Write changed columns and bump updated_at.

        Returns:
            True if the task exists
        """
        values = {key: changes[key] for key in WRITABLE_COLUMNS if key in changes}
        values["updated_at"] = utc_now()
        assignments = ", ".join(f"{column} = ?" for column in values)
        return self._modify(
            f"UPDATE tasks SET {assignments} WHERE id = ?",
            tuple(values.values()) + (task_id,)
        ) > 0

    def delete(self, task_id: int) -> bool:
        """Delete a task. Subtasks, activities and comments cascade."""
        deleted = self._modify("DELETE FROM tasks WHERE id = ?", (task_id,)) > 0
        if deleted:
            logger.info(f"Deleted task {task_id}")
        return deleted

    def get_subtree_ids(self, task_id: int) -> List[int]:
        """IDs of a task and every task nested under it."""
        rows = self._fetch_all(
            """
            WITH RECURSIVE subtree(id) AS (
                SELECT id FROM tasks WHERE id = ?
                UNION ALL
                SELECT t.id FROM tasks t JOIN subtree s ON t.parent_id = s.id
            )
            SELECT id FROM subtree
            """,
            (task_id,)
        )
        return [row["id"] for row in rows]

    def list_ids_for_project(self, project_id: int) -> List[int]:
        rows = self._fetch_all("SELECT id FROM tasks WHERE project_id = ?", (project_id,))
        return [row["id"] for row in rows]

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def max_sibling_position(self, project_id: int, parent_id: Optional[int]) -> Optional[int]:
        """
        Highest position in a sibling group.

        Returns:
            The maximum position, or None when the group is empty
        """
        if parent_id is None:
            row = self._fetch_one(
                "SELECT MAX(position) AS max_position FROM tasks WHERE project_id = ? AND parent_id IS NULL",
                (project_id,)
            )
        else:
            row = self._fetch_one(
                "SELECT MAX(position) AS max_position FROM tasks WHERE project_id = ? AND parent_id = ?",
                (project_id, parent_id)
            )
        return row["max_position"] if row else None

    def set_position(self, task_id: int, position: int) -> bool:
        """
        Set one task's position. Committed immediately.

        Returns:
            True if the task exists
        """
        return self._modify(
            "UPDATE tasks SET position = ?, updated_at = ? WHERE id = ?",
            (position, utc_now(), task_id)
        ) > 0

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_top_level(self, project_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        List a project's top-level tasks ordered by position.

        Args:
            project_id: Project ID
            filters: Optional assignee_id, assignee_ids, status_ids and date range keys

        Returns:
            List of task dictionaries with comments_count and subtasks_count
        """
        filters = filters or {}
        conditions = ["t.project_id = ?", "t.parent_id IS NULL"]
        params: List[Any] = [project_id]

        if filters.get("assignee_id") is not None:
            conditions.append("t.assignee_id = ?")
            params.append(filters["assignee_id"])

        for key, column in (("assignee_ids", "t.assignee_id"), ("status_ids", "t.status_id")):
            ids = filters.get(key)
            if ids:
                conditions.append(f"{column} IN ({', '.join('?' for _ in ids)})")
                params.extend(ids)

        for key, (column, operator) in _DATE_FILTERS.items():
            if filters.get(key):
                conditions.append(f"{column} {operator} ?")
                params.append(str(filters[key]))

        query = f"""
            SELECT t.*,
                (SELECT COUNT(*) FROM comments c WHERE c.task_id = t.id) AS comments_count,
                (SELECT COUNT(*) FROM tasks s WHERE s.parent_id = t.id) AS subtasks_count
            FROM tasks t
            WHERE {' AND '.join(conditions)}
            ORDER BY t.position ASC, t.id ASC
        """
        return self._fetch_all(query, tuple(params))

    def list_subtasks(self, parent_ids: Iterable[int]) -> List[Dict[str, Any]]:
        ids = sorted(set(parent_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        return self._fetch_all(
            f"SELECT * FROM tasks WHERE parent_id IN ({placeholders}) ORDER BY position ASC, id ASC",
            tuple(ids)
        )
