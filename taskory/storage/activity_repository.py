"""
Repository for the task audit trail.

Rows are append-only: there is no update path and no updated_at column.
old_value and new_value are stored as JSON so that scalars, strings and
small objects round-trip; rows written by older releases may hold plain
text, which is returned unchanged.
"""
import json
import logging
from typing import Optional, List, Dict, Any, Tuple

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, default=str)


def _decode(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return raw


class ActivityRepository(Repository):
    """Repository for task activity operations."""

    def _parse_values(self, activity: Dict[str, Any]) -> Dict[str, Any]:
        activity["old_value"] = _decode(activity.get("old_value"))
        activity["new_value"] = _decode(activity.get("new_value"))
        return activity

    def append(
        self,
        task_id: int,
        user_id: Optional[int],
        action: str,
        old_value: Any = None,
        new_value: Any = None
    ) -> int:
        """
        Append one activity row and return its ID.

        Args:
            task_id: Owning task
            user_id: Acting user (None for system-generated rows)
            action: 'created', '<Field>_updated', 'comment' or a legacy label
            old_value: JSON-compatible display value before the change
            new_value: JSON-compatible display value after the change
        """
        activity_id = self._insert(
            """
            INSERT INTO task_activities (task_id, user_id, action, old_value, new_value, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (task_id, user_id, action, _encode(old_value), _encode(new_value), utc_now())
        )
        logger.debug(f"Recorded activity {activity_id} ({action}) on task {task_id}")
        return activity_id

    def list_for_task(self, task_id: int, exclude_actions: Tuple[str, ...] = ()) -> List[Dict[str, Any]]:
        """
        List a task's activities in insertion order.

        Args:
            task_id: Task ID
            exclude_actions: Action labels to leave out

        Returns:
            List of activity dictionaries with decoded values
        """
        query = "SELECT * FROM task_activities WHERE task_id = ?"
        params: List[Any] = [task_id]
        if exclude_actions:
            query += f" AND action NOT IN ({', '.join('?' for _ in exclude_actions)})"
            params.extend(exclude_actions)
        query += " ORDER BY created_at ASC, id ASC"
        return [self._parse_values(row) for row in self._fetch_all(query, tuple(params))]

    def paginate_for_project(self, project_id: int, page: int, per_page: int) -> Tuple[List[Dict[str, Any]], int]:
        """
        One page of a project's activities, newest first.

        Returns:
            Tuple of (activity dictionaries, total row count)
        """
        total_row = self._fetch_one(
            """
            SELECT COUNT(*) AS total FROM task_activities a
            JOIN tasks t ON t.id = a.task_id
            WHERE t.project_id = ?
            """,
            (project_id,)
        )
        rows = self._fetch_all(
            """
            SELECT a.* FROM task_activities a
            JOIN tasks t ON t.id = a.task_id
            WHERE t.project_id = ?
            ORDER BY a.created_at DESC, a.id DESC
            LIMIT ? OFFSET ?
            """,
            (project_id, per_page, (page - 1) * per_page)
        )
        return [self._parse_values(row) for row in rows], (total_row["total"] if total_row else 0)

    def recent_for_project(self, project_id: int, limit: int) -> List[Dict[str, Any]]:
        activities, _ = self.paginate_for_project(project_id, 1, limit)
        return activities
