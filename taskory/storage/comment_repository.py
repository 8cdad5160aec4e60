"""
Repository for comment operations.
"""
import logging
from typing import Optional, List, Dict, Any

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)


class CommentRepository(Repository):
    """Repository for comment operations."""

    def create(self, task_id: int, user_id: int, content: str) -> int:
        """
        Create a comment on a task and return its ID.

        Args:
            task_id: Task ID
            user_id: Author
            content: Comment text; may be empty when the comment only carries files

        Returns:
            Comment ID
        """
        now = utc_now()
        comment_id = self._insert(
            """
            INSERT INTO comments (task_id, user_id, content, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (task_id, user_id, content, now, now)
        )
        logger.info(f"Created comment {comment_id} on task {task_id} by user {user_id}")
        return comment_id

    def get_by_id(self, comment_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM comments WHERE id = ?", (comment_id,))

    def list_for_task(self, task_id: int) -> List[Dict[str, Any]]:
        """
        Get all comments for a task, oldest first.

        Args:
            task_id: Task ID

        Returns:
            List of comment dictionaries
        """
        return self._fetch_all(
            "SELECT * FROM comments WHERE task_id = ? ORDER BY created_at ASC, id ASC",
            (task_id,)
        )

    def delete(self, comment_id: int) -> bool:
        """
        Delete a comment. Ownership is checked by the caller.

        Returns:
            True if a row was removed
        """
        success = self._modify("DELETE FROM comments WHERE id = ?", (comment_id,)) > 0
        if success:
            logger.info(f"Deleted comment {comment_id}")
        return success
