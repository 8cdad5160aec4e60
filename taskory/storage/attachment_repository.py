"""
Repository for attachment records.

An attachment belongs to either a task or a project. The owner is stored as
(attachable_type, attachable_id) and every query names the owner kind
explicitly.
"""
import logging
from typing import Optional, List, Dict, Any, Iterable

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)

OWNER_TASK = "task"
OWNER_PROJECT = "project"
OWNER_TYPES = (OWNER_TASK, OWNER_PROJECT)


class AttachmentRepository(Repository):
    """Repository for attachment operations."""

    def create(
        self,
        owner_type: str,
        owner_id: int,
        user_id: Optional[int],
        file_name: str,
        file_path: str,
        file_size: int,
        mime_type: Optional[str]
    ) -> int:
        """
        Create an attachment record and return its ID.

        Raises:
            ValueError: If owner_type is not 'task' or 'project'
        """
        if owner_type not in OWNER_TYPES:
            raise ValueError(f"Unknown attachment owner type: {owner_type}")
        now = utc_now()
        attachment_id = self._insert(
            """
            INSERT INTO attachments (attachable_type, attachable_id, user_id, file_name, file_path,
                                     file_size, mime_type, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (owner_type, owner_id, user_id, file_name, file_path, file_size, mime_type, now, now)
        )
        logger.info(f"Created attachment {attachment_id} for {owner_type} {owner_id}")
        return attachment_id

    def get_by_id(self, attachment_id: int) -> Optional[Dict[str, Any]]:
        return self._fetch_one("SELECT * FROM attachments WHERE id = ?", (attachment_id,))

    def list_for_owner(self, owner_type: str, owner_id: int) -> List[Dict[str, Any]]:
        """Attachments of one owner, oldest first."""
        return self._fetch_all(
            """
            SELECT * FROM attachments
            WHERE attachable_type = ? AND attachable_id = ?
            ORDER BY created_at ASC, id ASC
            """,
            (owner_type, owner_id)
        )

    def list_for_tasks(self, task_ids: Iterable[int]) -> List[Dict[str, Any]]:
        ids = sorted(set(task_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        return self._fetch_all(
            f"""
            SELECT * FROM attachments
            WHERE attachable_type = '{OWNER_TASK}' AND attachable_id IN ({placeholders})
            ORDER BY created_at ASC, id ASC
            """,
            tuple(ids)
        )

    def list_for_project_tree(self, project_id: int, task_ids: Iterable[int]) -> List[Dict[str, Any]]:
        """
        Attachments of a project and of the given tasks, newest first.
        """
        ids = sorted(set(task_ids))
        query = f"SELECT * FROM attachments WHERE (attachable_type = '{OWNER_PROJECT}' AND attachable_id = ?)"
        params: List[Any] = [project_id]
        if ids:
            query += f" OR (attachable_type = '{OWNER_TASK}' AND attachable_id IN ({', '.join('?' for _ in ids)}))"
            params.extend(ids)
        query += " ORDER BY created_at DESC, id DESC"
        return self._fetch_all(query, tuple(params))

    def delete(self, attachment_id: int) -> bool:
        return self._modify("DELETE FROM attachments WHERE id = ?", (attachment_id,)) > 0
