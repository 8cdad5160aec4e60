"""
Comment service - posting and deleting task comments.
This layer contains no HTTP framework dependencies.

Posting a comment also records a 'comment' audit row (so project feeds,
which read only audit rows, show it), mails every @mentioned user and stores
the attached files on the task.
"""
import logging
import re
from typing import Optional, Dict, Any, List, Sequence

from taskory.database import TaskoryDatabase
from taskory.exceptions import CommentNotFoundError, PermissionDeniedError, ValidationError
from taskory.models import FileUpload
from taskory.notifications import Notifier, LogNotifier, dispatch, comment_mentioned_message
from taskory.services.activity_service import COMMENT_ACTION
from taskory.services.attachment_service import AttachmentService
from taskory.services.task_service import TaskService
from taskory.storage import OWNER_TASK

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@(\w+)")


def extract_mentions(content: str) -> List[str]:
    """Distinct @Name tokens in order of first appearance."""
    seen = []
    for name in MENTION_PATTERN.findall(content or ""):
        if name not in seen:
            seen.append(name)
    return seen


class CommentService:
    """Service for comment business logic."""

    def __init__(
        self,
        db: TaskoryDatabase,
        attachment_service: AttachmentService,
        notifier: Optional[Notifier] = None
    ):
        self.db = db
        self.attachment_service = attachment_service
        self.notifier = notifier or LogNotifier()

    def post_comment(
        self,
        task_id: int,
        author_id: int,
        content: Optional[str] = None,
        files: Sequence[FileUpload] = ()
    ) -> Dict[str, Any]:
        """
        Post a comment with optional files.

        Args:
            task_id: Task being commented on
            author_id: Commenting user
            content: Comment text, may be empty when files are attached
            files: Files to attach to the task

        Returns:
            The comment dictionary with 'user' and 'attachments'

        Raises:
            TaskNotFoundError: If the task does not exist
            ValidationError: If neither content nor files are given, or a file is rejected
        """
        task = TaskService(self.db).get_task(task_id)
        content = content or ""
        if not content.strip() and not files:
            raise ValidationError("A comment needs content or at least one file.", field="content")
        for upload in files:
            self.attachment_service.validate_upload(upload)

        comment_id = self.db.comments.create(task_id, author_id, content)
        comment = self.db.comments.get_by_id(comment_id)
        self.db.activities.append(task_id, author_id, COMMENT_ACTION, None, {"content": content})

        self._notify_mentions(task, comment, author_id)

        attachments = [
            self.attachment_service.upload(OWNER_TASK, task_id, upload, author_id)
            for upload in files
        ]

        comment["user"] = self.db.users.get_by_id(author_id)
        comment["attachments"] = attachments
        logger.info(f"Comment {comment_id} posted on task {task_id} with {len(attachments)} file(s)")
        return comment

    def _notify_mentions(self, task: Dict[str, Any], comment: Dict[str, Any], author_id: int) -> int:
        names = extract_mentions(comment["content"])
        if not names:
            return 0

        try:
            users = self.db.users.find_by_names(names)
            project = self.db.projects.get_by_id(task["project_id"])
            author = self.db.users.get_by_id(author_id)
        except Exception as e:
            logger.warning(f"Mention lookup failed for comment {comment['id']}: {e}")
            return 0

        sent = 0
        for user in users:
            if user["id"] == author_id or not user.get("email"):
                continue
            message = comment_mentioned_message(user, author, task, comment, project["organization_id"])
            if dispatch(self.notifier, message):
                sent += 1
        logger.debug(f"Comment {comment['id']}: {sent} mention notification(s) sent")
        return sent

    def get_comment(self, comment_id: int) -> Dict[str, Any]:
        comment = self.db.comments.get_by_id(comment_id)
        if not comment:
            raise CommentNotFoundError(comment_id)
        return comment

    def delete_comment(self, comment_id: int, acting_user_id: int) -> bool:
        """
        Delete a comment. Only its author may do so.

        The 'comment' audit row written at post time is kept.

        Raises:
            CommentNotFoundError: If the comment does not exist
            PermissionDeniedError: If the acting user is not the author
        """
        comment = self.get_comment(comment_id)
        if comment["user_id"] != acting_user_id:
            raise PermissionDeniedError(context={"comment_id": comment_id})
        self.db.comments.delete(comment_id)
        logger.info(f"Deleted comment {comment_id}")
        return True
