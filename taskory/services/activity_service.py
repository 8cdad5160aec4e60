"""
Activity feed service - read-side aggregation of a task's history.
This layer contains no HTTP framework dependencies.

A task feed merges three independent sources: comments, audit rows and file
uploads. The merge is a pure function of the stored rows.
"""
import json
import logging
import math
from typing import Optional, Dict, Any, List

from taskory.config import get_settings
from taskory.database import TaskoryDatabase
from taskory.storage import OWNER_TASK

logger = logging.getLogger(__name__)

COMMENT_ACTION = "comment"
LEGACY_STATUS_ACTION = "status_changed"

# Dashboard sentence per action label; {title} is the task title
_ACTION_SENTENCES = {
    "created": 'created task "{title}"',
    "Status_updated": 'updated status of "{title}"',
    "Assignee_updated": 'changed assignee for "{title}"',
    "Priority_updated": 'updated priority of "{title}"',
    "Due Date_updated": 'changed due date for "{title}"',
    "Title_updated": 'renamed "{title}"',
    "Estimated Hours_updated": 'updated estimated hours for "{title}"',
    "Actual Hours_updated": 'logged hours for "{title}"',
    COMMENT_ACTION: 'commented on "{title}"',
}


def _display(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_activity_content(activity: Dict[str, Any]) -> str:
    """
    One-line description of an audit row.

    Rows written by older releases (a status id stored as an object, or the
    bare 'status_changed' label) are rendered without failing.
    """
    action = activity["action"]
    if action == LEGACY_STATUS_ACTION:
        return "Changed Status"

    old_value = activity.get("old_value")
    new_value = activity.get("new_value")
    field = action.replace("_updated", "")

    old = _display(old_value)
    if isinstance(old_value, dict) and "status_id" in old_value:
        old = f"ID: {old_value['status_id']}"
    return f"Changed {field} from '{old}' to '{_display(new_value)}'"


def describe_action(action: str, task_title: Optional[str]) -> str:
    """Short dashboard sentence for an action label."""
    title = task_title if task_title is not None else "a task"
    template = _ACTION_SENTENCES.get(action, 'updated "{title}"')
    return template.format(title=title)


class ActivityFeedService:
    """Service for task and project activity feeds."""

    def __init__(self, db: TaskoryDatabase, public_storage_url: Optional[str] = None):
        self.db = db
        self.public_storage_url = (public_storage_url or get_settings().public_storage_url).rstrip("/")

    def file_url(self, file_path: str) -> str:
        return f"{self.public_storage_url}/{file_path}"

    def task_feed(self, task_id: int) -> List[Dict[str, Any]]:
        """
        Comments, audit rows and uploads of a task, oldest first.

        Items with the same timestamp keep source order: comments, then
        activities, then files.
        """
        comments = self.db.comments.list_for_task(task_id)
        activities = self.db.activities.list_for_task(task_id, exclude_actions=(COMMENT_ACTION,))
        files = self.db.attachments.list_for_owner(OWNER_TASK, task_id)

        user_ids = {row["user_id"] for row in comments + activities + files if row.get("user_id")}
        users = self.db.users.get_many(user_ids)

        feed = [
            {
                "id": f"c_{comment['id']}",
                "type": "comment",
                "user": users.get(comment["user_id"]),
                "content": comment["content"],
                "created_at": comment["created_at"],
            }
            for comment in comments
        ]
        feed.extend(
            {
                "id": f"a_{activity['id']}",
                "type": "activity",
                "user": users.get(activity["user_id"]),
                "content": render_activity_content(activity),
                "created_at": activity["created_at"],
                "meta": {"old": activity["old_value"], "new": activity["new_value"]},
            }
            for activity in activities
        )
        feed.extend(
            {
                "id": f"f_{attachment['id']}",
                "type": "file",
                "user": users.get(attachment["user_id"]),
                "content": f"Uploaded file: {attachment['file_name']}",
                "created_at": attachment["created_at"],
                "file_url": self.file_url(attachment["file_path"]),
                "file_name": attachment["file_name"],
                "file_path": attachment["file_path"],
            }
            for attachment in files
        )
        feed.sort(key=lambda item: item["created_at"])
        return feed

    def _attach_tasks_and_users(self, activities: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        tasks = self.db.tasks.get_many(activity["task_id"] for activity in activities)
        users = self.db.users.get_many(activity["user_id"] for activity in activities if activity["user_id"])
        for activity in activities:
            task = tasks.get(activity["task_id"])
            activity["task"] = {"id": task["id"], "title": task["title"], "project_id": task["project_id"]} if task else None
            activity["user"] = users.get(activity["user_id"])
        return activities

    def project_feed(self, project_id: int, page: int = 1, per_page: Optional[int] = None) -> Dict[str, Any]:
        """
        One page of a project's audit rows, newest first, with task and user.

        Returns:
            Page dictionary with data, current_page, per_page, total and last_page
        """
        per_page = per_page or get_settings().activity_page_size
        page = max(page, 1)
        activities, total = self.db.activities.paginate_for_project(project_id, page, per_page)
        return {
            "data": self._attach_tasks_and_users(activities),
            "current_page": page,
            "per_page": per_page,
            "total": total,
            "last_page": max(math.ceil(total / per_page), 1),
        }

    def recent_project_activity(self, project_id: int, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Latest audit rows of a project as dashboard sentences."""
        limit = limit or get_settings().dashboard_activity_limit
        activities = self._attach_tasks_and_users(self.db.activities.recent_for_project(project_id, limit))
        return [
            {
                "id": activity["id"],
                "user": activity["user"],
                "task": {"id": activity["task"]["id"], "title": activity["task"]["title"]} if activity["task"] else None,
                "action": describe_action(activity["action"], activity["task"]["title"] if activity["task"] else None),
                "created_at": activity["created_at"],
            }
            for activity in activities
        ]
