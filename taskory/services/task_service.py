"""
Task service - business logic for task mutations.
This layer contains no HTTP framework dependencies.

Every update is diffed against a snapshot of the task over a fixed table of
tracked fields. Each changed field becomes one audit row holding display
values (status and user names rather than ids), so the trail stays readable
after the referenced rows are renamed or removed.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any, List, Callable

from taskory.database import TaskoryDatabase
from taskory.exceptions import TaskNotFoundError, ProjectNotFoundError, ValidationError
from taskory.file_storage import BlobStore
from taskory.notifications import Notifier, LogNotifier, dispatch, task_assigned_message
from taskory.storage import OWNER_TASK

logger = logging.getLogger(__name__)

# Columns a task update may change
UPDATABLE_COLUMNS = (
    "title", "description", "parent_id", "status_id", "milestone_id", "assignee_id",
    "priority", "estimated_hours", "actual_hours", "start_date", "due_date",
)


@dataclass(frozen=True)
class TrackedField:
    """A task column whose changes are written to the audit trail."""
    column: str
    label: str
    display: Callable[["TaskService", Any], Any]

    @property
    def action(self) -> str:
        return f"{self.label}_updated"


def _status_name(service: "TaskService", status_id: Any) -> str:
    status = service.db.projects.get_status(status_id)
    return status["name"] if status else "None"


def _priority_label(service: "TaskService", priority: Any) -> str:
    text = priority or "None"
    return text[:1].upper() + text[1:]


def _assignee_name(service: "TaskService", user_id: Any) -> str:
    user = service.db.users.get_by_id(user_id)
    return user["name"] if user else "Unassigned"


def _raw(service: "TaskService", value: Any) -> Any:
    return value


# Checked in this order; audit rows of one update are appended in the same order
TRACKED_FIELDS = (
    TrackedField("status_id", "Status", _status_name),
    TrackedField("priority", "Priority", _priority_label),
    TrackedField("assignee_id", "Assignee", _assignee_name),
    TrackedField("due_date", "Due Date", _raw),
    TrackedField("title", "Title", _raw),
    TrackedField("parent_id", "Parent Task", _raw),
    TrackedField("estimated_hours", "Estimated Hours", _raw),
    TrackedField("actual_hours", "Actual Hours", _raw),
)


def _comparable(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    return value


class TaskService:
    """Service for task business logic."""

    def __init__(
        self,
        db: TaskoryDatabase,
        notifier: Optional[Notifier] = None,
        blob_store: Optional[BlobStore] = None
    ):
        """
        Initialize task service.

        Args:
            db: Database with task, activity and user repositories
            notifier: Mail backend for assignment notices (logs only when omitted)
            blob_store: Blob store holding attachment files, used on delete
        """
        self.db = db
        self.notifier = notifier or LogNotifier()
        self.blob_store = blob_store

    def get_task(self, task_id: int) -> Dict[str, Any]:
        task = self.db.tasks.get_by_id(task_id)
        if not task:
            raise TaskNotFoundError(task_id)
        return task

    def validate_references(self, project_id: int, fields: Dict[str, Any], task_id: Optional[int] = None) -> None:
        """
        Check that foreign keys in fields point at rows usable from the project.

        Raises:
            ValidationError: If a status, parent task, milestone or assignee is unknown
        """
        status_id = fields.get("status_id")
        if status_id is not None:
            status = self.db.projects.get_status(status_id)
            if not status or status["project_id"] != project_id:
                raise ValidationError("The selected status is invalid.", field="status_id", value=status_id)

        parent_id = fields.get("parent_id")
        if parent_id is not None:
            parent = self.db.tasks.get_by_id(parent_id)
            if not parent or parent["project_id"] != project_id:
                raise ValidationError("The selected parent task is invalid.", field="parent_id", value=parent_id)
            if task_id is not None and parent_id in self.db.tasks.get_subtree_ids(task_id):
                raise ValidationError("A task cannot be nested under itself.", field="parent_id", value=parent_id)

        milestone_id = fields.get("milestone_id")
        if milestone_id is not None and not self.db.projects.milestone_exists(project_id, milestone_id):
            raise ValidationError("The selected milestone is invalid.", field="milestone_id", value=milestone_id)

        assignee_id = fields.get("assignee_id")
        if assignee_id is not None and not self.db.users.get_by_id(assignee_id):
            raise ValidationError("The selected assignee is invalid.", field="assignee_id", value=assignee_id)

    def create_task(self, fields: Dict[str, Any], acting_user_id: Optional[int]) -> Dict[str, Any]:
        """
        Create a task and record its 'created' activity.

        Args:
            fields: Column values; project_id and title are required
            acting_user_id: User performing the request

        Returns:
            Created task dictionary
        """
        project_id = fields["project_id"]
        if not self.db.projects.get_by_id(project_id):
            raise ProjectNotFoundError(project_id)

        values = dict(fields)
        if values.get("position") is None:
            max_position = self.db.tasks.max_sibling_position(project_id, values.get("parent_id"))
            values["position"] = max_position + 1 if max_position is not None else 0
        if values.get("creator_id") is None:
            values["creator_id"] = acting_user_id

        task_id = self.db.tasks.create(values)
        task = self.db.tasks.get_by_id(task_id)
        self.db.activities.append(task_id, acting_user_id, "created", None, {"title": task["title"]})
        return task

    def diff(self, before: Dict[str, Any], changes: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Display-level changes for the tracked fields an update would alter.

        Returns:
            List of {"field", "action", "old", "new"} in tracked-field order
        """
        entries = []
        for tracked in TRACKED_FIELDS:
            if tracked.column not in changes:
                continue
            old_value = before.get(tracked.column)
            new_value = changes[tracked.column]
            if _comparable(old_value) == _comparable(new_value):
                continue
            entries.append({
                "field": tracked.label,
                "action": tracked.action,
                "old": tracked.display(self, old_value),
                "new": tracked.display(self, new_value),
            })
        return entries

    def update_task(self, task_id: int, fields: Dict[str, Any], acting_user_id: Optional[int]) -> Dict[str, Any]:
        """
        Apply a partial update, append one audit row per changed tracked
        field and notify a newly assigned user.

        Args:
            task_id: Task to update
            fields: Columns to change; keys outside UPDATABLE_COLUMNS are ignored
            acting_user_id: User performing the request

        Returns:
            Updated task dictionary

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        before = self.get_task(task_id)
        changes = {key: fields[key] for key in UPDATABLE_COLUMNS if key in fields}
        entries = self.diff(before, changes)

        if changes:
            self.db.tasks.update(task_id, changes)
        for entry in entries:
            self.db.activities.append(task_id, acting_user_id, entry["action"], entry["old"], entry["new"])

        task = self.db.tasks.get_by_id(task_id)
        if entries:
            logger.info(
                f"Updated task {task_id}: {', '.join(entry['field'] for entry in entries)}",
                extra={"task_id": task_id, "user_id": acting_user_id}
            )

        assignee_changed = any(entry["action"] == "Assignee_updated" for entry in entries)
        if assignee_changed and task.get("assignee_id"):
            self._notify_assignee(task, acting_user_id)
        return task

    def _notify_assignee(self, task: Dict[str, Any], acting_user_id: Optional[int]) -> None:
        assignee = self.db.users.get_by_id(task["assignee_id"])
        if not assignee or not assignee.get("email"):
            return
        project = self.db.projects.get_by_id(task["project_id"])
        if not project:
            return
        message = task_assigned_message(
            assignee,
            task,
            project["organization_id"],
            assigned_by=self.db.users.get_by_id(acting_user_id)
        )
        dispatch(self.notifier, message)

    def delete_task(self, task_id: int) -> bool:
        """
        Delete a task with its subtasks.

        Activities and comments go with the task rows; attachment records and
        their blobs are removed here.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        self.get_task(task_id)
        subtree_ids = self.db.tasks.get_subtree_ids(task_id)
        attachments = self.db.attachments.list_for_tasks(subtree_ids)

        self.db.tasks.delete(task_id)

        for attachment in attachments:
            self.db.attachments.delete(attachment["id"])
            self._delete_blob(attachment["file_path"])

        logger.info(f"Deleted task {task_id} ({len(subtree_ids)} task(s), {len(attachments)} attachment(s))")
        return True

    def _delete_blob(self, path: str) -> None:
        if self.blob_store is None:
            return
        try:
            self.blob_store.delete(path)
        except OSError as e:
            logger.warning(f"Failed to delete blob {path}: {e}")

    def list_tasks(self, project_id: int, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Top-level tasks of a project in position order, each with its
        subtasks and its assignee, status and creator attached.
        """
        tasks = self.db.tasks.list_top_level(project_id, filters)
        subtasks = self.db.tasks.list_subtasks(task["id"] for task in tasks)

        user_ids = set()
        for task in tasks + subtasks:
            user_ids.update(uid for uid in (task.get("assignee_id"), task.get("creator_id")) if uid)
        users = self.db.users.get_many(user_ids)
        statuses = {status["id"]: status for status in self.db.projects.list_statuses(project_id)}

        def expand(task: Dict[str, Any]) -> Dict[str, Any]:
            task["assignee"] = users.get(task.get("assignee_id"))
            task["creator"] = users.get(task.get("creator_id"))
            task["status"] = statuses.get(task.get("status_id"))
            return task

        by_parent: Dict[int, List[Dict[str, Any]]] = {}
        for subtask in subtasks:
            by_parent.setdefault(subtask["parent_id"], []).append(expand(subtask))

        for task in tasks:
            expand(task)
            task["subtasks"] = by_parent.get(task["id"], [])
        return tasks
