"""
Tests for the task and project activity feeds.
"""
import pytest

from taskory.services import ActivityFeedService
from taskory.services.activity_service import describe_action, render_activity_content
from taskory.storage import OWNER_TASK


@pytest.fixture
def feeds(workspace):
    return ActivityFeedService(workspace["db"], public_storage_url="https://files.example.com/storage/")


def _stamp(second):
    return f"2024-01-01T00:00:{second:02d}.000000+00:00"


class TestTaskFeed:
    """Tests for task_feed method."""

    def test_merges_sources_by_timestamp(self, feeds, workspace, make_task, backdate):
        db = workspace["db"]
        owner = workspace["owner"]
        task = make_task(workspace["project_id"])

        activity_id = db.activities.append(task["id"], owner["id"], "Status_updated", "To Do", "Done")
        comment_id = db.comments.create(task["id"], owner["id"], "Looks good")
        attachment_id = db.attachments.create(
            OWNER_TASK, task["id"], owner["id"], "plan.pdf", "attachments/abc.pdf", 10, "application/pdf"
        )
        backdate("task_activities", activity_id, _stamp(1))
        backdate("comments", comment_id, _stamp(2))
        backdate("attachments", attachment_id, _stamp(3))

        feed = feeds.task_feed(task["id"])

        assert [item["id"] for item in feed] == [f"a_{activity_id}", f"c_{comment_id}", f"f_{attachment_id}"]
        activity, comment, upload = feed
        assert comment["type"] == "comment"
        assert comment["content"] == "Looks good"
        assert comment["user"]["name"] == "Owner"
        assert activity["content"] == "Changed Status from 'To Do' to 'Done'"
        assert activity["meta"] == {"old": "To Do", "new": "Done"}
        assert upload["content"] == "Uploaded file: plan.pdf"
        assert upload["file_url"] == "https://files.example.com/storage/attachments/abc.pdf"

    def test_ties_keep_source_order(self, feeds, workspace, make_task, backdate):
        db = workspace["db"]
        owner = workspace["owner"]
        task = make_task(workspace["project_id"])

        attachment_id = db.attachments.create(
            OWNER_TASK, task["id"], owner["id"], "a.txt", "attachments/a.txt", 1, "text/plain"
        )
        activity_id = db.activities.append(task["id"], owner["id"], "Title_updated", "Old", "New")
        comment_id = db.comments.create(task["id"], owner["id"], "same instant")
        for table, row_id in (("attachments", attachment_id), ("task_activities", activity_id), ("comments", comment_id)):
            backdate(table, row_id, _stamp(5))

        types = [item["type"] for item in feeds.task_feed(task["id"])]
        assert types == ["comment", "activity", "file"]

    def test_comment_activity_rows_are_not_duplicated(self, feeds, workspace, make_task):
        db = workspace["db"]
        task = make_task(workspace["project_id"])
        db.comments.create(task["id"], workspace["owner"]["id"], "hi")
        db.activities.append(task["id"], workspace["owner"]["id"], "comment", None, {"content": "hi"})

        feed = feeds.task_feed(task["id"])
        assert [item["type"] for item in feed] == ["comment"]

    def test_empty_task(self, feeds, workspace, make_task):
        task = make_task(workspace["project_id"])
        assert feeds.task_feed(task["id"]) == []


class TestRenderActivityContent:
    """Tests for render_activity_content function."""

    def test_numbers_render_without_trailing_zero(self):
        activity = {"action": "Estimated Hours_updated", "old_value": 3.0, "new_value": 4.5}
        assert render_activity_content(activity) == "Changed Estimated Hours from '3' to '4.5'"

    def test_null_values_render_empty(self):
        activity = {"action": "Due Date_updated", "old_value": None, "new_value": "2024-05-01"}
        assert render_activity_content(activity) == "Changed Due Date from '' to '2024-05-01'"

    def test_legacy_status_label(self):
        assert render_activity_content({"action": "status_changed", "old_value": 1, "new_value": 2}) == "Changed Status"

    def test_legacy_status_object(self):
        activity = {"action": "Status_updated", "old_value": {"status_id": 3}, "new_value": {"status_id": 4}}
        assert render_activity_content(activity) == "Changed Status from 'ID: 3' to '{\"status_id\":4}'"


class TestProjectFeed:
    """Tests for project_feed and recent_project_activity."""

    def test_paginates_newest_first(self, feeds, workspace, make_task):
        db = workspace["db"]
        task = make_task(workspace["project_id"], "Busy task")
        ids = [db.activities.append(task["id"], workspace["owner"]["id"], "Title_updated", str(i), str(i + 1))
               for i in range(55)]

        first = feeds.project_feed(workspace["project_id"], page=1)
        second = feeds.project_feed(workspace["project_id"], page=2)

        assert first["total"] == 55
        assert first["per_page"] == 50
        assert first["last_page"] == 2
        assert len(first["data"]) == 50
        assert first["data"][0]["id"] == ids[-1]
        assert first["data"][0]["task"] == {"id": task["id"], "title": "Busy task", "project_id": workspace["project_id"]}
        assert first["data"][0]["user"]["name"] == "Owner"
        assert [a["id"] for a in second["data"]] == list(reversed(ids[:5]))

    def test_excludes_other_projects(self, feeds, workspace, make_task):
        db = workspace["db"]
        other_project = db.projects.create(workspace["org_id"], "Elsewhere")
        other_task = make_task(other_project)
        db.activities.append(other_task["id"], None, "created", None, {"title": "x"})

        page = feeds.project_feed(workspace["project_id"])
        assert page["total"] == 0
        assert page["data"] == []
        assert page["last_page"] == 1

    def test_dashboard_sentences(self, feeds, workspace, make_task):
        db = workspace["db"]
        task = make_task(workspace["project_id"], "Ship it")
        db.activities.append(task["id"], workspace["owner"]["id"], "created", None, {"title": "Ship it"})
        db.activities.append(task["id"], workspace["owner"]["id"], "Assignee_updated", "Unassigned", "Owner")

        recent = feeds.recent_project_activity(workspace["project_id"])

        assert [item["action"] for item in recent] == [
            'changed assignee for "Ship it"',
            'created task "Ship it"',
        ]
        assert recent[0]["task"] == {"id": task["id"], "title": "Ship it"}


def test_describe_action_fallbacks():
    assert describe_action("Parent Task_updated", "Docs") == 'updated "Docs"'
    assert describe_action("created", None) == 'created task "a task"'
