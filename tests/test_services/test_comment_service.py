"""
Unit tests for CommentService.
"""
import os

import pytest

from taskory.exceptions import PermissionDeniedError, TaskNotFoundError, ValidationError
from taskory.models import FileUpload
from taskory.services import ActivityFeedService, AttachmentService, CommentService
from taskory.services.comment_service import extract_mentions


@pytest.fixture
def service(workspace, blob_store, notifier):
    return CommentService(workspace["db"], AttachmentService(workspace["db"], blob_store), notifier)


@pytest.fixture
def task(workspace, make_task):
    return make_task(workspace["project_id"], "Review draft")


def test_extract_mentions_is_distinct_and_ordered():
    assert extract_mentions("@Bob and @alice_2, thanks @Bob!") == ["Bob", "alice_2"]
    assert extract_mentions("mail me at a@") == []
    assert extract_mentions(None) == []


class TestPostComment:
    """Tests for post_comment method."""

    def test_mention_sends_one_mail(self, service, workspace, task, make_user, notifier):
        make_user("Alice")

        comment = service.post_comment(task["id"], workspace["owner"]["id"], "Hi @Alice, please check")

        assert comment["content"] == "Hi @Alice, please check"
        assert comment["user"]["name"] == "Owner"
        assert comment["attachments"] == []
        assert len(notifier.sent) == 1
        assert notifier.sent[0].to == "alice@example.com"
        assert notifier.sent[0].kind == "comment_mentioned"

    def test_unknown_mention_sends_nothing(self, service, workspace, task, notifier):
        service.post_comment(task["id"], workspace["owner"]["id"], "ping @Nobody")
        assert notifier.sent == []

    def test_author_is_not_mailed(self, service, workspace, task, notifier):
        service.post_comment(task["id"], workspace["owner"]["id"], "note to self @Owner")
        assert notifier.sent == []

    def test_records_comment_activity(self, service, workspace, task):
        service.post_comment(task["id"], workspace["owner"]["id"], "Done")

        activities = workspace["db"].activities.list_for_task(task["id"])
        assert [a["action"] for a in activities] == ["comment"]
        assert activities[0]["new_value"] == {"content": "Done"}

    def test_files_are_stored_on_task(self, service, workspace, task, blob_store):
        files = [
            FileUpload("shot.png", b"\x89PNG", "image/png"),
            FileUpload("log.txt", b"trace", "text/plain"),
        ]

        comment = service.post_comment(task["id"], workspace["owner"]["id"], None, files)

        assert comment["content"] == ""
        assert [a["file_name"] for a in comment["attachments"]] == ["shot.png", "log.txt"]
        for attachment in comment["attachments"]:
            assert attachment["attachable_type"] == "task"
            assert attachment["attachable_id"] == task["id"]
            assert os.path.exists(os.path.join(blob_store.root, attachment["file_path"]))

    def test_requires_content_or_files(self, service, workspace, task):
        with pytest.raises(ValidationError):
            service.post_comment(task["id"], workspace["owner"]["id"], "   ")
        assert workspace["db"].comments.list_for_task(task["id"]) == []

    def test_rejected_file_stores_nothing(self, service, workspace, task):
        with pytest.raises(ValidationError):
            service.post_comment(
                task["id"],
                workspace["owner"]["id"],
                "see attached",
                [FileUpload("run.sh", b"#!/bin/sh", "application/x-sh")]
            )
        assert workspace["db"].comments.list_for_task(task["id"]) == []

    def test_mail_failure_keeps_comment(self, workspace, task, make_user, blob_store, failing_notifier):
        service = CommentService(workspace["db"], AttachmentService(workspace["db"], blob_store), failing_notifier)
        make_user("Alice")

        comment = service.post_comment(task["id"], workspace["owner"]["id"], "@Alice over to you")

        assert workspace["db"].comments.get_by_id(comment["id"])["content"] == "@Alice over to you"
        actions = [a["action"] for a in workspace["db"].activities.list_for_task(task["id"])]
        assert actions == ["comment"]

    def test_unknown_task(self, service, workspace):
        with pytest.raises(TaskNotFoundError):
            service.post_comment(404, workspace["owner"]["id"], "hello")


class TestDeleteComment:
    """Tests for delete_comment method."""

    def test_author_deletes_and_activity_remains(self, service, workspace, task):
        comment = service.post_comment(task["id"], workspace["owner"]["id"], "temporary")

        assert service.delete_comment(comment["id"], workspace["owner"]["id"]) is True

        assert workspace["db"].comments.get_by_id(comment["id"]) is None
        actions = [a["action"] for a in workspace["db"].activities.list_for_task(task["id"])]
        assert actions == ["comment"]

        feeds = ActivityFeedService(workspace["db"], public_storage_url="https://files.example.com/storage")
        assert f"c_{comment['id']}" not in [item["id"] for item in feeds.task_feed(task["id"])]
        project_rows = feeds.project_feed(workspace["project_id"])["data"]
        assert [row["action"] for row in project_rows] == ["comment"]
        assert project_rows[0]["new_value"] == {"content": "temporary"}

    def test_other_user_is_refused(self, service, workspace, task, make_user):
        comment = service.post_comment(task["id"], workspace["owner"]["id"], "mine")
        intruder = make_user("Mallory")

        with pytest.raises(PermissionDeniedError):
            service.delete_comment(comment["id"], intruder["id"])
        assert workspace["db"].comments.get_by_id(comment["id"]) is not None
