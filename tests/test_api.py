"""
HTTP tests for the API routes, run through FastAPI's TestClient.
"""
import pytest

OWNER = {"Authorization": "Bearer owner-token"}


@pytest.fixture
def task(workspace, make_task):
    return make_task(workspace["project_id"], "API task", status_id=workspace["statuses"][0]["id"])


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "X-Request-ID" in response.headers


def test_missing_token_is_rejected(client, workspace):
    response = client.get(f"/api/projects/{workspace['project_id']}")
    assert response.status_code == 401


def test_unknown_token_is_rejected(client, workspace):
    response = client.get(f"/api/projects/{workspace['project_id']}", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


def test_outsider_gets_403(client, workspace, make_user, task):
    make_user("Outsider", token="outsider-token")

    response = client.get(f"/api/tasks/{task['id']}", headers={"Authorization": "Bearer outsider-token"})

    assert response.status_code == 403
    assert response.json()["status"] == "error"


class TestTaskRoutes:
    """Tests for /api/tasks."""

    def test_create_returns_envelope(self, client, workspace):
        response = client.post(
            "/api/tasks",
            json={"project_id": workspace["project_id"], "title": "From API", "due_date": "2024-06-01"},
            headers=OWNER,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Task created successfully"
        assert body["data"]["title"] == "From API"
        assert body["data"]["due_date"] == "2024-06-01"

    def test_create_validates_title(self, client, workspace):
        response = client.post("/api/tasks", json={"project_id": workspace["project_id"], "title": ""}, headers=OWNER)
        assert response.status_code == 422

    def test_update_writes_audit_rows(self, client, workspace, task):
        new_status = workspace["statuses"][1]

        response = client.patch(
            f"/api/tasks/{task['id']}",
            json={"status_id": new_status["id"], "priority": "low"},
            headers=OWNER,
        )

        assert response.status_code == 200
        assert response.json()["data"]["priority"] == "low"
        feed = client.get(f"/api/tasks/{task['id']}/comments", headers=OWNER).json()["data"]
        assert [item["content"] for item in feed] == [
            "Changed Status from 'To Do' to 'In Progress'",
            "Changed Priority from 'Medium' to 'Low'",
        ]

    def test_update_rejects_null_title(self, client, task):
        response = client.patch(f"/api/tasks/{task['id']}", json={"title": None}, headers=OWNER)
        assert response.status_code == 422

    def test_update_rejects_foreign_status(self, client, workspace, task):
        db = workspace["db"]
        other_project = db.projects.create(workspace["org_id"], "Other")
        foreign_status = db.projects.seed_default_statuses(other_project)[0]

        response = client.patch(f"/api/tasks/{task['id']}", json={"status_id": foreign_status}, headers=OWNER)
        assert response.status_code == 422

    def test_list_filters_by_project(self, client, workspace, task):
        response = client.get("/api/tasks", params={"project_id": workspace["project_id"]}, headers=OWNER)

        assert response.status_code == 200
        assert [t["id"] for t in response.json()["data"]] == [task["id"]]

    def test_delete(self, client, workspace, task):
        response = client.delete(f"/api/tasks/{task['id']}", headers=OWNER)

        assert response.status_code == 200
        assert response.json()["data"] == []
        assert client.get(f"/api/tasks/{task['id']}", headers=OWNER).status_code == 404

    def test_reorder_returns_empty_body(self, client, workspace, make_task):
        tasks = [make_task(workspace["project_id"], f"T{i}") for i in range(3)]

        response = client.post(
            "/api/tasks/reorder",
            json={"tasks": [{"id": t["id"], "position": 2 - i} for i, t in enumerate(tasks)]},
            headers=OWNER,
        )

        assert response.status_code == 200
        assert response.content == b""
        db = workspace["db"]
        assert [db.tasks.get_by_id(t["id"])["position"] for t in tasks] == [2, 1, 0]

    def test_reorder_unknown_task(self, client, task):
        response = client.post(
            "/api/tasks/reorder",
            json={"tasks": [{"id": task["id"], "position": 0}, {"id": 9999, "position": 1}]},
            headers=OWNER,
        )
        assert response.status_code == 422


class TestCommentRoutes:
    """Tests for posting and deleting comments."""

    def test_post_comment_with_file(self, client, task):
        response = client.post(
            f"/api/tasks/{task['id']}/comments",
            data={"content": "see log"},
            files=[("files", ("log.txt", b"trace", "text/plain"))],
            headers=OWNER,
        )

        assert response.status_code == 201
        comment = response.json()["data"]
        assert comment["content"] == "see log"
        assert comment["attachments"][0]["file_name"] == "log.txt"

        feed = client.get(f"/api/tasks/{task['id']}/comments", headers=OWNER).json()["data"]
        assert {item["type"] for item in feed} == {"comment", "file"}

    def test_post_empty_comment(self, client, task):
        response = client.post(f"/api/tasks/{task['id']}/comments", data={"content": ""}, headers=OWNER)
        assert response.status_code == 422

    def test_oversized_file_is_rejected(self, client, container, task):
        container.attachment_service.max_size = 4

        response = client.post(
            f"/api/tasks/{task['id']}/comments",
            data={"content": "too big"},
            files=[("files", ("big.txt", b"0123456789", "text/plain"))],
            headers=OWNER,
        )

        assert response.status_code == 422
        assert "exceeds maximum allowed size of 4 bytes" in response.json()["message"]
        assert container.db.comments.list_for_task(task["id"]) == []

    def test_delete_comment_by_other_user(self, client, workspace, task, make_user):
        comment = client.post(
            f"/api/tasks/{task['id']}/comments", data={"content": "mine"}, headers=OWNER
        ).json()["data"]
        make_user("Other", token="other-token")

        response = client.delete(f"/api/comments/{comment['id']}", headers={"Authorization": "Bearer other-token"})
        assert response.status_code == 403


class TestProjectRoutes:
    """Tests for /api/projects."""

    def test_activity_page(self, client, workspace, task):
        client.patch(f"/api/tasks/{task['id']}", json={"title": "Renamed"}, headers=OWNER)

        response = client.get(f"/api/projects/{workspace['project_id']}/activity", headers=OWNER)

        page = response.json()["data"]
        assert page["total"] == 1
        assert page["data"][0]["action"] == "Title_updated"
        assert page["data"][0]["task"]["title"] == "Renamed"

    def test_dashboard(self, client, workspace, task):
        client.patch(f"/api/tasks/{task['id']}", json={"title": "Renamed"}, headers=OWNER)

        response = client.get(f"/api/projects/{workspace['project_id']}/dashboard", headers=OWNER)
        assert response.json()["data"][0]["action"] == 'renamed "Renamed"'

    def test_upload_and_download_project_file(self, client, workspace):
        upload = client.post(
            "/api/attachments",
            data={"attachable_type": "project", "attachable_id": str(workspace["project_id"])},
            files={"file": ("notes.md", b"# notes", "text/markdown")},
            headers=OWNER,
        )
        assert upload.status_code == 201
        attachment = upload.json()["data"]

        listed = client.get(f"/api/projects/{workspace['project_id']}/attachments", headers=OWNER).json()["data"]
        assert [a["id"] for a in listed] == [attachment["id"]]

        download = client.get(f"/api/attachments/{attachment['id']}/download", headers=OWNER)
        assert download.status_code == 200
        assert download.content == b"# notes"


class TestInvitationRoutes:
    """Tests for the invite and accept endpoints."""

    def test_invite_then_accept(self, client, workspace, make_user, notifier):
        response = client.post(
            f"/api/organizations/{workspace['org_id']}/invite",
            json={"email": "lena@example.com", "project_id": workspace["project_id"]},
            headers=OWNER,
        )
        assert response.status_code == 201
        token = response.json()["data"]["token"]
        assert len(notifier.sent) == 1

        make_user("Lena", email="lena@example.com", token="lena-token")
        accepted = client.post("/api/invitations/accept", json={"token": token},
                               headers={"Authorization": "Bearer lena-token"})

        assert accepted.status_code == 200
        assert accepted.json()["data"]["id"] == workspace["org_id"]
        project = client.get(f"/api/projects/{workspace['project_id']}", headers={"Authorization": "Bearer lena-token"})
        assert project.status_code == 200

    def test_invite_existing_member_to_project(self, client, workspace, make_user):
        mike = make_user("Mike")
        workspace["db"].organizations.add_member(workspace["org_id"], mike["id"])
        other_project = workspace["db"].projects.create(workspace["org_id"], "Side project")

        response = client.post(
            f"/api/organizations/{workspace['org_id']}/invite",
            json={"email": mike["email"], "project_id": other_project},
            headers=OWNER,
        )

        assert response.status_code == 200
        assert response.json()["message"] == "User added to project successfully"

    def test_accept_with_wrong_account(self, client, workspace, make_user):
        token = client.post(
            f"/api/organizations/{workspace['org_id']}/invite",
            json={"email": "nina@example.com"},
            headers=OWNER,
        ).json()["data"]["token"]
        make_user("Oscar", token="oscar-token")

        response = client.post("/api/invitations/accept", json={"token": token},
                               headers={"Authorization": "Bearer oscar-token"})

        assert response.status_code == 409
        assert response.json()["message"] == "This invitation is for nina@example.com, not oscar@example.com."

    def test_invalid_email(self, client, workspace):
        response = client.post(
            f"/api/organizations/{workspace['org_id']}/invite",
            json={"email": "not-an-address"},
            headers=OWNER,
        )
        assert response.status_code == 422
