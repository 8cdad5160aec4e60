"""
Tests for CLI tool.
"""
import json

import pytest
from unittest.mock import patch, MagicMock
from click.testing import CliRunner

from taskory.cli import cli


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def mock_env(monkeypatch):
    """Set up environment variables for testing."""
    monkeypatch.setenv("TASKORY_URL", "http://localhost:8004/api")
    monkeypatch.setenv("TASKORY_TOKEN", "test-token")


def _mock_client(status_code=200, payload=None, content=b"{}"):
    mock_client = MagicMock()
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.content = content
    mock_response.json.return_value = payload
    mock_client.request.return_value = mock_response
    mock_client.__enter__.return_value = mock_client
    mock_client.__exit__.return_value = None
    return mock_client


def test_cli_feed(runner, mock_env):
    """Test printing a task feed."""
    payload = {"status": "success", "data": [
        {"id": "c_1", "type": "comment", "user": {"name": "Alice"},
         "content": "Looks good", "created_at": "2024-01-01T00:00:01"},
        {"id": "a_2", "type": "activity", "user": None,
         "content": "Changed Status from 'To Do' to 'Done'", "created_at": "2024-01-01T00:00:02"},
    ]}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(payload=payload)
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["feed", "5"])

        assert result.exit_code == 0
        assert "Alice: Looks good" in result.output
        assert "system: Changed Status" in result.output
        call_args = mock_client.request.call_args
        assert call_args[0] == ("GET", "http://localhost:8004/api/tasks/5/comments")
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer test-token"


def test_cli_feed_json(runner, mock_env):
    """Test JSON output of a task feed."""
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_factory.return_value = _mock_client(payload={"status": "success", "data": []})

        result = runner.invoke(cli, ["feed", "5", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == []


def test_cli_project_activity_page(runner, mock_env):
    """Test paging through a project's activity."""
    payload = {"status": "success", "data": {
        "data": [{"created_at": "2024-01-01", "user": {"name": "Bob"},
                  "task": {"title": "Docs"}, "action": "Title_updated"}],
        "current_page": 2, "per_page": 50, "total": 51, "last_page": 2,
    }}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(payload=payload)
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["project-activity", "3", "--page", "2"])

        assert result.exit_code == 0
        assert 'Bob Title_updated on "Docs"' in result.output
        assert "Page 2 of 2 (51 entries)" in result.output
        assert mock_client.request.call_args.kwargs["params"] == {"page": 2}


def test_cli_reorder(runner, mock_env):
    """Test sending reorder pairs."""
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(content=b"")
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["reorder", "5=0", "7=1", "9=2"])

        assert result.exit_code == 0
        assert "Reordered 3 task(s)." in result.output
        assert mock_client.request.call_args.kwargs["json"] == {
            "tasks": [{"id": 5, "position": 0}, {"id": 7, "position": 1}, {"id": 9, "position": 2}]
        }


def test_cli_reorder_bad_pair(runner, mock_env):
    """Test malformed reorder pair."""
    result = runner.invoke(cli, ["reorder", "5:0"])
    assert result.exit_code != 0
    assert "TASK_ID=POSITION" in result.output


def test_cli_invite(runner, mock_env):
    """Test inviting an address to an organization project."""
    payload = {"status": "success", "data": {"email": "carol@example.com", "token": "abc"}}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(status_code=201, payload=payload)
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["invite", "1", "carol@example.com", "--project-id", "4"])

        assert result.exit_code == 0
        assert "Invitation sent to carol@example.com." in result.output
        call_args = mock_client.request.call_args
        assert call_args[0] == ("POST", "http://localhost:8004/api/organizations/1/invite")
        assert call_args.kwargs["json"] == {"email": "carol@example.com", "project_id": 4}


def test_cli_accept_error(runner, mock_env):
    """Test that service errors exit non-zero with the message."""
    payload = {"status": "error", "message": "Invalid invitation token."}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_factory.return_value = _mock_client(status_code=404, payload=payload)

        result = runner.invoke(cli, ["accept", "bogus"])

        assert result.exit_code == 1
        assert "Error 404: Invalid invitation token." in result.output


def test_cli_update_task(runner, mock_env):
    """Test a partial task update."""
    payload = {"status": "success", "data": {"id": 5}}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(payload=payload)
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["update-task", "5", "--priority", "high", "--unassign"])

        assert result.exit_code == 0
        call_args = mock_client.request.call_args
        assert call_args[0] == ("PATCH", "http://localhost:8004/api/tasks/5")
        assert call_args.kwargs["json"] == {"priority": "high", "assignee_id": None}


def test_cli_update_task_requires_fields(runner, mock_env):
    result = runner.invoke(cli, ["update-task", "5"])
    assert result.exit_code != 0
    assert "Nothing to update" in result.output


def test_cli_comment_with_file(runner, mock_env, tmp_path):
    """Test posting a comment with an attachment."""
    attachment = tmp_path / "log.txt"
    attachment.write_bytes(b"trace")
    payload = {"status": "success", "data": {"id": 12}}
    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client(status_code=201, payload=payload)
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["comment", "5", "-m", "see @Alice", "--file", str(attachment)])

        assert result.exit_code == 0
        assert "Comment #12 posted." in result.output
        kwargs = mock_client.request.call_args.kwargs
        assert kwargs["data"] == {"content": "see @Alice"}
        assert kwargs["files"][0][0] == "files"
        assert kwargs["files"][0][1][0] == "log.txt"


def test_cli_connection_error(runner, mock_env):
    """Test unreachable service."""
    import httpx

    with patch("taskory.cli.httpx.Client") as mock_factory:
        mock_client = _mock_client()
        mock_client.request.side_effect = httpx.ConnectError("connection refused")
        mock_factory.return_value = mock_client

        result = runner.invoke(cli, ["feed", "1"])

        assert result.exit_code == 1
        assert "connection refused" in result.output
