"""
Tests for adapter layers: database adapters, blob storage and mail delivery.
"""
import io
import os

import httpx
import pytest
from fastapi import UploadFile
from unittest.mock import Mock, patch

from taskory.api.routes.uploads import to_file_uploads
from taskory.db_adapter import DatabaseType, PostgreSQLAdapter, SQLiteAdapter, get_database_adapter
from taskory.file_storage import LocalBlobStore, sanitize_filename, validate_file_size, validate_file_type
from taskory.notifications import (
    HttpMailNotifier,
    LogNotifier,
    MailMessage,
    build_notifier,
    dispatch,
    task_url,
)


class TestDatabaseAdapter:
    """Tests for database adapter selection and query normalization."""

    def test_defaults_to_sqlite(self, monkeypatch):
        monkeypatch.delenv("DB_TYPE", raising=False)
        adapter = get_database_adapter("/tmp/x.db")
        assert isinstance(adapter, SQLiteAdapter)
        assert adapter.db_type == DatabaseType.SQLITE

    def test_postgresql_from_environment(self, monkeypatch):
        monkeypatch.setenv("DB_TYPE", "postgresql")
        monkeypatch.setenv("DB_NAME", "tracker")
        adapter = get_database_adapter()
        assert isinstance(adapter, PostgreSQLAdapter)
        assert "dbname=tracker" in adapter.connection_string

    def test_postgresql_placeholders(self):
        adapter = PostgreSQLAdapter("dbname=x")
        query = adapter.normalize_query("SELECT * FROM tasks WHERE id = ? AND project_id = ?")
        assert query == "SELECT * FROM tasks WHERE id = %s AND project_id = %s"

    def test_postgresql_insert_returns_id(self):
        adapter = PostgreSQLAdapter("dbname=x")
        cursor = Mock()
        cursor.fetchone.return_value = {"id": 42}

        assert adapter.insert_returning_id(cursor, "INSERT INTO users (name) VALUES (?);", ("a",)) == 42
        cursor.execute.assert_called_once_with("INSERT INTO users (name) VALUES (%s) RETURNING id", ("a",))


class TestLocalBlobStore:
    """Tests for the filesystem blob store."""

    def test_put_get_delete(self, blob_store):
        path = blob_store.put(b"data", "Report.PDF")

        assert path.startswith("attachments/")
        assert path.endswith(".pdf")
        assert blob_store.get(path) == b"data"
        assert oct(os.stat(os.path.join(blob_store.root, path)).st_mode & 0o777) == "0o600"
        assert blob_store.delete(path) is True
        assert blob_store.delete(path) is False
        with pytest.raises(FileNotFoundError):
            blob_store.get(path)

    def test_rejects_paths_outside_root(self, blob_store):
        with pytest.raises(ValueError):
            blob_store.get("../../etc/passwd")

    def test_creates_root(self, tmp_path):
        store = LocalBlobStore(str(tmp_path / "storage"))
        assert os.path.isdir(os.path.join(store.root, "attachments"))


class TestFileValidation:
    """Tests for upload validation helpers."""

    @pytest.mark.parametrize("content_type,allowed", [
        ("application/pdf", True),
        ("text/plain; charset=utf-8", True),
        ("image/heic", True),
        ("text/x-python", True),
        ("application/x-sh", False),
        ("application/x-msdownload", False),
        ("application/octet-stream", False),
        (None, False),
    ])
    def test_validate_file_type(self, content_type, allowed):
        assert validate_file_type(content_type) is allowed

    def test_validate_file_size(self):
        assert validate_file_size(10, 10)
        assert not validate_file_size(11, 10)

    def test_sanitize_filename(self):
        assert sanitize_filename("C:\\Users\\me\\report.txt") == "report.txt"
        assert sanitize_filename("") == "file"
        assert len(sanitize_filename("a" * 300 + ".txt")) == 254


class TestNotifications:
    """Tests for mail building and delivery."""

    def _message(self):
        return MailMessage(to="bob@example.com", subject="Hi", body="Body", kind="task_assigned")

    def test_task_url(self):
        url = task_url({"id": 9, "project_id": 4}, 2, frontend_url="https://app.example.com/")
        assert url == "https://app.example.com/2/project/4/tasks?taskId=9"

    def test_http_notifier_posts_json(self):
        with patch("taskory.notifications.httpx.post") as mock_post:
            mock_post.return_value = Mock(raise_for_status=Mock())

            HttpMailNotifier("https://relay.example.com/send", "noreply@example.com", timeout=2.0).send(self._message())

            call_args = mock_post.call_args
            assert call_args[0][0] == "https://relay.example.com/send"
            assert call_args.kwargs["json"]["to"] == "bob@example.com"
            assert call_args.kwargs["json"]["from"] == "noreply@example.com"
            assert call_args.kwargs["timeout"] == 2.0

    def test_dispatch_swallows_timeouts(self):
        notifier = HttpMailNotifier("https://relay.example.com/send", "noreply@example.com")
        with patch("taskory.notifications.httpx.post", side_effect=httpx.ConnectTimeout("slow")):
            assert dispatch(notifier, self._message()) is False

    def test_dispatch_swallows_other_errors(self):
        notifier = Mock()
        notifier.send.side_effect = RuntimeError("boom")
        assert dispatch(notifier, self._message()) is False

    def test_dispatch_success(self):
        assert dispatch(LogNotifier(), self._message()) is True

    def test_build_notifier_without_relay(self):
        assert isinstance(build_notifier(), LogNotifier)


class TestUploadConversion:
    """Tests for converting FastAPI uploads."""

    def test_reads_at_most_one_byte_past_limit(self):
        upload = UploadFile(io.BytesIO(b"x" * 100), filename="big.bin")

        converted = to_file_uploads([upload], max_size=10)

        assert converted[0].size == 11

    def test_unbounded_and_unnamed(self):
        uploads = [UploadFile(io.BytesIO(b"abc"), filename="a.txt"), UploadFile(io.BytesIO(b"zz"), filename="")]

        converted = to_file_uploads(uploads)

        assert [(f.filename, f.content) for f in converted] == [("a.txt", b"abc")]
        assert to_file_uploads(None) == []
