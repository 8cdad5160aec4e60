"""
Pytest configuration and shared fixtures.
Provides helper functions and fixtures that can be used across all test files.
"""
import os
import shutil
import sqlite3
import tempfile

import pytest
from fastapi.testclient import TestClient

from taskory.app import create_app
from taskory.auth.dependencies import hash_token
from taskory.database import TaskoryDatabase
from taskory.dependencies import ServiceContainer
from taskory.file_storage import LocalBlobStore
from taskory.notifications import Notifier


class RecordingNotifier(Notifier):
    """Notifier that keeps every message instead of delivering it."""

    def __init__(self):
        self.sent = []

    def send(self, message):
        self.sent.append(message)


class FailingNotifier(Notifier):
    """Notifier whose transport is always down."""

    def send(self, message):
        raise ConnectionError("mail relay unreachable")


def create_test_user(db, name="Alice", email=None, token=None):
    """
    Helper function to create a test user.
    Returns the user dictionary.
    """
    email = email or f"{name.lower()}@example.com"
    user_id = db.users.create(name, email, hash_token(token) if token else None)
    return db.users.get_by_id(user_id)


def create_test_organization(db, owner, name="Test Organization"):
    """Helper function to create an organization owned by owner. Returns its ID."""
    return db.organizations.create(name, owner["id"])


def create_test_project(db, org_id, name="Test Project", member=None):
    """
    Helper function to create a project with the default statuses.
    Returns (project_id, statuses).
    """
    project_id = db.projects.create(org_id, name)
    db.projects.seed_default_statuses(project_id)
    if member is not None:
        db.projects.add_member(project_id, member["id"], "admin")
    return project_id, db.projects.list_statuses(project_id)


def create_test_task(db, project_id, title="Test Task", **fields):
    """Helper function to insert a task row directly. Returns its ID."""
    values = {"project_id": project_id, "title": title, "position": 0}
    values.update(fields)
    return db.tasks.create(values)


def set_created_at(db_path, table, row_id, created_at):
    """Rewrite a row's timestamp to control feed ordering."""
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(f"UPDATE {table} SET created_at = ? WHERE id = ?", (created_at, row_id))
        conn.commit()
    finally:
        conn.close()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    temp_dir = tempfile.mkdtemp()
    db_path = os.path.join(temp_dir, "test.db")
    db = TaskoryDatabase(db_path)
    yield db, db_path
    shutil.rmtree(temp_dir)


@pytest.fixture
def blob_store():
    """Blob store in a temporary directory."""
    temp_dir = tempfile.mkdtemp()
    yield LocalBlobStore(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workspace(temp_db):
    """
    An owner, an organization and a project with default statuses.
    Returns a dictionary of the created rows.
    """
    db, db_path = temp_db
    owner = create_test_user(db, "Owner", token="owner-token")
    org_id = create_test_organization(db, owner)
    project_id, statuses = create_test_project(db, org_id, member=owner)
    return {
        "db": db,
        "db_path": db_path,
        "owner": owner,
        "org_id": org_id,
        "project_id": project_id,
        "statuses": statuses,
    }


@pytest.fixture
def container(temp_db, blob_store, notifier):
    db, _ = temp_db
    return ServiceContainer(db=db, blob_store=blob_store, notifier=notifier)


@pytest.fixture
def client(container):
    """Test client bound to the temporary database."""
    app = create_app(container)
    return TestClient(app)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(temp_db):
    """Factory fixture: make_user(name, email=None, token=None)."""
    db, _ = temp_db

    def _make(name, email=None, token=None):
        return create_test_user(db, name, email=email, token=token)
    return _make


@pytest.fixture
def make_task(temp_db):
    """Factory fixture: make_task(project_id, title, **fields) -> task dict."""
    db, _ = temp_db

    def _make(project_id, title="Test Task", **fields):
        return db.tasks.get_by_id(create_test_task(db, project_id, title, **fields))
    return _make


@pytest.fixture
def backdate(temp_db):
    """Factory fixture: backdate(table, row_id, created_at)."""
    _, db_path = temp_db

    def _set(table, row_id, created_at):
        set_created_at(db_path, table, row_id, created_at)
    return _set


@pytest.fixture
def headers():
    return auth_header


@pytest.fixture
def failing_notifier():
    return FailingNotifier()
