"""
Tests for database initialization: Alembic migrations, the schema manager
and the init / create-user commands.
"""
import os
import sys
import shutil
import sqlite3
import subprocess
import tempfile
from argparse import Namespace
from pathlib import Path

import pytest

from taskory.__main__ import main
from taskory.auth.dependencies import hash_token
from taskory.commands.initialize import InitializeCommand, REQUIRED_TABLES
from taskory.database import TaskoryDatabase

project_root = Path(__file__).parent.parent


@pytest.fixture
def temp_db_path():
    """Path to a database file in a fresh temporary directory."""
    temp_dir = tempfile.mkdtemp(prefix="taskory_test_")
    yield os.path.join(temp_dir, "nested", "taskory.db")
    shutil.rmtree(temp_dir, ignore_errors=True)


def _tables(db_path):
    conn = sqlite3.connect(db_path)
    try:
        cursor = conn.cursor()
        cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
        return {row[0] for row in cursor.fetchall()}
    finally:
        conn.close()


def test_alembic_migrations_on_fresh_database(temp_db_path):
    """Alembic upgrade head creates every table on an empty database."""
    os.makedirs(os.path.dirname(temp_db_path), exist_ok=True)
    env = os.environ.copy()
    env["TASKORY_DB_PATH"] = temp_db_path

    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=str(project_root),
        capture_output=True,
        text=True,
        env=env
    )

    assert result.returncode == 0, f"Alembic failed: {result.stderr}"
    assert REQUIRED_TABLES <= _tables(temp_db_path)


def test_schema_manager_creates_complete_database(temp_db_path):
    """Opening a database creates the directory and the full schema."""
    TaskoryDatabase(temp_db_path)

    assert REQUIRED_TABLES <= _tables(temp_db_path)

    conn = sqlite3.connect(temp_db_path)
    cursor = conn.cursor()
    cursor.execute("PRAGMA table_info(tasks)")
    columns = {row[1]: row for row in cursor.fetchall()}
    conn.close()

    assert {"parent_id", "status_id", "assignee_id", "position", "estimated_hours"} <= set(columns)
    assert str(columns["priority"][4]).strip("'\"") == "medium"


def test_schema_initialization_is_idempotent(temp_db_path):
    db = TaskoryDatabase(temp_db_path)
    user_id = db.users.create("Alice", "alice@example.com")

    reopened = TaskoryDatabase(temp_db_path)
    assert reopened.users.get_by_id(user_id)["email"] == "alice@example.com"


def test_initialize_command_skip_migrations(temp_db_path):
    """init --skip-migrations builds the schema and validates it."""
    args = Namespace(database_path=temp_db_path, skip_migrations=True)

    with InitializeCommand(args) as cmd:
        assert cmd.run() == 0

    assert os.path.exists(temp_db_path)


def test_initialize_command_reports_missing_tables(temp_db_path):
    args = Namespace(database_path=temp_db_path, skip_migrations=True)
    cmd = InitializeCommand(args)
    cmd.init()
    db = TaskoryDatabase(temp_db_path)

    conn = sqlite3.connect(temp_db_path)
    conn.execute("DROP TABLE invitations")
    conn.commit()
    conn.close()

    assert cmd._validate_schema(db) == 1


def test_create_user_command(temp_db_path, capsys):
    """create-user prints a token that authenticates the new user."""
    exit_code = main([
        "create-user",
        "--name", "Alice",
        "--email", "alice@example.com",
        "--organization", "Acme",
        "--database-path", temp_db_path,
    ])

    assert exit_code == 0
    output = dict(line.split("=", 1) for line in capsys.readouterr().out.strip().splitlines())
    db = TaskoryDatabase(temp_db_path)
    user = db.users.get_by_token_hash(hash_token(output["token"]))
    assert user["id"] == int(output["user_id"])
    assert db.organizations.get_member_role(int(output["organization_id"]), user["id"]) == "owner"


def test_create_user_command_rotates_token(temp_db_path, capsys):
    argv = ["create-user", "--name", "Alice", "--email", "alice@example.com", "--database-path", temp_db_path]
    main(argv)
    first = capsys.readouterr().out
    main(argv)
    second = capsys.readouterr().out

    first_token = first.strip().splitlines()[-1].split("=", 1)[1]
    second_token = second.strip().splitlines()[-1].split("=", 1)[1]
    db = TaskoryDatabase(temp_db_path)
    assert db.users.get_by_token_hash(hash_token(first_token)) is None
    assert db.users.get_by_token_hash(hash_token(second_token)) is not None


def test_main_without_command_prints_help(capsys):
    assert main([]) == 1
    assert "create-user" in capsys.readouterr().out
