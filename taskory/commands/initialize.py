"""
Initialize command - Create the database and run migrations without starting the server.
"""
import os
import sys
import logging
import subprocess
from pathlib import Path

from taskory.__main__ import Command
from taskory.config import get_database_path, ensure_database_directory
from taskory.database import TaskoryDatabase

logger = logging.getLogger(__name__)

REQUIRED_TABLES = {
    "users", "organizations", "organization_user", "projects", "project_user",
    "task_statuses", "milestones", "tasks", "task_activities", "comments",
    "attachments", "invitations",
}


class InitializeCommand(Command):
    """Initialize the database, run migrations and validate the schema."""

    @classmethod
    def get_name(cls) -> str:
        return "init"

    @classmethod
    def get_description(cls) -> str:
        return "Initialize database, run migrations, and validate schema (does not start server)"

    @classmethod
    def add_arguments(cls, parser):
        parser.add_argument(
            "--database-path",
            type=str,
            default=None,
            help="Path to database file (overrides TASKORY_DB_PATH and config defaults)"
        )
        parser.add_argument(
            "--skip-migrations",
            action="store_true",
            help="Skip running Alembic migrations"
        )

    def init(self):
        super().init()
        if self.args.database_path:
            self.db_path = os.path.abspath(self.args.database_path)
        else:
            self.db_path = get_database_path()
        logger.info(f"Database path: {self.db_path}")

    def run(self) -> int:
        ensure_database_directory(self.db_path)

        if not self.args.skip_migrations:
            logger.info("Running Alembic migrations...")
            result = self._run_migrations()
            if result != 0:
                logger.error("Migrations failed")
                return result
        else:
            logger.info("Skipping migrations (--skip-migrations flag set)")

        db = TaskoryDatabase(self.db_path)
        return self._validate_schema(db)

    def _run_migrations(self) -> int:
        project_root = Path(__file__).resolve().parent.parent.parent
        env = os.environ.copy()
        env["TASKORY_DB_PATH"] = self.db_path

        alembic_cmd = [sys.executable, "-m", "alembic", "upgrade", "head"]
        logger.debug(f"Running: {' '.join(alembic_cmd)}")
        try:
            result = subprocess.run(
                alembic_cmd,
                cwd=str(project_root),
                capture_output=True,
                text=True,
                env=env
            )
        except FileNotFoundError:
            logger.error("Alembic not found. Make sure it's installed in the environment.")
            return 1

        if result.returncode != 0:
            logger.error(f"Alembic migration failed:\nstdout: {result.stdout}\nstderr: {result.stderr}")
            return result.returncode
        if result.stdout:
            logger.debug(f"Alembic output: {result.stdout}")
        return 0

    def _validate_schema(self, db: TaskoryDatabase) -> int:
        """Check that every table the service uses exists."""
        if db.db_type != "sqlite":
            logger.info("Schema validation is only implemented for SQLite; skipping")
            return 0

        conn = db.adapter.connect()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
            tables = {row[0] for row in cursor.fetchall()}
        finally:
            conn.close()

        missing = REQUIRED_TABLES - tables
        if missing:
            logger.error(f"Missing tables: {', '.join(sorted(missing))}")
            return 1
        logger.info(f"Schema validation passed ({len(REQUIRED_TABLES)} tables)")
        return 0
