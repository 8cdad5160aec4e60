"""
Database access object.

TaskoryDatabase owns the adapter, runs schema initialization and exposes one
repository per table family. Connections are opened per operation.
"""
import logging
import os
from typing import Optional, Any

from taskory.db_adapter import BaseDatabaseAdapter, get_database_adapter
from taskory.storage import (
    ActivityRepository,
    AttachmentRepository,
    CommentRepository,
    InvitationRepository,
    OrganizationRepository,
    ProjectRepository,
    SchemaManager,
    TaskRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)


class TaskoryDatabase:
    """Database connection management and repository wiring."""

    def __init__(self, db_path: Optional[str] = None, adapter: Optional[BaseDatabaseAdapter] = None):
        """
        Initialize the database.

        Args:
            db_path: SQLite file path or PostgreSQL DSN (defaults from settings)
            adapter: Pre-built adapter, overrides db_path
        """
        self.adapter = adapter or get_database_adapter(db_path)
        self.db_type = self.adapter.db_type.value
        self.db_path = self.adapter.connection_string
        self.sql_echo = os.getenv("TASKORY_SQL_ECHO", "").lower() in ("1", "true", "yes")

        if self.db_type == "sqlite" and self.db_path != ":memory:":
            directory = os.path.dirname(os.path.abspath(self.db_path))
            os.makedirs(directory, exist_ok=True)

        SchemaManager(self.adapter, self._get_connection, self._execute_with_logging).initialize_schema()

        repo_args = (
            self.db_type,
            self._get_connection,
            self.adapter,
            self._execute_insert,
            self._execute_with_logging,
        )
        self.users = UserRepository(*repo_args)
        self.organizations = OrganizationRepository(*repo_args)
        self.projects = ProjectRepository(*repo_args)
        self.tasks = TaskRepository(*repo_args)
        self.activities = ActivityRepository(*repo_args)
        self.comments = CommentRepository(*repo_args)
        self.attachments = AttachmentRepository(*repo_args)
        self.invitations = InvitationRepository(*repo_args)

        logger.info(f"Database ready ({self.db_type})")

    def _get_connection(self):
        return self.adapter.connect()

    def _execute_with_logging(self, cursor, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a query, logging it when SQL echo is enabled and on failure."""
        if self.sql_echo:
            logger.debug(f"SQL: {' '.join(query.split())} params={params}")
        try:
            return self.adapter.execute(cursor, query, params)
        except Exception as e:
            logger.error(
                f"Query failed: {e}",
                extra={"query": " ".join(query.split())[:500], "db_type": self.db_type}
            )
            raise

    def _execute_insert(self, cursor, query: str, params: tuple) -> int:
        if self.sql_echo:
            logger.debug(f"SQL: {' '.join(query.split())} params={params}")
        try:
            return self.adapter.insert_returning_id(cursor, query, params)
        except Exception as e:
            logger.error(
                f"Insert failed: {e}",
                extra={"query": " ".join(query.split())[:500], "db_type": self.db_type}
            )
            raise
