"""
Schema management for database initialization.

Creates every table the service reads or writes. Statements are idempotent
(CREATE ... IF NOT EXISTS) so initialization can run on every start-up;
the same structure is captured by the initial Alembic revision.
"""
import logging
from typing import Callable, Any

from taskory.db_adapter import BaseDatabaseAdapter

logger = logging.getLogger(__name__)


class SchemaManager:
    """Manages database schema initialization and creation."""

    def __init__(
        self,
        adapter: BaseDatabaseAdapter,
        get_connection: Callable[[], Any],
        execute_with_logging: Callable[..., Any]
    ):
        """
        Initialize SchemaManager.

        Args:
            adapter: Database adapter instance
            get_connection: Function to get database connection
            execute_with_logging: Function to execute queries with logging
        """
        self.adapter = adapter
        self._get_connection = get_connection
        self._execute_with_logging = execute_with_logging

    def initialize_schema(self):
        """
        Initialize the complete database schema.

        Tables are created in foreign-key order, then indexes.
        """
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)

            self._create_identity_schema(cursor)
            self._create_projects_schema(cursor)
            self._create_tasks_schema(cursor)
            self._create_collaboration_schema(cursor)
            self._create_invitations_schema(cursor)
            self._create_indexes(cursor)

            conn.commit()
            logger.info("Database schema initialized")
        except Exception as e:
            logger.error(f"Failed to initialize schema: {e}")
            raise
        finally:
            self.adapter.close(conn)

    def _create_identity_schema(self, cursor):
        """Create users, organizations and organization membership tables."""
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS users (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT NOT NULL UNIQUE,
                api_token_hash TEXT UNIQUE,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS organizations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                owner_id INTEGER,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (owner_id) REFERENCES users(id) ON DELETE SET NULL
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS organization_user (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                organization_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                role TEXT NOT NULL DEFAULT 'member',
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                UNIQUE(organization_id, user_id)
            )
        """)

    def _create_projects_schema(self, cursor):
        """Create projects, project membership, statuses and milestones tables."""
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS projects (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                organization_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                description TEXT,
                status TEXT NOT NULL DEFAULT 'active',
                start_date TEXT,
                end_date TEXT,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (organization_id) REFERENCES organizations(id) ON DELETE CASCADE
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS project_user (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                role TEXT NOT NULL DEFAULT 'member',
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                UNIQUE(project_id, user_id)
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS task_statuses (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                color TEXT,
                position INTEGER NOT NULL DEFAULT 0,
                is_default INTEGER NOT NULL DEFAULT 0,
                is_completed INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS milestones (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                name TEXT NOT NULL,
                due_date TEXT,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE
            )
        """)

    def _create_tasks_schema(self, cursor):
        """Create tasks table. Subtasks are removed with their parent."""
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                project_id INTEGER NOT NULL,
                parent_id INTEGER,
                status_id INTEGER,
                milestone_id INTEGER,
                title TEXT NOT NULL,
                description TEXT,
                assignee_id INTEGER,
                creator_id INTEGER,
                priority TEXT NOT NULL DEFAULT 'medium'
                    CHECK(priority IN ('low', 'medium', 'high')),
                estimated_hours REAL CHECK(estimated_hours IS NULL OR estimated_hours >= 0),
                actual_hours REAL CHECK(actual_hours IS NULL OR actual_hours >= 0),
                start_date TEXT,
                due_date TEXT,
                position INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
                FOREIGN KEY (parent_id) REFERENCES tasks(id) ON DELETE CASCADE,
                FOREIGN KEY (status_id) REFERENCES task_statuses(id) ON DELETE SET NULL,
                FOREIGN KEY (milestone_id) REFERENCES milestones(id) ON DELETE SET NULL,
                FOREIGN KEY (assignee_id) REFERENCES users(id) ON DELETE SET NULL,
                FOREIGN KEY (creator_id) REFERENCES users(id) ON DELETE SET NULL
            )
        """)

    def _create_collaboration_schema(self, cursor):
        """Create activity, comment and attachment tables."""
        # Append-only audit trail: no updated_at column
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS task_activities (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                task_id INTEGER NOT NULL,
                user_id INTEGER,
                action TEXT NOT NULL,
                old_value TEXT,
                new_value TEXT,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
            )
        """)
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS comments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                task_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                content TEXT NOT NULL DEFAULT '',
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            )
        """)
        # Polymorphic owner: no foreign key on attachable_id, cleanup is done by services
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS attachments (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                attachable_type TEXT NOT NULL CHECK(attachable_type IN ('task', 'project')),
                attachable_id INTEGER NOT NULL,
                user_id INTEGER,
                file_name TEXT NOT NULL,
                file_path TEXT NOT NULL,
                file_size INTEGER NOT NULL,
                mime_type TEXT,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
            )
        """)

    def _create_invitations_schema(self, cursor):
        """Create invitations table with one live row per (organization, email)."""
        self._execute_with_logging(cursor, """
            CREATE TABLE IF NOT EXISTS invitations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL,
                token TEXT NOT NULL UNIQUE,
                organization_id INTEGER NOT NULL,
                project_id INTEGER,
                role TEXT NOT NULL DEFAULT 'member',
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                FOREIGN KEY (organization_id) REFERENCES organizations(id) ON DELETE CASCADE,
                FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
                UNIQUE(organization_id, email)
            )
        """)

    def _create_indexes(self, cursor):
        """Create indexes for the common lookup paths."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_projects_organization ON projects(organization_id)",
            "CREATE INDEX IF NOT EXISTS idx_task_statuses_project ON task_statuses(project_id)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_siblings ON tasks(project_id, parent_id, position)",
            "CREATE INDEX IF NOT EXISTS idx_tasks_assignee ON tasks(assignee_id)",
            "CREATE INDEX IF NOT EXISTS idx_task_activities_task ON task_activities(task_id, created_at)",
            "CREATE INDEX IF NOT EXISTS idx_comments_task ON comments(task_id, created_at)",
            "CREATE INDEX IF NOT EXISTS idx_attachments_owner ON attachments(attachable_type, attachable_id)",
            "CREATE INDEX IF NOT EXISTS idx_users_name ON users(name)",
        ]
        for query in indexes:
            self._execute_with_logging(cursor, query)
