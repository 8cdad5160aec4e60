"""
Database adapter abstraction layer for supporting multiple database backends.
"""
import os
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


class DatabaseType(Enum):
    """Database type enumeration."""
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class BaseDatabaseAdapter(ABC):
    """Abstract base class for database adapters."""

    db_type: DatabaseType

    def __init__(self, connection_string: str):
        """
        Initialize database adapter.

        Args:
            connection_string: Database connection string (path for SQLite, DSN for PostgreSQL)
        """
        self.connection_string = connection_string

    @abstractmethod
    def connect(self):
        """Get a database connection."""

    def close(self, conn):
        """Close a database connection."""
        conn.close()

    @abstractmethod
    def cursor(self, conn):
        """Get a cursor whose rows support mapping access."""

    @abstractmethod
    def normalize_query(self, query: str) -> str:
        """Normalize SQL query for this database backend."""

    def execute(self, cursor, query: str, params: Optional[Tuple] = None):
        """Execute a query with parameters."""
        query = self.normalize_query(query)
        if params:
            return cursor.execute(query, params)
        return cursor.execute(query)

    @abstractmethod
    def insert_returning_id(self, cursor, query: str, params: Tuple) -> int:
        """Execute an INSERT and return the new row's ID."""


class SQLiteAdapter(BaseDatabaseAdapter):
    """SQLite database adapter."""

    db_type = DatabaseType.SQLITE

    def connect(self):
        import sqlite3
        conn = sqlite3.connect(self.connection_string)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def cursor(self, conn):
        return conn.cursor()

    def normalize_query(self, query: str) -> str:
        # SQLite uses ? placeholders and AUTOINCREMENT, which is already the default
        return query

    def insert_returning_id(self, cursor, query: str, params: Tuple) -> int:
        self.execute(cursor, query, params)
        return cursor.lastrowid


class PostgreSQLAdapter(BaseDatabaseAdapter):
    """PostgreSQL database adapter."""

    db_type = DatabaseType.POSTGRESQL

    def connect(self):
        try:
            import psycopg2
        except ImportError:
            raise ImportError("psycopg2-binary is required for PostgreSQL support. Install it with: pip install psycopg2-binary")
        conn = psycopg2.connect(self.connection_string)
        conn.set_session(autocommit=False)
        return conn

    def cursor(self, conn):
        from psycopg2.extras import RealDictCursor
        return conn.cursor(cursor_factory=RealDictCursor)

    def normalize_query(self, query: str) -> str:
        normalized = query.replace("?", "%s")
        normalized = normalized.replace("INTEGER PRIMARY KEY AUTOINCREMENT", "SERIAL PRIMARY KEY")
        return normalized

    def insert_returning_id(self, cursor, query: str, params: Tuple) -> int:
        self.execute(cursor, query.rstrip().rstrip(";") + " RETURNING id", params)
        return cursor.fetchone()["id"]


def get_database_adapter(connection_string: Optional[str] = None) -> BaseDatabaseAdapter:
    """
    Factory function to get the appropriate database adapter.

    Args:
        connection_string: Database connection string. If None, uses environment variables.

    Returns:
        Database adapter instance
    """
    db_type = os.getenv("DB_TYPE", "sqlite").lower()

    if connection_string is None:
        if db_type == "postgresql":
            db_host = os.getenv("DB_HOST", "localhost")
            db_port = os.getenv("DB_PORT", "5432")
            db_name = os.getenv("DB_NAME", "taskory")
            db_user = os.getenv("DB_USER", "postgres")
            db_password = os.getenv("DB_PASSWORD", "")

            connection_string = f"host={db_host} port={db_port} dbname={db_name} user={db_user}"
            if db_password:
                connection_string += f" password={db_password}"
        else:
            from taskory.config import get_database_path
            connection_string = get_database_path()

    if db_type == "postgresql":
        return PostgreSQLAdapter(connection_string)
    return SQLiteAdapter(connection_string)
