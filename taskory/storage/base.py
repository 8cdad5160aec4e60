"""
Shared plumbing for repositories.

Each repository receives the connection factory and query helpers of the
owning TaskoryDatabase instead of the database object itself, so it can be
constructed against any adapter.
"""
import logging
from datetime import datetime, UTC
from typing import Optional, List, Dict, Any, Callable, Tuple

logger = logging.getLogger(__name__)


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with microsecond precision."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


class Repository:
    """Base class for repositories."""

    def __init__(
        self,
        db_type: str,
        get_connection: Callable[[], Any],
        adapter: Any,
        execute_insert: Callable[[Any, str, tuple], int],
        execute_with_logging: Callable[..., Any]
    ):
        """
        Initialize repository.

        Args:
            db_type: Database type ('sqlite' or 'postgresql')
            get_connection: Function to get database connection
            adapter: Database adapter (for cursors and closing connections)
            execute_insert: Function to execute INSERT queries and return ID
            execute_with_logging: Function to execute queries with logging
        """
        self.db_type = db_type
        self._get_connection = get_connection
        self.adapter = adapter
        self._execute_insert = execute_insert
        self._execute_with_logging = execute_with_logging

    def _fetch_one(self, query: str, params: Tuple = ()) -> Optional[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            self._execute_with_logging(cursor, query, params)
            row = cursor.fetchone()
            return dict(row) if row else None
        finally:
            self.adapter.close(conn)

    def _fetch_all(self, query: str, params: Tuple = ()) -> List[Dict[str, Any]]:
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            self._execute_with_logging(cursor, query, params)
            return [dict(row) for row in cursor.fetchall()]
        finally:
            self.adapter.close(conn)

    def _insert(self, query: str, params: Tuple) -> int:
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            row_id = self._execute_insert(cursor, query, params)
            conn.commit()
            return row_id
        finally:
            self.adapter.close(conn)

    def _modify(self, query: str, params: Tuple = ()) -> int:
        """Run an UPDATE/DELETE and return the affected row count."""
        conn = self._get_connection()
        try:
            cursor = self.adapter.cursor(conn)
            self._execute_with_logging(cursor, query, params)
            count = cursor.rowcount
            conn.commit()
            return count
        finally:
            self.adapter.close(conn)
