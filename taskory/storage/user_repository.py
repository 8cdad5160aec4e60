"""
Repository for user lookups.

Users are owned by the identity store; the service only creates them for
local setup and reads them for display names, contact addresses and
authentication.
"""
import logging
from typing import Optional, List, Dict, Any, Iterable

from taskory.storage.base import Repository, utc_now

logger = logging.getLogger(__name__)

# The token hash never leaves the repository
USER_COLUMNS = "id, name, email, created_at, updated_at"


class UserRepository(Repository):
    """Repository for user operations."""

    def create(self, name: str, email: str, api_token_hash: Optional[str] = None) -> int:
        """
        Create a user and return its ID.

        Args:
            name: Display name (also the @mention handle)
            email: Unique contact address
            api_token_hash: Optional SHA-256 hash of the user's bearer token
        """
        now = utc_now()
        user_id = self._insert(
            """
            INSERT INTO users (name, email, api_token_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (name, email, api_token_hash, now, now)
        )
        logger.info(f"Created user {user_id} <{email}>")
        return user_id

    def get_by_id(self, user_id: Optional[int]) -> Optional[Dict[str, Any]]:
        if user_id is None:
            return None
        return self._fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,))

    def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE email = ?", (email,))

    def get_by_token_hash(self, token_hash: str) -> Optional[Dict[str, Any]]:
        return self._fetch_one(f"SELECT {USER_COLUMNS} FROM users WHERE api_token_hash = ?", (token_hash,))

    def get_many(self, user_ids: Iterable[int]) -> Dict[int, Dict[str, Any]]:
        """
        Load several users at once.

        Returns:
            Mapping of user ID to user dictionary (missing IDs are absent)
        """
        ids = sorted({uid for uid in user_ids if uid is not None})
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        rows = self._fetch_all(f"SELECT {USER_COLUMNS} FROM users WHERE id IN ({placeholders})", tuple(ids))
        return {row["id"]: row for row in rows}

    def find_by_names(self, names: Iterable[str]) -> List[Dict[str, Any]]:
        """
        Find users whose name exactly matches one of the given names.

        Args:
            names: Candidate display names

        Returns:
            List of matching user dictionaries
        """
        unique_names = sorted(set(names))
        if not unique_names:
            return []
        placeholders = ", ".join("?" for _ in unique_names)
        return self._fetch_all(
            f"SELECT {USER_COLUMNS} FROM users WHERE name IN ({placeholders}) ORDER BY id",
            tuple(unique_names)
        )

    def set_token_hash(self, user_id: int, token_hash: str) -> bool:
        return self._modify(
            "UPDATE users SET api_token_hash = ?, updated_at = ? WHERE id = ?",
            (token_hash, utc_now(), user_id)
        ) > 0
