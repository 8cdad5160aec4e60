"""
Unified configuration for database paths, storage and outbound mail.

This module provides a single source of truth for settings that are shared by:
- Service (running in container or locally)
- CLI utilities and commands
- Tests (through environment overrides)

The database path resolution:
1. Checks TASKORY_DB_PATH environment variable first
2. Falls back to a consistent default location
3. Ensures the directory exists

This module uses Pydantic Settings for type-safe configuration management
with support for .env files and environment variable overrides.
"""
import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default database path - relative to the project root in local dev
DEFAULT_DB_PATH = "data/taskory.db"

# Container default (mounted from a volume)
CONTAINER_DB_PATH = "/app/data/taskory.db"

DEFAULT_MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024


def _is_container() -> bool:
    """Check if we're running in a container."""
    if os.path.exists("/.dockerenv"):
        return True
    if os.path.exists("/proc/1/cgroup"):
        try:
            with open("/proc/1/cgroup", "r") as f:
                content = f.read()
                if "docker" in content or "containerd" in content or "kubepods" in content:
                    return True
        except OSError:
            pass
    return False


class Settings(BaseSettings):
    """Application settings for Taskory.

    All configuration values can be set via environment variables or .env file.
    Defaults are provided for development convenience.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # Database Configuration
    # ============================================================================
    database_path: str = ""  # Resolved by validator
    sql_echo: bool = False  # SQL query logging

    # ============================================================================
    # Attachment Storage
    # ============================================================================
    attachments_dir: str = "data/storage"
    public_storage_url: str = "http://localhost:8000/storage"
    max_attachment_size: int = DEFAULT_MAX_ATTACHMENT_SIZE

    # ============================================================================
    # Feeds and Invitations
    # ============================================================================
    activity_page_size: int = 50
    dashboard_activity_limit: int = 10
    invitation_token_length: int = 32

    # ============================================================================
    # Outbound Mail
    # ============================================================================
    app_name: str = "Taskory"
    frontend_url: str = "http://localhost:3000"
    mail_relay_url: Optional[str] = None  # When unset, mail is only logged
    mail_from: str = "no-reply@taskory.local"
    notifier_timeout_seconds: float = 5.0

    # ============================================================================
    # Logging and Environment
    # ============================================================================
    log_level: str = "INFO"
    log_format: str = "text"
    environment: str = "development"
    debug: bool = False

    @field_validator("database_path", mode="before")
    @classmethod
    def resolve_database_path(cls, v: Optional[str]) -> str:
        """
        Resolve database path.

        Resolution order:
        1. TASKORY_DB_PATH environment variable (highest priority)
        2. Value from .env file or Settings field (if provided)
        3. Container path if running in container
        4. Local development path

        Args:
            v: Value from field or None

        Returns:
            Absolute path to the database file
        """
        env_path = os.getenv("TASKORY_DB_PATH")
        if env_path:
            return os.path.abspath(env_path)

        if v:
            return os.path.abspath(v)

        if _is_container():
            default_path = CONTAINER_DB_PATH
        else:
            project_root = Path(__file__).resolve().parent.parent
            default_path = str(project_root / DEFAULT_DB_PATH)

        return os.path.abspath(default_path)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()


def get_database_path() -> str:
    """
    Get the database path with unified resolution.

    Returns:
        Absolute path to the database file
    """
    return get_settings().database_path


def ensure_database_directory(db_path: Optional[str] = None) -> None:
    """
    Ensure the database directory exists.

    Args:
        db_path: Path to the database file. If None, uses get_database_path().
    """
    if db_path is None:
        db_path = get_database_path()
    db_dir = os.path.dirname(os.path.abspath(db_path))
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
