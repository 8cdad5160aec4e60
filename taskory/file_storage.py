"""
Blob storage for attachment files.

A blob is addressed by a relative path such as ``attachments/<uuid>.pdf``.
The path is the only handle an Attachment record keeps, so the store can be
swapped without touching stored rows.
"""
import os
import uuid
import logging
from abc import ABC, abstractmethod
from typing import Optional

logger = logging.getLogger(__name__)

BLOB_PREFIX = "attachments"

# Allowed file types (MIME types)
ALLOWED_CONTENT_TYPES = {
    # Text and documents
    "text/plain", "text/csv", "text/markdown",
    "application/pdf", "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    # Images
    "image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml",
    # Archives
    "application/zip", "application/x-tar", "application/gzip", "application/x-zip-compressed",
    # Data formats
    "application/json", "application/xml", "text/xml",
}

# Executables are refused even when a prefix rule would let them through
BLOCKED_CONTENT_TYPES = {
    "application/x-msdownload",
    "application/x-executable",
    "application/x-sharedlib",
    "application/x-elf",
    "application/x-mach-binary",
    "application/x-dosexec",
    "application/x-sh",
}

_SAFE_PREFIXES = ("text/", "image/")


def sanitize_filename(filename: str) -> str:
    """
    Strip path components and unsafe characters from an uploaded filename.

    Args:
        filename: Filename as sent by the client

    Returns:
        A filename safe to show and to derive an extension from
    """
    filename = os.path.basename(filename.replace("\\", "/"))
    for char in ("..", "\x00"):
        filename = filename.replace(char, "_")
    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[:250] + ext
    return filename or "file"


def validate_file_type(content_type: Optional[str]) -> bool:
    """Check a MIME type against the allow and block lists."""
    if not content_type:
        return False
    content_type = content_type.split(";")[0].strip().lower()
    if content_type in BLOCKED_CONTENT_TYPES:
        return False
    if content_type in ALLOWED_CONTENT_TYPES:
        return True
    return content_type.startswith(_SAFE_PREFIXES)


def validate_file_size(file_size: int, max_size: int) -> bool:
    return 0 <= file_size <= max_size


class BlobStore(ABC):
    """Opaque file storage keyed by relative path."""

    @abstractmethod
    def put(self, content: bytes, filename: str) -> str:
        """Store content and return its relative path."""

    @abstractmethod
    def get(self, path: str) -> bytes:
        """Return the stored bytes. Raises FileNotFoundError if absent."""

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Remove a blob. Returns False if it did not exist."""


class LocalBlobStore(BlobStore):
    """Blob store on the local filesystem under a root directory."""

    def __init__(self, root: str):
        self.root = os.path.abspath(root)
        os.makedirs(os.path.join(self.root, BLOB_PREFIX), exist_ok=True)

    def _full_path(self, path: str) -> str:
        full_path = os.path.abspath(os.path.join(self.root, path))
        if os.path.commonpath([self.root, full_path]) != self.root:
            raise ValueError(f"Blob path escapes storage root: {path}")
        return full_path

    def put(self, content: bytes, filename: str) -> str:
        _, ext = os.path.splitext(sanitize_filename(filename))
        path = f"{BLOB_PREFIX}/{uuid.uuid4().hex}{ext.lower()}"
        full_path = self._full_path(path)
        os.makedirs(os.path.dirname(full_path), exist_ok=True)

        with open(full_path, "wb") as f:
            f.write(content)
        os.chmod(full_path, 0o600)

        logger.info(f"Stored blob {path} ({len(content)} bytes)")
        return path

    def get(self, path: str) -> bytes:
        full_path = self._full_path(path)
        if not os.path.exists(full_path):
            raise FileNotFoundError(f"Blob not found: {path}")
        with open(full_path, "rb") as f:
            return f.read()

    def delete(self, path: str) -> bool:
        full_path = self._full_path(path)
        if not os.path.exists(full_path):
            return False
        os.remove(full_path)
        logger.info(f"Deleted blob {path}")
        return True
