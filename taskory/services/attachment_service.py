"""
Attachment service - business logic for file attachment operations.
This layer contains no HTTP framework dependencies.
Handles file validation, size limits, type checking, storage, and metadata management.
"""
import logging
from typing import Optional, Dict, Any, List

from taskory.config import get_settings
from taskory.database import TaskoryDatabase
from taskory.exceptions import (
    AttachmentNotFoundError,
    NotFoundError,
    ValidationError,
    DatabaseError,
)
from taskory.file_storage import BlobStore, sanitize_filename, validate_file_type, validate_file_size
from taskory.models import FileUpload
from taskory.storage import OWNER_TASK, OWNER_PROJECT, OWNER_TYPES

logger = logging.getLogger(__name__)


class AttachmentService:
    """Service for attachment business logic."""

    def __init__(self, db: TaskoryDatabase, blob_store: BlobStore, max_size: Optional[int] = None):
        """
        Initialize attachment service.

        Args:
            db: Database with the attachment repository
            blob_store: Where file contents live
            max_size: Maximum upload size in bytes (defaults to settings)
        """
        self.db = db
        self.blob_store = blob_store
        self.max_size = max_size or get_settings().max_attachment_size

    def validate_upload(self, upload: FileUpload) -> None:
        """
        Raises:
            ValidationError: If the file type is not allowed or the file is too large
        """
        if not validate_file_type(upload.content_type):
            raise ValidationError(
                f"File type '{upload.content_type}' is not allowed",
                field="files",
                value=upload.filename
            )
        if not validate_file_size(upload.size, self.max_size):
            raise ValidationError(
                f"File {upload.filename} exceeds maximum allowed size of {self.max_size} bytes",
                field="files",
                value=upload.filename
            )

    def _require_owner(self, owner_type: str, owner_id: int) -> None:
        if owner_type not in OWNER_TYPES:
            raise ValidationError(f"Unknown attachment owner type: {owner_type}", field="owner_type")
        if owner_type == OWNER_TASK:
            exists = self.db.tasks.get_by_id(owner_id) is not None
        else:
            exists = self.db.projects.get_by_id(owner_id) is not None
        if not exists:
            raise NotFoundError(owner_type.capitalize(), owner_id)

    def upload(self, owner_type: str, owner_id: int, upload: FileUpload, user_id: Optional[int]) -> Dict[str, Any]:
        """
        Store a file for a task or project.

        Args:
            owner_type: 'task' or 'project'
            owner_id: ID of the owning task or project
            upload: File name, bytes and MIME type
            user_id: Uploading user

        Returns:
            Created attachment dictionary

        Raises:
            ValidationError: If the owner type, file type or size is invalid
            NotFoundError: If the owner does not exist
            DatabaseError: If the record could not be written
        """
        self._require_owner(owner_type, owner_id)
        self.validate_upload(upload)

        file_name = sanitize_filename(upload.filename)
        file_path = self.blob_store.put(upload.content, file_name)

        try:
            attachment_id = self.db.attachments.create(
                owner_type, owner_id, user_id, file_name, file_path, upload.size, upload.content_type
            )
        except Exception as e:
            # The blob has no record pointing at it; remove it again
            try:
                self.blob_store.delete(file_path)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove orphaned blob {file_path}: {cleanup_error}")
            logger.error(f"Failed to create attachment record: {str(e)}", exc_info=True)
            raise DatabaseError(
                "Failed to create attachment record. Please try again.",
                operation="create_attachment",
                original_error=e
            )

        logger.info(f"Uploaded attachment {attachment_id} for {owner_type} {owner_id}")
        return self.db.attachments.get_by_id(attachment_id)

    def get_attachment(self, attachment_id: int) -> Dict[str, Any]:
        attachment = self.db.attachments.get_by_id(attachment_id)
        if not attachment:
            raise AttachmentNotFoundError(attachment_id)
        return attachment

    def list_for_owner(self, owner_type: str, owner_id: int) -> List[Dict[str, Any]]:
        return self.db.attachments.list_for_owner(owner_type, owner_id)

    def list_for_project(self, project_id: int) -> List[Dict[str, Any]]:
        """Files of a project and of all its tasks, newest first, with uploader."""
        task_ids = self.db.tasks.list_ids_for_project(project_id)
        attachments = self.db.attachments.list_for_project_tree(project_id, task_ids)
        users = self.db.users.get_many(a["user_id"] for a in attachments if a["user_id"])
        for attachment in attachments:
            attachment["user"] = users.get(attachment["user_id"])
        return attachments

    def project_id_for(self, attachment: Dict[str, Any]) -> Optional[int]:
        """Project an attachment belongs to, directly or through its task."""
        if attachment["attachable_type"] == OWNER_PROJECT:
            return attachment["attachable_id"]
        task = self.db.tasks.get_by_id(attachment["attachable_id"])
        return task["project_id"] if task else None

    def delete(self, attachment_id: int) -> bool:
        """
        Delete an attachment record and its blob.

        A blob that cannot be removed is logged; the record is gone either way.
        """
        attachment = self.get_attachment(attachment_id)
        self.db.attachments.delete(attachment_id)
        try:
            self.blob_store.delete(attachment["file_path"])
        except OSError as e:
            logger.warning(f"Failed to delete attachment file {attachment['file_path']}: {e}")
        logger.info(f"Deleted attachment {attachment_id}")
        return True

    def download(self, attachment_id: int) -> Dict[str, Any]:
        """
        Returns:
            Dictionary with 'content' (bytes) and 'metadata' (dict)

        Raises:
            AttachmentNotFoundError: If the record or its blob is missing
        """
        attachment = self.get_attachment(attachment_id)
        try:
            content = self.blob_store.get(attachment["file_path"])
        except FileNotFoundError:
            logger.error(f"Attachment file not found: {attachment['file_path']}")
            raise AttachmentNotFoundError(attachment_id, message="Attachment file not found")
        return {"content": content, "metadata": attachment}
