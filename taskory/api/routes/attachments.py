"""
Attachment routes for files owned by a task or a project.
"""
from typing import Dict, Any, Literal

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from taskory.api.responses import success
from taskory.api.routes.uploads import to_file_uploads
from taskory.auth.dependencies import get_current_user, require_project_access, require_task_access
from taskory.dependencies import ServiceContainer, get_container
from taskory.exceptions import PermissionDeniedError, ValidationError, AttachmentNotFoundError
from taskory.storage import OWNER_TASK

router = APIRouter(prefix="/attachments", tags=["attachments"])


def _authorize(container: ServiceContainer, attachment: Dict[str, Any], user: Dict[str, Any]) -> None:
    project_id = container.attachment_service.project_id_for(attachment)
    if project_id is None:
        raise AttachmentNotFoundError(attachment["id"])
    require_project_access(container.db, project_id, user)


@router.post("")
def upload_attachment(
    attachable_type: Literal["task", "project"] = Form(...),
    attachable_id: int = Form(...),
    file: UploadFile = File(...),
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    if attachable_type == OWNER_TASK:
        require_task_access(container.db, attachable_id, user)
    else:
        require_project_access(container.db, attachable_id, user)

    uploads = to_file_uploads([file], container.attachment_service.max_size)
    if not uploads:
        raise ValidationError("A file is required.", field="file")
    attachment = container.attachment_service.upload(attachable_type, attachable_id, uploads[0], user["id"])
    attachment["file_url"] = container.activity_service.file_url(attachment["file_path"])
    return success(attachment, "File uploaded successfully", 201)


@router.get("/{attachment_id}/download")
def download_attachment(
    attachment_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    _authorize(container, container.attachment_service.get_attachment(attachment_id), user)
    result = container.attachment_service.download(attachment_id)
    metadata = result["metadata"]
    return Response(
        content=result["content"],
        media_type=metadata.get("mime_type") or "application/octet-stream",
        headers={"Content-Disposition": f'attachment; filename="{metadata["file_name"]}"'},
    )


@router.delete("/{attachment_id}")
def delete_attachment(
    attachment_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    attachment = container.attachment_service.get_attachment(attachment_id)
    _authorize(container, attachment, user)
    if attachment["user_id"] != user["id"]:
        raise PermissionDeniedError(context={"attachment_id": attachment_id})
    container.attachment_service.delete(attachment_id)
    return success([], "Attachment deleted successfully")
