"""
Comment routes. Comments are posted through the task routes.
"""
from typing import Dict, Any

from fastapi import APIRouter, Depends

from taskory.api.responses import success
from taskory.auth.dependencies import get_current_user
from taskory.dependencies import ServiceContainer, get_container

router = APIRouter(prefix="/comments", tags=["comments"])


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int,
    user: Dict[str, Any] = Depends(get_current_user),
    container: ServiceContainer = Depends(get_container),
):
    container.comment_service.delete_comment(comment_id, user["id"])
    return success([], "Comment deleted successfully")
