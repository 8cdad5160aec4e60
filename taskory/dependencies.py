"""
Service container.

One container per application holds the database, the blob store, the
notifier and the services built on them. Route handlers reach it through
request.app.state.container.
"""
import logging
from typing import Optional

from fastapi import Request

from taskory.config import get_settings
from taskory.database import TaskoryDatabase
from taskory.file_storage import BlobStore, LocalBlobStore
from taskory.notifications import Notifier, build_notifier
from taskory.services import (
    ActivityFeedService,
    AttachmentService,
    CommentService,
    InvitationService,
    ProjectService,
    ReorderService,
    TaskService,
)

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Holds shared resources and the services wired to them."""

    def __init__(
        self,
        db: Optional[TaskoryDatabase] = None,
        blob_store: Optional[BlobStore] = None,
        notifier: Optional[Notifier] = None
    ):
        settings = get_settings()
        self.db = db or TaskoryDatabase()
        self.blob_store = blob_store or LocalBlobStore(settings.attachments_dir)
        self.notifier = notifier or build_notifier()

        self.attachment_service = AttachmentService(self.db, self.blob_store)
        self.task_service = TaskService(self.db, self.notifier, self.blob_store)
        self.activity_service = ActivityFeedService(self.db)
        self.comment_service = CommentService(self.db, self.attachment_service, self.notifier)
        self.reorder_service = ReorderService(self.db)
        self.invitation_service = InvitationService(self.db, self.notifier)
        self.project_service = ProjectService(self.db)
        logger.debug("Service container ready")


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_db(request: Request) -> TaskoryDatabase:
    return get_container(request).db
