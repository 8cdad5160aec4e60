"""
Outbound notifications.

Services build a MailMessage and hand it to dispatch(). Delivery is best
effort: the operation that triggered the mail has already been committed, so
a failing notifier is logged and otherwise ignored.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional

import httpx

from taskory.config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    """A rendered mail ready for delivery."""
    to: str
    subject: str
    body: str
    action_url: Optional[str] = None
    kind: str = "generic"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def task_url(task: Dict[str, Any], organization_id: int, frontend_url: Optional[str] = None) -> str:
    frontend_url = (frontend_url or get_settings().frontend_url).rstrip("/")
    return f"{frontend_url}/{organization_id}/project/{task['project_id']}/tasks?taskId={task['id']}"


def task_assigned_message(
    assignee: Dict[str, Any],
    task: Dict[str, Any],
    organization_id: int,
    assigned_by: Optional[Dict[str, Any]] = None
) -> MailMessage:
    """Mail sent to a user who became the assignee of a task."""
    by_line = f" by {assigned_by['name']}" if assigned_by else ""
    url = task_url(task, organization_id)
    return MailMessage(
        to=assignee["email"],
        subject=f"You have been assigned to a task: {task['title']}",
        body=(
            f"Hello {assignee['name']},\n\n"
            f"You have been assigned to the task \"{task['title']}\"{by_line}.\n\n"
            f"View task: {url}\n"
        ),
        action_url=url,
        kind="task_assigned",
    )


def comment_mentioned_message(
    mentioned: Dict[str, Any],
    author: Dict[str, Any],
    task: Dict[str, Any],
    comment: Dict[str, Any],
    organization_id: int
) -> MailMessage:
    """Mail sent to a user named with @Name in a comment."""
    url = task_url(task, organization_id)
    return MailMessage(
        to=mentioned["email"],
        subject=f"You were mentioned in a comment on task: {task['title']}",
        body=(
            f"Hello {mentioned['name']},\n\n"
            f"{author['name']} mentioned you in a comment on \"{task['title']}\":\n\n"
            f"{comment['content']}\n\n"
            f"View task: {url}\n"
        ),
        action_url=url,
        kind="comment_mentioned",
    )


def invitation_message(invitation: Dict[str, Any], organization: Dict[str, Any]) -> MailMessage:
    """Mail carrying the invitation redemption link."""
    settings = get_settings()
    url = f"{settings.frontend_url.rstrip('/')}/accept-invite?token={invitation['token']}"
    return MailMessage(
        to=invitation["email"],
        subject=f"Invitation to join {organization['name']}",
        body=(
            f"You have been invited to join {organization['name']} on {settings.app_name}.\n\n"
            f"Accept the invitation: {url}\n"
        ),
        action_url=url,
        kind="invitation",
    )


class Notifier(ABC):
    """Delivery backend for MailMessage."""

    @abstractmethod
    def send(self, message: MailMessage) -> None:
        """Deliver one message. May raise on failure."""


class LogNotifier(Notifier):
    """Writes messages to the log instead of delivering them."""

    def send(self, message: MailMessage) -> None:
        logger.info(
            f"Mail to {message.to}: {message.subject}",
            extra={"mail_kind": message.kind, "action_url": message.action_url}
        )


class HttpMailNotifier(Notifier):
    """Posts messages as JSON to a mail relay."""

    def __init__(self, relay_url: str, sender: str, timeout: float = 5.0):
        self.relay_url = relay_url
        self.sender = sender
        self.timeout = timeout

    def send(self, message: MailMessage) -> None:
        payload = message.to_dict()
        payload["from"] = self.sender
        response = httpx.post(self.relay_url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        logger.info(f"Relayed mail to {message.to} ({message.kind})")


def build_notifier() -> Notifier:
    """Notifier configured from settings."""
    settings = get_settings()
    if settings.mail_relay_url:
        return HttpMailNotifier(
            settings.mail_relay_url,
            settings.mail_from,
            timeout=settings.notifier_timeout_seconds
        )
    return LogNotifier()


def dispatch(notifier: Notifier, message: MailMessage) -> bool:
    """
    Send a message, never raising.

    Returns:
        True if the notifier accepted the message
    """
    try:
        notifier.send(message)
        return True
    except httpx.TimeoutException:
        logger.warning(f"Mail to {message.to} timed out ({message.kind})")
    except httpx.HTTPError as e:
        logger.warning(f"Mail to {message.to} failed ({message.kind}): {e}")
    except Exception as e:
        logger.warning(f"Notifier error for {message.to} ({message.kind}): {e}", exc_info=True)
    return False
