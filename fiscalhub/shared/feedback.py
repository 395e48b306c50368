"""User feedback for mutations: one success or one error notification per result."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from fiscalhub.core.constants import ALREADY_LINKED_MESSAGE
from fiscalhub.domain.enums import ErrorKind

logger = logging.getLogger(__name__)


class FeedbackAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    UPLOAD = "upload"
    DOWNLOAD = "download"
    LINK = "link"
    UNLINK = "unlink"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


SUCCESS_LABELS: dict[FeedbackAction, str] = {
    FeedbackAction.CREATE: "Created",
    FeedbackAction.UPDATE: "Updated",
    FeedbackAction.DELETE: "Deleted",
    FeedbackAction.UPLOAD: "Uploaded",
    FeedbackAction.DOWNLOAD: "Downloaded",
    FeedbackAction.LINK: "Linked",
    FeedbackAction.UNLINK: "Unlinked",
}

VERB_LABELS: dict[FeedbackAction, str] = {
    FeedbackAction.CREATE: "create",
    FeedbackAction.UPDATE: "update",
    FeedbackAction.DELETE: "delete",
    FeedbackAction.UPLOAD: "upload",
    FeedbackAction.DOWNLOAD: "download",
    FeedbackAction.LINK: "link",
    FeedbackAction.UNLINK: "unlink",
}


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    title: str
    description: str | None = None


class Notifier(Protocol):
    """Sink for user-facing notifications (toast, log, test recorder)."""

    def notify(self, notification: Notification) -> None: ...


class LoggingNotifier:
    """Default notifier: writes notifications to the log."""

    _LEVELS = {
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def notify(self, notification: Notification) -> None:
        message = notification.title
        if notification.description:
            message = f"{message} ({notification.description})"
        self._log.log(self._LEVELS[notification.level], message)


def success_notification(
    action: FeedbackAction, subject: str | None = None, description: str | None = None
) -> Notification:
    return Notification(
        NotificationLevel.SUCCESS,
        f"{SUCCESS_LABELS[action]} successfully!",
        description or subject,
    )


def error_notification(
    action: FeedbackAction, subject: str | None = None, error: str | None = None
) -> Notification:
    fallback = f"Failed to {VERB_LABELS[action]}" + (f" {subject}" if subject else "")
    description = f"Item: {subject}" if subject and not error else None
    return Notification(NotificationLevel.ERROR, error or fallback, description)


def notify_result(
    notifier: Notifier,
    action: FeedbackAction | str,
    result: Any,
    subject: str | None = None,
) -> Notification:
    """Emit exactly one notification for a mutation result and return it.

    result is an ApiResult / ApiListResult (anything with success, error and
    error_kind). A conflict on link renders the already-linked message.
    """
    action = FeedbackAction(action)
    if result.success:
        notification = success_notification(action, subject)
    elif action is FeedbackAction.LINK and getattr(result, "error_kind", None) is ErrorKind.CONFLICT:
        notification = Notification(NotificationLevel.ERROR, ALREADY_LINKED_MESSAGE, subject)
    else:
        notification = error_notification(action, subject, result.error)
    notifier.notify(notification)
    return notification
