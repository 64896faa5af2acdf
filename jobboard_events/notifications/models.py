"""Data models and exceptions for notification writing."""

from dataclasses import dataclass


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a title or message template fails to render."""

    pass


class NotificationWriteError(NotificationError):
    """Raised when a validated notification could not be stored."""

    pass


@dataclass(frozen=True)
class RenderedNotification:
    """Title and message body produced by the template renderer."""

    title: str
    message: str
