"""Notification query surface and retention."""

import math
from datetime import datetime
from typing import Callable, Optional

from jobboard_events.config.models import NotificationConfig
from jobboard_events.domain.exceptions import AuthorizationError, InvalidInputError, NotFoundError
from jobboard_events.domain.models import (
    Actor,
    NotificationPage,
    NotificationRecord,
    NotificationType,
)
from jobboard_events.logging import get_logger
from jobboard_events.persistence import NotificationRepository, get_session
from jobboard_events.utils.timestamps import cutoff_before, utc_now

from .writer import SessionFactory

logger = get_logger(__name__, component="notification")


class NotificationService:
    """Lists, fetches, deletes and expires notifications.

    Recipients see their own notifications; administrators may read and
    delete anyone's. Read-state changes live in ``UnreadTracker``.
    """

    def __init__(
        self,
        config: Optional[NotificationConfig] = None,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable] = None,
    ):
        self.config = config or NotificationConfig()
        self.session_factory = session_factory or get_session
        self.clock = clock or utc_now

    def list_notifications(
        self,
        recipient: Actor,
        type: Optional[str] = None,
        is_read: Optional[bool] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> NotificationPage:
        """One page of the recipient's notifications, newest first.

        Args:
            recipient: The authenticated user whose notifications are listed
            type: Only notifications of this type
            is_read: Only read (True) or unread (False) notifications
            page: 1-based page number
            limit: Page size; defaults to ``default_page_size``, capped at ``max_page_size``

        Raises:
            InvalidInputError: If page or limit is below 1 or type is unknown
        """
        errors = []
        if page < 1:
            errors.append(f"page: must be at least 1, got {page}")
        if limit is not None and limit < 1:
            errors.append(f"limit: must be at least 1, got {limit}")
        if type is not None and type not in {t.value for t in NotificationType}:
            errors.append(f"type: unknown notification type {type!r}")
        if errors:
            raise InvalidInputError("Invalid notification query", errors=errors)

        limit = min(limit or self.config.default_page_size, self.config.max_page_size)

        with self.session_factory() as session:
            repo = NotificationRepository(session)
            items = repo.list_for_recipient(
                recipient.id, type=type, is_read=is_read, offset=(page - 1) * limit, limit=limit
            )
            total = repo.count_for_recipient(recipient.id, type=type, is_read=is_read)
            unread = repo.count_for_recipient(recipient.id, is_read=False)

        return NotificationPage(
            items=items,
            total=total,
            unread_count=unread,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    def get_notification(self, notification_id: int, requester: Actor) -> NotificationRecord:
        """Fetch one notification.

        Raises:
            NotFoundError: If it does not exist
            AuthorizationError: If the requester is neither recipient nor administrator
        """
        with self.session_factory() as session:
            record = NotificationRepository(session).get_by_id(notification_id)
        self._check_access(record, notification_id, requester)
        return record

    def delete_notification(self, notification_id: int, requester: Actor) -> None:
        """Delete one notification.

        Raises:
            NotFoundError: If it does not exist
            AuthorizationError: If the requester is neither recipient nor administrator
        """
        with self.session_factory() as session:
            repo = NotificationRepository(session)
            self._check_access(repo.get_by_id(notification_id), notification_id, requester)
            repo.delete(notification_id)

        logger.info(
            f"Deleted notification {notification_id}",
            extra={
                "event": "notification.deleted",
                "notification_id": notification_id,
                "requester_id": requester.id,
            },
        )

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete notifications read longer ago than the retention window.

        Unread notifications are never purged.

        Returns:
            Number of notifications deleted
        """
        cutoff = cutoff_before(now or self.clock(), self.config.retention_seconds)
        with self.session_factory() as session:
            deleted = NotificationRepository(session).delete_read_before(cutoff)

        logger.info(
            f"Retention purge removed {deleted} notifications",
            extra={
                "event": "notification.purge.completed",
                "deleted": deleted,
                "cutoff": cutoff.isoformat(),
            },
        )
        return deleted

    @staticmethod
    def _check_access(
        record: Optional[NotificationRecord], notification_id: int, requester: Actor
    ) -> None:
        if record is None:
            raise NotFoundError("Notification", notification_id)
        if record.recipient_id != requester.id and not requester.is_admin:
            raise AuthorizationError(
                f"User {requester.id} may not access notification {notification_id}"
            )
