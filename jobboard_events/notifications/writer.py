"""Single-notification writer.

Each write runs in its own session, so a failed insert rolls back only that
notification and never the caller's unit of work.
"""

from typing import Callable, ContextManager, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from jobboard_events.domain.exceptions import InvalidInputError
from jobboard_events.domain.models import NotificationInput, NotificationRecord
from jobboard_events.logging import get_logger
from jobboard_events.persistence import NotificationRepository, PersistenceError, get_session
from jobboard_events.utils.timestamps import utc_now

from .models import NotificationWriteError

logger = get_logger(__name__, component="notification")

SessionFactory = Callable[[], ContextManager[Session]]


class NotificationWriter:
    """Validates and stores one notification per call.

    Args:
        session_factory: Context manager yielding a session (defaults to ``get_session``)
        clock: Returns the current UTC time (injectable for tests)
    """

    def __init__(
        self,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable] = None,
    ):
        self.session_factory = session_factory or get_session
        self.clock = clock or utc_now

    def write(self, data: Union[NotificationInput, Mapping]) -> NotificationRecord:
        """Store an unread notification.

        Args:
            data: NotificationInput or a mapping with the same fields

        Returns:
            The stored NotificationRecord

        Raises:
            InvalidInputError: If recipient, type, title or message is missing or invalid
            NotificationWriteError: If the record could not be stored
        """
        notification = self._validate(data)

        try:
            with self.session_factory() as session:
                record = NotificationRepository(session).create(notification, self.clock())
        except PersistenceError as e:
            logger.error(
                f"Failed to store {notification.type} notification for {notification.recipient_id}: {e}",
                exc_info=True,
                extra={
                    "event": "notification.write.failed",
                    "recipient_id": notification.recipient_id,
                    "notification_type": notification.type,
                },
            )
            raise NotificationWriteError(f"Failed to store notification: {e}") from e

        logger.info(
            f"Created {record.type} notification {record.id} for {record.recipient_id}",
            extra={
                "event": "notification.created",
                "notification_id": record.id,
                "recipient_id": record.recipient_id,
                "notification_type": record.type,
            },
        )
        return record

    @staticmethod
    def _validate(data: Union[NotificationInput, Mapping]) -> NotificationInput:
        if isinstance(data, NotificationInput):
            return data
        try:
            return NotificationInput.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            raise InvalidInputError("Invalid notification", errors=errors) from e
