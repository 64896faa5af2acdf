"""Read/unread state for messages and notifications.

Unread counts are always computed from the stored read flags; there is no
separate counter to drift out of sync. Only the receiver of a message or the
recipient of a notification may mark it read, administrators included.
"""

from typing import Callable, Optional

from jobboard_events.domain.exceptions import AuthorizationError, NotFoundError
from jobboard_events.domain.models import Actor, MessageRecord, NotificationRecord, conversation_key
from jobboard_events.logging import get_logger
from jobboard_events.persistence import MessageRepository, NotificationRepository, get_session
from jobboard_events.utils.timestamps import utc_now

logger = get_logger(__name__, component="unread")


class UnreadTracker:
    """Marks messages and notifications read and reports unread counts."""

    def __init__(self, session_factory: Optional[Callable] = None, clock: Optional[Callable] = None):
        self.session_factory = session_factory or get_session
        self.clock = clock or utc_now

    # Messages

    def mark_message_read(self, message_id: int, requester: Actor) -> MessageRecord:
        """Mark one message read. Only its receiver may do this.

        Raises:
            NotFoundError: If the message does not exist
            AuthorizationError: If the requester is not the receiver
        """
        with self.session_factory() as session:
            repo = MessageRepository(session)
            message = repo.get_by_id(message_id)
            if message is None:
                raise NotFoundError("Message", message_id)
            if message.receiver_id != requester.id:
                raise AuthorizationError(
                    f"User {requester.id} may not mark message {message_id} as read"
                )
            return repo.mark_read(message_id, self.clock())

    def mark_conversation_read(self, user_a: str, user_b: str, requester: Actor) -> int:
        """Mark every unread message the other participant sent to ``requester`` read.

        Repeating the call is a no-op.

        Returns:
            Number of messages that changed state

        Raises:
            AuthorizationError: If the requester is not one of the two participants
        """
        if requester.id not in (user_a, user_b):
            raise AuthorizationError(f"User {requester.id} is not part of this conversation")

        other = user_b if requester.id == user_a else user_a
        key = conversation_key(user_a, user_b)
        with self.session_factory() as session:
            updated = MessageRepository(session).mark_conversation_read(
                requester.id, other, self.clock()
            )

        logger.debug(
            f"Marked {updated} messages read in {key}",
            extra={"event": "messages.conversation_read", "conversation_key": key, "updated": updated},
        )
        return updated

    def unread_message_count(self, user: Actor) -> int:
        with self.session_factory() as session:
            return MessageRepository(session).count_unread(user.id)

    # Notifications

    def mark_notification_read(self, notification_id: int, requester: Actor) -> NotificationRecord:
        """Mark one notification read. Only its recipient may do this.

        Raises:
            NotFoundError: If the notification does not exist
            AuthorizationError: If the requester is not the recipient
        """
        with self.session_factory() as session:
            repo = NotificationRepository(session)
            notification = repo.get_by_id(notification_id)
            if notification is None:
                raise NotFoundError("Notification", notification_id)
            if notification.recipient_id != requester.id:
                raise AuthorizationError(
                    f"User {requester.id} may not mark notification {notification_id} as read"
                )
            return repo.mark_read(notification_id, self.clock())

    def mark_all_notifications_read(self, recipient: Actor) -> int:
        """Mark every unread notification of ``recipient`` read; returns the count."""
        with self.session_factory() as session:
            updated = NotificationRepository(session).mark_all_read(recipient.id, self.clock())

        logger.info(
            f"Marked {updated} notifications read for {recipient.id}",
            extra={"event": "notifications.all_read", "recipient_id": recipient.id, "updated": updated},
        )
        return updated

    def delete_read_notifications(self, recipient: Actor) -> int:
        """Delete every already-read notification of ``recipient``; returns the count."""
        with self.session_factory() as session:
            deleted = NotificationRepository(session).delete_read(recipient.id)

        logger.info(
            f"Cleared {deleted} read notifications for {recipient.id}",
            extra={"event": "notifications.read_cleared", "recipient_id": recipient.id, "deleted": deleted},
        )
        return deleted

    def unread_notification_count(self, recipient: Actor) -> int:
        with self.session_factory() as session:
            return NotificationRepository(session).count_for_recipient(recipient.id, is_read=False)
