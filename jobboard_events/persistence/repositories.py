"""Data access layer for alerts, notifications and messages.

Repositories wrap a caller-owned session, return domain models rather than
ORM rows, and translate SQLAlchemy errors into ``PersistenceError``. They
flush but never commit; ``get_session`` commits when the unit of work ends.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from jobboard_events.domain.models import (
    Attachment,
    CriteriaInput,
    CriteriaRecord,
    MessageRecord,
    NotificationInput,
    NotificationRecord,
    conversation_key,
)
from jobboard_events.utils.timestamps import to_storage

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import CriteriaModel, MessageModel, NotificationModel

logger = logging.getLogger(__name__)


def _between(user_a: str, user_b: str):
    """Rows sent by either user to the other."""
    return or_(
        and_(MessageModel.sender_id == user_a, MessageModel.receiver_id == user_b),
        and_(MessageModel.sender_id == user_b, MessageModel.receiver_id == user_a),
    )


class CriteriaRepository:
    """Repository for saved job alerts (the criteria store)."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, owner_id: str, data: CriteriaInput, now: datetime) -> CriteriaRecord:
        """Insert a new alert for ``owner_id``.

        Raises:
            DataIntegrityError: On constraint violations
            PersistenceError: If a database error occurs
        """
        try:
            model = CriteriaModel(owner_id=owner_id, created_at=to_storage(now))
            model.apply(data)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating alert for {owner_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create alert: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating alert for {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create alert: {e}") from e

    def get_by_id(self, alert_id: int) -> Optional[CriteriaRecord]:
        """Return the alert or None if it does not exist."""
        try:
            model = self.session.get(CriteriaModel, alert_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve alert: {e}") from e

    def list_for_owner(self, owner_id: str) -> List[CriteriaRecord]:
        """All alerts of one user, newest first."""
        try:
            stmt = (
                select(CriteriaModel)
                .where(CriteriaModel.owner_id == owner_id)
                .order_by(CriteriaModel.created_at.desc(), CriteriaModel.id.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing alerts for {owner_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list alerts: {e}") from e

    def list_active(
        self, category: Optional[str] = None, job_type: Optional[str] = None
    ) -> List[CriteriaRecord]:
        """Active alerts, optionally prefiltered for one posting.

        When ``category`` or ``job_type`` is given, only alerts whose
        corresponding dimension is unset or equal to it are returned. This is
        a narrowing step only; callers still run the full evaluation.
        """
        try:
            stmt = select(CriteriaModel).where(CriteriaModel.is_active.is_(True))
            if category is not None:
                stmt = stmt.where(
                    or_(CriteriaModel.category.is_(None), CriteriaModel.category == category)
                )
            if job_type is not None:
                stmt = stmt.where(
                    or_(CriteriaModel.job_type.is_(None), CriteriaModel.job_type == job_type)
                )
            stmt = stmt.order_by(CriteriaModel.id.asc())
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing active alerts: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list active alerts: {e}") from e

    def update(
        self, alert_id: int, data: CriteriaInput, fields: set, now: datetime
    ) -> CriteriaRecord:
        """Apply the named ``fields`` of ``data`` to an existing alert.

        Raises:
            RecordNotFoundError: If the alert does not exist
            PersistenceError: If a database error occurs
        """
        try:
            model = self.session.get(CriteriaModel, alert_id)
            if model is None:
                raise RecordNotFoundError(f"Alert {alert_id} not found")
            model.apply(data, fields=fields)
            model.updated_at = to_storage(now)
            self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error updating alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update alert: {e}") from e

    def set_active(self, alert_id: int, is_active: bool, now: datetime) -> CriteriaRecord:
        """Switch an alert on or off without deleting it.

        Raises:
            RecordNotFoundError: If the alert does not exist
        """
        try:
            model = self.session.get(CriteriaModel, alert_id)
            if model is None:
                raise RecordNotFoundError(f"Alert {alert_id} not found")
            model.is_active = is_active
            model.updated_at = to_storage(now)
            self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error toggling alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to toggle alert: {e}") from e

    def delete(self, alert_id: int) -> bool:
        """Delete an alert. Returns False if it did not exist."""
        try:
            result = self.session.execute(delete(CriteriaModel).where(CriteriaModel.id == alert_id))
            self.session.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting alert {alert_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete alert: {e}") from e


class NotificationRepository:
    """Repository for in-app notifications."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, data: NotificationInput, created_at: datetime) -> NotificationRecord:
        """Insert an unread notification.

        Raises:
            DataIntegrityError: On constraint violations
            PersistenceError: If a database error occurs
        """
        try:
            model = NotificationModel.from_input(data, created_at)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(
                f"Integrity error creating notification for {data.recipient_id}: {e}",
                exc_info=True,
            )
            raise DataIntegrityError(f"Failed to create notification: {e}") from e
        except SQLAlchemyError as e:
            logger.error(
                f"Error creating notification for {data.recipient_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to create notification: {e}") from e

    def get_by_id(self, notification_id: int) -> Optional[NotificationRecord]:
        try:
            model = self.session.get(NotificationModel, notification_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notification: {e}") from e

    def _filtered(self, stmt, recipient_id: str, type: Optional[str], is_read: Optional[bool]):
        stmt = stmt.where(NotificationModel.recipient_id == recipient_id)
        if type is not None:
            stmt = stmt.where(NotificationModel.type == type)
        if is_read is not None:
            stmt = stmt.where(NotificationModel.is_read.is_(is_read))
        return stmt

    def list_for_recipient(
        self,
        recipient_id: str,
        type: Optional[str] = None,
        is_read: Optional[bool] = None,
        offset: int = 0,
        limit: int = 20,
    ) -> List[NotificationRecord]:
        """One page of a recipient's notifications, newest first."""
        try:
            stmt = self._filtered(select(NotificationModel), recipient_id, type, is_read)
            stmt = (
                stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .offset(offset)
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing notifications for {recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list notifications: {e}") from e

    def count_for_recipient(
        self, recipient_id: str, type: Optional[str] = None, is_read: Optional[bool] = None
    ) -> int:
        """Count a recipient's notifications matching the filters."""
        try:
            stmt = self._filtered(
                select(func.count()).select_from(NotificationModel), recipient_id, type, is_read
            )
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Error counting notifications for {recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count notifications: {e}") from e

    def mark_read(self, notification_id: int, read_at: datetime) -> NotificationRecord:
        """Set the read flag. An already-read notification keeps its read time.

        Raises:
            RecordNotFoundError: If the notification does not exist
        """
        try:
            model = self.session.get(NotificationModel, notification_id)
            if model is None:
                raise RecordNotFoundError(f"Notification {notification_id} not found")
            if not model.is_read:
                model.is_read = True
                model.read_at = to_storage(read_at)
                self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification_id} read: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notification read: {e}") from e

    def mark_all_read(self, recipient_id: str, read_at: datetime) -> int:
        """Mark every unread notification of a recipient read. Returns the count."""
        try:
            stmt = (
                update(NotificationModel)
                .where(
                    NotificationModel.recipient_id == recipient_id,
                    NotificationModel.is_read.is_(False),
                )
                .values(is_read=True, read_at=to_storage(read_at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error marking notifications read for {recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notifications read: {e}") from e

    def delete(self, notification_id: int) -> bool:
        try:
            result = self.session.execute(
                delete(NotificationModel).where(NotificationModel.id == notification_id)
            )
            self.session.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete notification: {e}") from e

    def delete_read(self, recipient_id: str) -> int:
        """Delete a recipient's read notifications. Returns the count."""
        try:
            stmt = delete(NotificationModel).where(
                NotificationModel.recipient_id == recipient_id,
                NotificationModel.is_read.is_(True),
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(f"Error clearing read notifications for {recipient_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to clear read notifications: {e}") from e

    def delete_read_before(self, cutoff: datetime) -> int:
        """Delete notifications that were marked read before ``cutoff``.

        Unread notifications are never touched.
        """
        try:
            stmt = delete(NotificationModel).where(
                NotificationModel.is_read.is_(True),
                NotificationModel.read_at.is_not(None),
                NotificationModel.read_at < to_storage(cutoff),
            )
            result = self.session.execute(stmt)
            self.session.flush()
            deleted = result.rowcount
            logger.info(f"Purged {deleted} expired notifications")
            return deleted
        except SQLAlchemyError as e:
            logger.error(f"Error purging expired notifications: {e}", exc_info=True)
            raise PersistenceError(f"Failed to purge notifications: {e}") from e


class MessageRepository:
    """Repository for direct messages."""

    def __init__(self, session: Session):
        self.session = session

    def create(
        self,
        sender_id: str,
        receiver_id: str,
        content: str,
        created_at: datetime,
        job_id: Optional[str] = None,
        application_id: Optional[str] = None,
        attachments: Optional[List[Attachment]] = None,
    ) -> MessageRecord:
        """Insert an unread message; the conversation key is derived here.

        Raises:
            DataIntegrityError: On constraint violations
            PersistenceError: If a database error occurs
        """
        try:
            model = MessageModel.create(
                sender_id=sender_id,
                receiver_id=receiver_id,
                content=content,
                created_at=created_at,
                job_id=job_id,
                application_id=application_id,
                attachments=[a.model_dump() for a in attachments or []],
            )
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error creating message from {sender_id}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to create message: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error creating message from {sender_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create message: {e}") from e

    def get_by_id(self, message_id: int) -> Optional[MessageRecord]:
        try:
            model = self.session.get(MessageModel, message_id)
            return model.to_domain() if model is not None else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving message {message_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve message: {e}") from e

    def list_for_participant(self, user_id: str) -> List[MessageRecord]:
        """Every message sent or received by ``user_id``, newest first."""
        try:
            stmt = (
                select(MessageModel)
                .where(or_(MessageModel.sender_id == user_id, MessageModel.receiver_id == user_id))
                .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing messages for {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list messages: {e}") from e

    def list_conversation(self, user_a: str, user_b: str) -> List[MessageRecord]:
        """Messages exchanged between exactly these two users, oldest first."""
        key = conversation_key(user_a, user_b)
        try:
            stmt = (
                select(MessageModel)
                .where(MessageModel.conversation_key == key, _between(user_a, user_b))
                .order_by(MessageModel.created_at.asc(), MessageModel.id.asc())
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing conversation {key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list conversation: {e}") from e

    def count_unread(self, receiver_id: str, sender_id: Optional[str] = None) -> int:
        """Unread messages addressed to ``receiver_id``, optionally only those from ``sender_id``."""
        try:
            stmt = select(func.count()).select_from(MessageModel).where(
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
            )
            if sender_id is not None:
                stmt = stmt.where(
                    MessageModel.conversation_key == conversation_key(sender_id, receiver_id),
                    MessageModel.sender_id == sender_id,
                )
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            logger.error(f"Error counting unread messages for {receiver_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to count unread messages: {e}") from e

    def mark_read(self, message_id: int, read_at: datetime) -> MessageRecord:
        """Set the read flag. An already-read message keeps its read time.

        Raises:
            RecordNotFoundError: If the message does not exist
        """
        try:
            model = self.session.get(MessageModel, message_id)
            if model is None:
                raise RecordNotFoundError(f"Message {message_id} not found")
            if not model.is_read:
                model.is_read = True
                model.read_at = to_storage(read_at)
                self.session.flush()
            return model.to_domain()
        except RecordNotFoundError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Error marking message {message_id} read: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark message read: {e}") from e

    def mark_conversation_read(self, receiver_id: str, sender_id: str, read_at: datetime) -> int:
        """Mark unread messages from ``sender_id`` to ``receiver_id`` read."""
        key = conversation_key(sender_id, receiver_id)
        try:
            stmt = (
                update(MessageModel)
                .where(
                    MessageModel.conversation_key == key,
                    MessageModel.sender_id == sender_id,
                    MessageModel.receiver_id == receiver_id,
                    MessageModel.is_read.is_(False),
                )
                .values(is_read=True, read_at=to_storage(read_at))
            )
            result = self.session.execute(stmt)
            self.session.flush()
            return result.rowcount
        except SQLAlchemyError as e:
            logger.error(
                f"Error marking messages from {sender_id} to {receiver_id} read: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to mark conversation read: {e}") from e

    def delete(self, message_id: int) -> bool:
        try:
            result = self.session.execute(delete(MessageModel).where(MessageModel.id == message_id))
            self.session.flush()
            return result.rowcount > 0
        except SQLAlchemyError as e:
            logger.error(f"Error deleting message {message_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete message: {e}") from e
