"""Sending and deleting direct messages."""

from typing import Any, Callable, List, Mapping, Optional, Union
from urllib.parse import quote

from pydantic import ValidationError

from jobboard_events.domain.exceptions import AuthorizationError, InvalidInputError, NotFoundError
from jobboard_events.domain.models import (
    Actor,
    Attachment,
    MessageRecord,
    NotificationInput,
    NotificationType,
)
from jobboard_events.logging import get_logger, log_context
from jobboard_events.notifications import NotificationWriter, TemplateRenderer
from jobboard_events.persistence import MessageRepository, get_session
from jobboard_events.utils.timestamps import utc_now

logger = get_logger(__name__, component="messaging")

UserLookup = Callable[[str], Any]


class MessagingService:
    """Sends messages and emits the matching ``message`` notification.

    The message is committed before the notification is written, so a failed
    notification never loses the message.

    Args:
        session_factory: Session context manager (defaults to ``get_session``)
        writer: Notification writer for the receiver's notification
        renderer: Template renderer for the notification text
        user_lookup: Optional callable returning a truthy value when a user id exists
        clock: Returns the current UTC time
    """

    def __init__(
        self,
        session_factory: Optional[Callable] = None,
        writer: Optional[NotificationWriter] = None,
        renderer: Optional[TemplateRenderer] = None,
        user_lookup: Optional[UserLookup] = None,
        clock: Optional[Callable] = None,
    ):
        self.session_factory = session_factory or get_session
        self.writer = writer or NotificationWriter(session_factory=session_factory)
        self.renderer = renderer or TemplateRenderer()
        self.user_lookup = user_lookup
        self.clock = clock or utc_now

    def send_message(
        self,
        sender: Actor,
        receiver_id: str,
        content: str,
        job_id: Optional[str] = None,
        application_id: Optional[str] = None,
        attachments: Optional[List[Union[Attachment, Mapping]]] = None,
        sender_name: Optional[str] = None,
    ) -> MessageRecord:
        """Store a message from ``sender`` to ``receiver_id`` and notify the receiver.

        Args:
            sender: Authenticated sender
            receiver_id: Receiving user id
            content: Message text; surrounding whitespace is trimmed
            job_id: Related job, if any
            application_id: Related application, if any
            attachments: Attachment metadata (models or mappings)
            sender_name: Display name used in the notification text

        Raises:
            InvalidInputError: If receiver or content is missing, or an attachment is malformed
            NotFoundError: If ``user_lookup`` reports that the receiver does not exist
        """
        receiver_id = (receiver_id or "").strip()
        content = (content or "").strip()
        parsed_attachments = self._validate(receiver_id, content, attachments)

        if self.user_lookup is not None and not self.user_lookup(receiver_id):
            raise NotFoundError("User", receiver_id)

        with self.session_factory() as session:
            message = MessageRepository(session).create(
                sender_id=sender.id,
                receiver_id=receiver_id,
                content=content,
                created_at=self.clock(),
                job_id=job_id,
                application_id=application_id,
                attachments=parsed_attachments,
            )

        with log_context(message_id=message.id, conversation_key=message.conversation_key):
            logger.info(
                f"Message {message.id} sent from {sender.id} to {receiver_id}",
                extra={"event": "message.sent", "sender_id": sender.id, "receiver_id": receiver_id},
            )
            self._notify_receiver(message, sender_name or sender.id)

        return message

    def delete_message(self, message_id: int, requester: Actor) -> None:
        """Delete a message. Only its sender may do this.

        Raises:
            NotFoundError: If the message does not exist
            AuthorizationError: If the requester is not the sender
        """
        with self.session_factory() as session:
            repo = MessageRepository(session)
            message = repo.get_by_id(message_id)
            if message is None:
                raise NotFoundError("Message", message_id)
            if message.sender_id != requester.id:
                raise AuthorizationError(f"User {requester.id} may not delete message {message_id}")
            repo.delete(message_id)

        logger.info(
            f"Message {message_id} deleted",
            extra={"event": "message.deleted", "message_id": message_id, "requester_id": requester.id},
        )

    @staticmethod
    def _validate(
        receiver_id: str, content: str, attachments: Optional[List[Union[Attachment, Mapping]]]
    ) -> List[Attachment]:
        errors = []
        if not receiver_id:
            errors.append("receiver_id: is required")
        if not content:
            errors.append("content: must not be blank")

        parsed: List[Attachment] = []
        for index, attachment in enumerate(attachments or []):
            try:
                parsed.append(
                    attachment
                    if isinstance(attachment, Attachment)
                    else Attachment.model_validate(attachment)
                )
            except ValidationError as e:
                errors.extend(
                    f"attachments.{index}.{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
                    for error in e.errors()
                )

        if errors:
            raise InvalidInputError("Invalid message", errors=errors)
        return parsed

    def _notify_receiver(self, message: MessageRecord, sender_name: str) -> None:
        try:
            rendered = self.renderer.render_message(sender_name)
            self.writer.write(
                NotificationInput(
                    recipient_id=message.receiver_id,
                    sender_id=message.sender_id,
                    type=NotificationType.MESSAGE,
                    title=rendered.title,
                    message=rendered.message,
                    link=f"/messages?conversationId={quote(message.conversation_key, safe='')}",
                    related_job_id=message.job_id,
                    related_application_id=message.application_id,
                    related_message_id=message.id,
                )
            )
        except Exception as e:
            logger.error(
                f"Message notification for {message.receiver_id} failed: {e}",
                exc_info=True,
                extra={
                    "event": "message.notification.failed",
                    "recipient_id": message.receiver_id,
                    "error_type": type(e).__name__,
                },
            )
