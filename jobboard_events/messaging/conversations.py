"""Conversation grouping and retrieval for direct messages."""

from typing import Callable, Dict, List, Optional

from jobboard_events.domain.exceptions import AuthorizationError
from jobboard_events.domain.models import (
    Actor,
    ConversationSummary,
    MessageRecord,
    conversation_key,
)
from jobboard_events.persistence import MessageRepository, get_session


class ConversationIndex:
    """Derives conversation keys and lists conversations and their messages."""

    def __init__(self, session_factory: Optional[Callable] = None):
        self.session_factory = session_factory or get_session

    @staticmethod
    def conversation_key(user_a: str, user_b: str) -> str:
        """Order-independent key for the conversation between two users."""
        return conversation_key(user_a, user_b)

    def list_conversations(self, user: Actor) -> List[ConversationSummary]:
        """Summaries of every conversation ``user`` takes part in.

        Each summary carries the latest message and the number of messages
        addressed to ``user`` that are still unread. The list is ordered by
        latest message, newest first.
        """
        with self.session_factory() as session:
            messages = MessageRepository(session).list_for_participant(user.id)

        summaries: Dict[str, ConversationSummary] = {}
        # Messages arrive newest first, so the first one seen per key is the latest
        for message in messages:
            summary = summaries.get(message.conversation_key)
            if summary is None:
                summary = ConversationSummary(
                    conversation_key=message.conversation_key,
                    other_user_id=message.other_participant(user.id),
                    last_message=message,
                )
                summaries[message.conversation_key] = summary
            if message.receiver_id == user.id and not message.is_read:
                summary.unread_count += 1

        return list(summaries.values())

    def list_messages(
        self, user_a: str, user_b: str, requester: Optional[Actor] = None
    ) -> List[MessageRecord]:
        """All messages between two users, oldest first.

        Raises:
            AuthorizationError: If ``requester`` is given and is neither a
                participant nor an administrator
        """
        if requester is not None and requester.id not in (user_a, user_b) and not requester.is_admin:
            raise AuthorizationError(f"User {requester.id} is not part of this conversation")

        with self.session_factory() as session:
            return MessageRepository(session).list_conversation(user_a, user_b)
