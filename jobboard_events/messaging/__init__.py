"""Direct messaging between users.

- MessagingService: send (with receiver notification) and delete
- ConversationIndex: conversation keys, conversation list, message history
- UnreadTracker: read state and unread counts for messages and notifications
"""

from .conversations import ConversationIndex
from .service import MessagingService
from .unread import UnreadTracker

__all__ = [
    "MessagingService",
    "ConversationIndex",
    "UnreadTracker",
]
