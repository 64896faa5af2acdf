"""Unit tests for ConversationIndex."""

import pytest

from jobboard_events.domain.exceptions import AuthorizationError
from jobboard_events.domain.models import Actor
from jobboard_events.messaging import ConversationIndex, MessagingService, UnreadTracker
from jobboard_events.notifications import NotificationWriter


@pytest.fixture
def messaging(memory_db, clock):
    return MessagingService(writer=NotificationWriter(clock=clock), clock=clock)


@pytest.fixture
def index(memory_db):
    return ConversationIndex()


class TestConversationKey:
    def test_order_independent(self):
        assert ConversationIndex.conversation_key("u2", "u1") == "u1_u2"
        assert ConversationIndex.conversation_key("u1", "u2") == "u1_u2"

    def test_messages_in_both_directions_share_a_key(self, messaging, seeker, employer):
        first = messaging.send_message(seeker, employer.id, "Hi")
        second = messaging.send_message(employer, seeker.id, "Hello")
        assert first.conversation_key == second.conversation_key


class TestListConversations:
    def test_grouped_newest_first_with_unread_counts(
        self, messaging, index, seeker, other_seeker, employer
    ):
        messaging.send_message(seeker, employer.id, "Question about the role")
        messaging.send_message(other_seeker, employer.id, "Is the job still open?")
        messaging.send_message(employer, seeker.id, "Happy to answer")
        latest = messaging.send_message(seeker, employer.id, "Thanks!")

        conversations = index.list_conversations(employer)

        assert [c.other_user_id for c in conversations] == ["seeker-1", "seeker-2"]
        first = conversations[0]
        assert first.conversation_key == "employer-1_seeker-1"
        assert first.last_message.id == latest.id
        assert first.unread_count == 2
        assert conversations[1].unread_count == 1

    def test_own_messages_do_not_count_as_unread(self, messaging, index, seeker, employer):
        messaging.send_message(seeker, employer.id, "Hello")
        [conversation] = index.list_conversations(seeker)
        assert conversation.unread_count == 0

    def test_unread_count_drops_after_reading(self, messaging, index, seeker, employer, clock):
        messaging.send_message(seeker, employer.id, "One")
        messaging.send_message(seeker, employer.id, "Two")
        UnreadTracker(clock=clock).mark_conversation_read(seeker.id, employer.id, employer)

        [conversation] = index.list_conversations(employer)
        assert conversation.unread_count == 0

    def test_no_conversations(self, index, seeker):
        assert index.list_conversations(seeker) == []


class TestListMessages:
    def test_oldest_first(self, messaging, index, seeker, employer):
        sent = [
            messaging.send_message(seeker, employer.id, "One"),
            messaging.send_message(employer, seeker.id, "Two"),
            messaging.send_message(seeker, employer.id, "Three"),
        ]
        messages = index.list_messages(employer.id, seeker.id)
        assert [m.id for m in messages] == [m.id for m in sent]

    def test_other_conversations_excluded(self, messaging, index, seeker, other_seeker, employer):
        messaging.send_message(seeker, employer.id, "Mine")
        messaging.send_message(other_seeker, employer.id, "Not yours")

        assert [m.content for m in index.list_messages(seeker.id, employer.id)] == ["Mine"]

    def test_participant_and_admin_allowed(self, messaging, index, seeker, employer, admin):
        messaging.send_message(seeker, employer.id, "Hi")
        assert len(index.list_messages(seeker.id, employer.id, requester=employer)) == 1
        assert len(index.list_messages(seeker.id, employer.id, requester=admin)) == 1

    def test_outsider_denied(self, messaging, index, seeker, employer):
        messaging.send_message(seeker, employer.id, "Private")
        with pytest.raises(AuthorizationError):
            index.list_messages(seeker.id, employer.id, requester=Actor(id="nosy"))


class TestSeparatorInIds:
    """Participant ids may contain the key separator."""

    def test_lookalike_pair_cannot_read_conversation(self, messaging, index):
        messaging.send_message(Actor(id="a_b"), "c", "private to c")

        assert index.list_messages("a", "b_c", requester=Actor(id="a")) == []
        [message] = index.list_messages("c", "a_b", requester=Actor(id="c"))
        assert message.content == "private to c"

    def test_lookalike_pairs_listed_separately(self, messaging, index):
        messaging.send_message(Actor(id="a_b"), "c", "from a_b")
        messaging.send_message(Actor(id="a"), "b_c", "from a")

        assert [c.other_user_id for c in index.list_conversations(Actor(id="c"))] == ["a_b"]
        assert [c.other_user_id for c in index.list_conversations(Actor(id="b_c"))] == ["a"]
        assert [m.content for m in index.list_messages("b_c", "a")] == ["from a"]
