"""Unit tests for NotificationWriter."""

import logging
from contextlib import contextmanager
from unittest.mock import patch

import pytest

from jobboard_events.domain.exceptions import InvalidInputError
from jobboard_events.domain.models import NotificationInput
from jobboard_events.notifications import NotificationWriter, NotificationWriteError
from jobboard_events.persistence import (
    DataIntegrityError,
    NotificationRepository,
    close_database,
    get_session,
    init_database,
)


@pytest.fixture
def writer(memory_db, clock):
    return NotificationWriter(clock=clock)


class TestWrite:
    def test_write_input_model(self, writer, clock):
        start = clock.current
        record = writer.write(
            NotificationInput(recipient_id="u1", type="system", title="Hello", message="World")
        )

        assert record.id is not None
        assert record.is_read is False
        assert record.created_at == start

        with get_session() as session:
            assert NotificationRepository(session).get_by_id(record.id) == record

    def test_write_mapping(self, writer):
        record = writer.write(
            {
                "recipient_id": "u1",
                "sender_id": "u2",
                "type": "message",
                "title": "New Message",
                "message": "u2 sent you a message",
                "related_message_id": 5,
                "priority": "high",
            }
        )
        assert record.sender_id == "u2"
        assert record.priority == "high"
        assert record.related_message_id == 5

    def test_missing_recipient_rejected_before_write(self, writer):
        with pytest.raises(InvalidInputError) as exc_info:
            writer.write({"type": "system", "title": "t", "message": "m"})

        assert any(error.startswith("recipient_id") for error in exc_info.value.errors)
        with get_session() as session:
            assert NotificationRepository(session).count_for_recipient("u1") == 0

    def test_missing_type_rejected(self, writer):
        with pytest.raises(InvalidInputError, match="type"):
            writer.write({"recipient_id": "u1", "title": "t", "message": "m"})

    def test_non_mapping_rejected(self, writer):
        with pytest.raises(InvalidInputError):
            writer.write(None)

    def test_storage_failure_raises_write_error(self, writer, caplog):
        with patch.object(
            NotificationRepository, "create", side_effect=DataIntegrityError("constraint")
        ):
            with caplog.at_level(logging.ERROR):
                with pytest.raises(NotificationWriteError):
                    writer.write({"recipient_id": "u1", "type": "system", "title": "t", "message": "m"})

        assert any(
            getattr(r, "event", None) == "notification.write.failed" for r in caplog.records
        )

    def test_uninitialised_database_raises_write_error(self, clock):
        close_database()
        writer = NotificationWriter(clock=clock)
        with pytest.raises(NotificationWriteError):
            writer.write({"recipient_id": "u1", "type": "system", "title": "t", "message": "m"})


class TestIsolation:
    def test_failed_write_rolls_back_only_itself(self, writer):
        """A failed write does not undo an earlier one."""
        first = writer.write({"recipient_id": "u1", "type": "system", "title": "t", "message": "m"})

        with patch.object(NotificationRepository, "create", side_effect=DataIntegrityError("x")):
            with pytest.raises(NotificationWriteError):
                writer.write({"recipient_id": "u1", "type": "system", "title": "t", "message": "m"})

        with get_session() as session:
            assert NotificationRepository(session).get_by_id(first.id) is not None

    def test_custom_session_factory(self, clock):
        calls = []

        @contextmanager
        def tracking_session():
            calls.append("opened")
            with get_session() as session:
                yield session

        init_database("sqlite:///:memory:")
        try:
            NotificationWriter(session_factory=tracking_session, clock=clock).write(
                {"recipient_id": "u1", "type": "system", "title": "t", "message": "m"}
            )
        finally:
            close_database()

        assert calls == ["opened"]
