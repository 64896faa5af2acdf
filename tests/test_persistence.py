"""Unit tests for the persistence layer."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from jobboard_events.domain.models import Attachment, CriteriaInput, NotificationInput
from jobboard_events.persistence import (
    CriteriaRepository,
    DatabaseConnectionError,
    MessageRepository,
    NotificationRepository,
    PersistenceError,
    RecordNotFoundError,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from jobboard_events.persistence.database import _redact_url

T0 = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def at(seconds=0, days=0):
    return T0 + timedelta(seconds=seconds, days=days)


def notification(recipient="u1", type="system", **overrides):
    data = {"recipient_id": recipient, "type": type, "title": "Title", "message": "Body"}
    data.update(overrides)
    return NotificationInput(**data)


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_creates_file_and_parent_directories(self, tmp_path):
        db_file = tmp_path / "subdir" / "nested" / "events.db"

        init_database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
            with get_session() as session:
                assert session.execute(text("SELECT 1")).scalar() == 1
        finally:
            close_database()

    def test_init_database_creates_tables(self, memory_db):
        with get_session() as session:
            tables = {
                row[0]
                for row in session.execute(text("SELECT name FROM sqlite_master WHERE type='table'"))
            }
        assert {"job_alerts", "notifications", "messages"} <= tables

    def test_init_database_invalid_url_raises_error(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")
        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_init_database_is_idempotent(self, tmp_path):
        db_url = f"sqlite:///{tmp_path / 'events.db'}"
        init_database(db_url)
        init_database(db_url)
        try:
            assert get_engine() is not None
        finally:
            close_database()

    def test_session_before_init_raises(self):
        close_database()
        with pytest.raises(DatabaseConnectionError, match="not initialized"):
            with get_session():
                pass
        with pytest.raises(DatabaseConnectionError):
            get_engine()

    def test_close_database_twice_is_safe(self, memory_db):
        close_database()
        close_database()

    def test_session_rolls_back_on_error(self, memory_db):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                NotificationRepository(session).create(notification(), at())
                raise RuntimeError("abort")

        with get_session() as session:
            assert NotificationRepository(session).count_for_recipient("u1") == 0

    def test_in_memory_sessions_do_not_overlap(self, memory_db):
        active = []
        overlaps = []
        lock = threading.Lock()

        def use_session():
            with get_session() as session:
                with lock:
                    if active:
                        overlaps.append(1)
                    active.append(1)
                NotificationRepository(session).create(notification(), at())
                time.sleep(0.01)
                with lock:
                    active.pop()

        with ThreadPoolExecutor(max_workers=6) as pool:
            list(pool.map(lambda _: use_session(), range(30)))

        assert overlaps == []
        with get_session() as session:
            assert NotificationRepository(session).count_for_recipient("u1") == 30

    def test_nested_session_in_same_thread(self, memory_db):
        with get_session() as outer:
            with get_session() as inner:
                NotificationRepository(inner).create(notification(), at())
            assert outer.execute(text("SELECT 1")).scalar() == 1

    def test_redact_url_hides_password(self):
        assert _redact_url("postgresql://app:secret@db:5432/events") == "postgresql://app:***@db:5432/events"
        assert _redact_url("sqlite:///./data/x.db") == "sqlite:///./data/x.db"


class TestCriteriaRepository:
    """Tests for the job alert repository."""

    def test_create_and_get(self, memory_db):
        data = CriteriaInput(
            name="Python in Austin",
            keywords="Python, Django",
            location={"city": "Austin", "country": "USA"},
            min_salary=100000,
            experience_level="Mid Level",
        )
        with get_session() as session:
            created = CriteriaRepository(session).create("u1", data, at())

        with get_session() as session:
            fetched = CriteriaRepository(session).get_by_id(created.id)

        assert fetched == created
        assert fetched.keywords == ["python", "django"]
        assert fetched.location.city == "Austin"
        assert fetched.location.state is None
        assert fetched.experience_level == "Mid Level"
        assert fetched.created_at == at()
        assert fetched.updated_at is None

    def test_get_missing_returns_none(self, memory_db):
        with get_session() as session:
            assert CriteriaRepository(session).get_by_id(999) is None

    def test_list_for_owner_newest_first(self, memory_db):
        with get_session() as session:
            repo = CriteriaRepository(session)
            first = repo.create("u1", CriteriaInput(name="first"), at(1))
            second = repo.create("u1", CriteriaInput(name="second"), at(2))
            repo.create("u2", CriteriaInput(name="other"), at(3))

        with get_session() as session:
            alerts = CriteriaRepository(session).list_for_owner("u1")

        assert [a.id for a in alerts] == [second.id, first.id]

    def test_list_active_excludes_inactive(self, memory_db):
        with get_session() as session:
            repo = CriteriaRepository(session)
            active = repo.create("u1", CriteriaInput(), at())
            repo.create("u2", CriteriaInput(is_active=False), at())

        with get_session() as session:
            assert [a.id for a in CriteriaRepository(session).list_active()] == [active.id]

    def test_list_active_prefilter(self, memory_db):
        """Alerts with the dimension unset or equal pass the prefilter."""
        with get_session() as session:
            repo = CriteriaRepository(session)
            unset = repo.create("u1", CriteriaInput(), at())
            same = repo.create("u2", CriteriaInput(category="Technology", job_type="Full-time"), at())
            repo.create("u3", CriteriaInput(category="Finance"), at())
            repo.create("u4", CriteriaInput(job_type="Contract"), at())

        with get_session() as session:
            repo = CriteriaRepository(session)
            prefiltered = repo.list_active(category="Technology", job_type="Full-time")
            unfiltered = repo.list_active()

        assert [a.id for a in prefiltered] == [unset.id, same.id]
        assert len(unfiltered) == 4

    def test_update_only_named_fields(self, memory_db):
        with get_session() as session:
            created = CriteriaRepository(session).create(
                "u1", CriteriaInput(name="a", keywords=["python"], category="Technology"), at()
            )

        changes = CriteriaInput(category="Finance", location={"city": "Boston"})
        with get_session() as session:
            updated = CriteriaRepository(session).update(
                created.id, changes, {"category", "location"}, at(60)
            )

        assert updated.category == "Finance"
        assert updated.location.city == "Boston"
        assert updated.keywords == ["python"]
        assert updated.name == "a"
        assert updated.updated_at == at(60)

    def test_update_can_clear_location(self, memory_db):
        with get_session() as session:
            created = CriteriaRepository(session).create(
                "u1", CriteriaInput(location={"city": "Austin"}), at()
            )
        with get_session() as session:
            updated = CriteriaRepository(session).update(
                created.id, CriteriaInput(location=None), {"location"}, at(1)
            )
        assert updated.location is None

    def test_update_missing_raises(self, memory_db):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                CriteriaRepository(session).update(42, CriteriaInput(), set(), at())

    def test_set_active_and_delete(self, memory_db):
        with get_session() as session:
            created = CriteriaRepository(session).create("u1", CriteriaInput(), at())

        with get_session() as session:
            repo = CriteriaRepository(session)
            assert repo.set_active(created.id, False, at(5)).is_active is False
            assert repo.delete(created.id) is True
            assert repo.delete(created.id) is False

    def test_sqlalchemy_errors_become_persistence_errors(self, memory_db):
        with get_session() as session:
            repo = CriteriaRepository(session)
            with patch.object(session, "execute", side_effect=OperationalError("stmt", {}, Exception("locked"))):
                with pytest.raises(PersistenceError, match="Failed to list alerts"):
                    repo.list_for_owner("u1")


class TestNotificationRepository:
    """Tests for the notification repository."""

    def test_create_unread(self, memory_db):
        with get_session() as session:
            record = NotificationRepository(session).create(
                notification(type="job_alert", related_job_id="job-1", metadata={"alert_id": 3}),
                at(),
            )

        assert record.id is not None
        assert record.is_read is False
        assert record.read_at is None
        assert record.metadata == {"alert_id": 3}
        assert record.created_at == at()

    def test_list_filters_and_paging(self, memory_db):
        with get_session() as session:
            repo = NotificationRepository(session)
            for i in range(5):
                repo.create(notification(type="job_alert" if i % 2 else "message"), at(i))
            repo.create(notification(recipient="u2"), at(10))

        with get_session() as session:
            repo = NotificationRepository(session)
            page = repo.list_for_recipient("u1", offset=0, limit=3)
            alerts = repo.list_for_recipient("u1", type="job_alert")
            total = repo.count_for_recipient("u1")

        assert [n.created_at for n in page] == [at(4), at(3), at(2)]
        assert len(alerts) == 2
        assert total == 5

    def test_equal_timestamps_ordered_by_id(self, memory_db):
        with get_session() as session:
            repo = NotificationRepository(session)
            first = repo.create(notification(), at())
            second = repo.create(notification(), at())

        with get_session() as session:
            listed = NotificationRepository(session).list_for_recipient("u1")

        assert [n.id for n in listed] == [second.id, first.id]

    def test_mark_read_keeps_first_read_time(self, memory_db):
        with get_session() as session:
            created = NotificationRepository(session).create(notification(), at())

        with get_session() as session:
            repo = NotificationRepository(session)
            first = repo.mark_read(created.id, at(10))
            again = repo.mark_read(created.id, at(20))

        assert first.is_read and first.read_at == at(10)
        assert again.read_at == at(10)

    def test_mark_read_missing_raises(self, memory_db):
        with pytest.raises(RecordNotFoundError):
            with get_session() as session:
                NotificationRepository(session).mark_read(404, at())

    def test_mark_all_read_and_delete_read(self, memory_db):
        with get_session() as session:
            repo = NotificationRepository(session)
            for i in range(3):
                repo.create(notification(), at(i))
            repo.create(notification(recipient="u2"), at())

        with get_session() as session:
            repo = NotificationRepository(session)
            assert repo.mark_all_read("u1", at(30)) == 3
            assert repo.mark_all_read("u1", at(40)) == 0
            assert repo.count_for_recipient("u1", is_read=False) == 0
            assert repo.delete_read("u1") == 3
            assert repo.count_for_recipient("u2") == 1

    def test_delete_read_before_ignores_unread(self, memory_db):
        with get_session() as session:
            repo = NotificationRepository(session)
            old = repo.create(notification(), at())
            recent = repo.create(notification(), at())
            unread = repo.create(notification(), at())
            repo.mark_read(old.id, at(days=1))
            repo.mark_read(recent.id, at(days=20))

        with get_session() as session:
            deleted = NotificationRepository(session).delete_read_before(at(days=10))

        with get_session() as session:
            remaining = {n.id for n in NotificationRepository(session).list_for_recipient("u1")}

        assert deleted == 1
        assert remaining == {recent.id, unread.id}


class TestMessageRepository:
    """Tests for the message repository."""

    def test_create_derives_conversation_key(self, memory_db):
        with get_session() as session:
            message = MessageRepository(session).create(
                "u2",
                "u1",
                "hello",
                at(),
                attachments=[Attachment(name="cv.pdf", url="/files/cv.pdf", size=10)],
            )

        assert message.conversation_key == "u1_u2"
        assert message.is_read is False
        assert message.attachments[0].name == "cv.pdf"

    def test_conversation_ordering(self, memory_db):
        with get_session() as session:
            repo = MessageRepository(session)
            m1 = repo.create("u1", "u2", "first", at(1))
            m2 = repo.create("u2", "u1", "second", at(2))
            m3 = repo.create("u1", "u3", "elsewhere", at(3))

        with get_session() as session:
            repo = MessageRepository(session)
            conversation = repo.list_conversation("u2", "u1")
            everything = repo.list_for_participant("u1")

        assert [m.id for m in conversation] == [m1.id, m2.id]
        assert [m.id for m in everything] == [m3.id, m2.id, m1.id]

    def test_unread_counts_and_mark_conversation_read(self, memory_db):
        with get_session() as session:
            repo = MessageRepository(session)
            repo.create("u2", "u1", "a", at(1))
            repo.create("u2", "u1", "b", at(2))
            repo.create("u1", "u2", "c", at(3))
            repo.create("u3", "u1", "d", at(4))

        with get_session() as session:
            repo = MessageRepository(session)
            assert repo.count_unread("u1") == 3
            assert repo.count_unread("u1", sender_id="u2") == 2
            assert repo.mark_conversation_read("u1", "u2", at(10)) == 2
            assert repo.mark_conversation_read("u1", "u2", at(11)) == 0
            assert repo.count_unread("u1") == 1
            assert repo.count_unread("u2") == 1

    def test_separator_in_ids_keeps_pairs_apart(self, memory_db):
        with get_session() as session:
            repo = MessageRepository(session)
            private = repo.create("a_b", "c", "for c only", at(1))
            repo.create("a", "b_c", "for b_c", at(2))

        assert private.conversation_key != "a_b_c"

        with get_session() as session:
            repo = MessageRepository(session)
            assert [m.content for m in repo.list_conversation("a", "b_c")] == ["for b_c"]
            assert [m.id for m in repo.list_conversation("c", "a_b")] == [private.id]
            assert repo.count_unread("c", sender_id="a_b") == 1
            assert repo.mark_conversation_read("b_c", "a", at(3)) == 1
            assert repo.count_unread("c") == 1

    def test_mark_read_and_delete(self, memory_db):
        with get_session() as session:
            created = MessageRepository(session).create("u1", "u2", "hi", at())

        with get_session() as session:
            repo = MessageRepository(session)
            read = repo.mark_read(created.id, at(5))
            assert read.read_at == at(5)
            assert repo.mark_read(created.id, at(9)).read_at == at(5)
            assert repo.delete(created.id) is True
            assert repo.get_by_id(created.id) is None
