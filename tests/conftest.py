"""Shared fixtures for the test suite."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from jobboard_events.domain.models import Actor, Application, JobPosting
from jobboard_events.persistence import close_database, init_database

ENV_VARS = ("DATABASE_URL", "LOG_LEVEL", "ENVIRONMENT", "FANOUT_MAX_WORKERS")


class FakeClock:
    """Deterministic clock that moves forward by ``step`` on every call."""

    def __init__(self, start=None, step=timedelta(seconds=1)):
        self.current = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.step = step
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            value = self.current
            self.current = self.current + self.step
            return value

    def advance(self, **kwargs):
        with self._lock:
            self.current = self.current + timedelta(**kwargs)


@pytest.fixture
def memory_db():
    """In-memory SQLite database, initialised and torn down per test."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


@pytest.fixture
def file_db(tmp_path):
    """File-backed SQLite database for multi-threaded tests."""
    db_file = tmp_path / "events.db"
    init_database(f"sqlite:///{db_file}")
    yield db_file
    close_database()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the configuration reads."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def seeker():
    return Actor(id="seeker-1", role="job_seeker")


@pytest.fixture
def other_seeker():
    return Actor(id="seeker-2", role="job_seeker")


@pytest.fixture
def employer():
    return Actor(id="employer-1", role="employer")


@pytest.fixture
def admin():
    return Actor(id="admin-1", role="admin")


@pytest.fixture
def make_job():
    """Factory for fully populated job postings; keyword arguments override fields."""

    def _make(**overrides):
        data = {
            "id": "job-1",
            "title": "Senior Python Engineer",
            "description": "Build event-driven services on SQLAlchemy.",
            "skills": ["Python", "PostgreSQL"],
            "category": "Technology",
            "job_type": "Full-time",
            "location": {"city": "Austin", "state": "Texas", "country": "USA"},
            "salary": {"min": 120000, "max": 150000, "currency": "USD"},
            "experience_level": "Senior Level",
            "employer_id": "employer-1",
            "company": "Example Corp",
        }
        data.update(overrides)
        return JobPosting.model_validate(data)

    return _make


@pytest.fixture
def make_application():
    def _make(**overrides):
        data = {
            "id": "app-1",
            "job_id": "job-1",
            "job_title": "Senior Python Engineer",
            "applicant_id": "seeker-1",
            "employer_id": "employer-1",
            "status": "pending",
        }
        data.update(overrides)
        return Application.model_validate(data)

    return _make
