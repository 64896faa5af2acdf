"""Persistence layer backed by SQLAlchemy (SQLite by default).

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - CriteriaRepository: saved job alerts
    - NotificationRepository: in-app notifications
    - MessageRepository: direct messages

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from jobboard_events.persistence import init_database, get_session, MessageRepository
    >>> init_database("sqlite:///./data/jobboard_events.db")
    >>> with get_session() as session:
    ...     messages = MessageRepository(session).list_conversation("u1", "u2")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import CriteriaRepository, MessageRepository, NotificationRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "CriteriaRepository",
    "NotificationRepository",
    "MessageRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
