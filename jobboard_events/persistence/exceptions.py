"""Persistence layer exceptions.

Repositories translate SQLAlchemy errors into these so services never depend
on driver-specific exception types.
"""


class PersistenceError(Exception):
    """Base exception for storage failures."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the engine cannot be created or the database is unusable.

    Also raised when a session is requested before ``init_database``.
    """

    pass


class RecordNotFoundError(PersistenceError):
    """Raised by update operations that target a row that does not exist.

    Lookups return None instead; services turn that into ``NotFoundError``.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised on constraint violations (NOT NULL, primary key, and so on)."""

    pass
