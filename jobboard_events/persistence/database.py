"""Engine and session lifecycle for the notification store.

The engine and session factory are created once per process by
``init_database`` and shared by every repository. Sessions are short-lived:
each unit of work (one notification write, one message send, one mark-read)
opens its own session through ``get_session`` so a failure in one cannot roll
back another.
"""

import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobboard_events.logging import get_logger

from .exceptions import DatabaseConnectionError

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None
# Set for in-memory SQLite, where every session shares one connection
_session_lock: Optional[threading.RLock] = None

logger = get_logger(__name__, component="database")


def _is_memory_url(database_url: str) -> bool:
    return database_url in ("sqlite://", "sqlite:///:memory:")


def init_database(database_url: str) -> None:
    """Create the engine, validate the connection and create missing tables.

    For file-backed SQLite the parent directory is created if needed. An
    in-memory SQLite database is pinned to a single connection so every
    session sees the same data.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///./data/jobboard_events.db``

    Raises:
        DatabaseConnectionError: If the URL is invalid or the database is unreachable
    """
    global _engine, _session_factory, _session_lock

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": _redact_url(database_url)},
    )

    try:
        is_sqlite = database_url.startswith("sqlite")
        engine_kwargs = {"pool_pre_ping": True}

        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
            if _is_memory_url(database_url):
                engine_kwargs["poolclass"] = StaticPool
            else:
                db_file = Path(database_url.replace("sqlite:///", "", 1))
                if not db_file.parent.exists():
                    logger.info(f"Creating database directory: {db_file.parent}")
                    db_file.parent.mkdir(parents=True, exist_ok=True)

        if _engine is not None:
            _engine.dispose()

        _engine = create_engine(database_url, **engine_kwargs)

        if is_sqlite:
            _configure_sqlite(_engine, wal=not _is_memory_url(database_url))

        with _engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()

        _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
        _session_lock = threading.RLock() if _is_memory_url(database_url) else None

        from .schema import create_schema

        create_schema(_engine)

        logger.info(
            "Database initialized",
            extra={"event": "database.initialised", "database_url": _redact_url(database_url)},
        )

    except DatabaseConnectionError:
        raise
    except Exception as e:
        error_msg = f"Failed to initialize database: {e}"
        logger.error(error_msg, exc_info=True)
        raise DatabaseConnectionError(error_msg) from e


def _configure_sqlite(engine: Engine, wal: bool) -> None:
    """Turn on foreign keys, and WAL for file databases, on every new connection."""

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _redact_url(url: str) -> str:
    """Hide the password part of a server database URL."""
    if url.startswith("sqlite") or "@" not in url:
        return url
    credentials, _, host = url.rpartition("@")
    scheme, _, userinfo = credentials.partition("://")
    user = userinfo.split(":", 1)[0]
    return f"{scheme}://{user}:***@{host}"


@contextmanager
def get_session() -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error.

    Raises:
        DatabaseConnectionError: If ``init_database`` has not been called

    Example:
        >>> with get_session() as session:
        ...     repo = MessageRepository(session)
        ...     repo.get_by_id(7)
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    with _session_lock or nullcontext():
        session = _session_factory()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.warning(
                f"Database session rolled back: {e}",
                extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
            )
            raise
        finally:
            session.close()


def get_engine() -> Engine:
    """Return the process-wide engine.

    Raises:
        DatabaseConnectionError: If the database has not been initialized
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of the engine. Safe to call more than once."""
    global _engine, _session_factory, _session_lock

    if _engine is not None:
        logger.info("Closing database connections", extra={"event": "database.closing"})
        _engine.dispose()
    _engine = None
    _session_factory = None
    _session_lock = None
