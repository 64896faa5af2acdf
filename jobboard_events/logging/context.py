"""Scoped logging context carried through contextvars.

Fields bound here are attached to every log record emitted inside the scope
(see ``ContextFilter`` in :mod:`.config`). Worker threads do not inherit the
caller's context automatically; the fan-out coordinator copies it into each
task with ``contextvars.copy_context()``.
"""

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("jobboard_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields bound in the current context."""
    return dict(_LOG_CONTEXT.get())


def bind_log_context(**fields: Any) -> Token:
    """Merge ``fields`` into the current context.

    Returns:
        Token for :func:`reset_log_context`
    """
    return _LOG_CONTEXT.set({**_LOG_CONTEXT.get(), **fields})


def reset_log_context(token: Token) -> None:
    """Restore the context captured by ``token``."""
    _LOG_CONTEXT.reset(token)


def clear_log_context() -> None:
    """Drop every bound field. Used by tests."""
    _LOG_CONTEXT.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Bind ``fields`` for the duration of a ``with`` block.

    Example:
        >>> with log_context(event_id="evt-1", job_id="job-42"):
        ...     logger.info("Dispatching job alerts")
    """
    token = bind_log_context(**fields)
    try:
        yield get_log_context()
    finally:
        reset_log_context(token)
