"""Structured logging for the event and notification services.

Modules obtain loggers through :func:`get_logger`, optionally tagging every
record with the component that emitted it. Formatting and context handling
live in :mod:`.config` and :mod:`.context`.
"""

import logging
from typing import Optional, Union

from .context import bind_log_context, get_log_context, log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that tags records with a component name.

    Fields passed through ``extra=`` at the call site win over the adapter's
    own fields.
    """

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a module logger, wrapped with a component tag when given.

    Example:
        >>> logger = get_logger(__name__, component="fanout")
        >>> logger.info("Fan-out started", extra={"event": "fanout.started"})
    """
    base = logging.getLogger(name)
    if component is None:
        return base
    return ComponentLoggerAdapter(base, {"component": component})


__all__ = [
    "ComponentLoggerAdapter",
    "get_logger",
    "log_context",
    "bind_log_context",
    "get_log_context",
]
