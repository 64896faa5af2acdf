"""Error kinds surfaced to callers of the event and messaging services.

Every service-level failure is one of these, so HTTP or RPC layers sitting in
front of the services can map them to responses with a single except clause.
"""

from typing import List, Optional


class DomainError(Exception):
    """Base class for service-level errors."""

    pass


class InvalidInputError(DomainError):
    """Raised when required input is missing or malformed.

    Always raised before anything is written.

    Attributes:
        errors: Field-level messages, e.g. ``["content: must not be blank"]``
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        detail = f"{message}: {'; '.join(self.errors)}" if self.errors else message
        super().__init__(detail)


class NotFoundError(DomainError):
    """Raised when a criteria record, message or notification id does not exist."""

    def __init__(self, kind: str, record_id: object):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


class AuthorizationError(DomainError):
    """Raised when the actor may not see or change a record.

    No data is mutated or revealed when this is raised.
    """

    pass
