"""Domain models and error kinds for the job-board event services."""

from .exceptions import AuthorizationError, DomainError, InvalidInputError, NotFoundError
from .models import (
    Actor,
    Application,
    Attachment,
    ConversationSummary,
    CriteriaInput,
    CriteriaRecord,
    ExperienceLevel,
    JobPosting,
    Location,
    MessageRecord,
    NotificationInput,
    NotificationPage,
    NotificationRecord,
    NotificationType,
    Priority,
    Role,
    SalaryRange,
    conversation_key,
    normalize_keywords,
)

__all__ = [
    # Models
    "Actor",
    "Application",
    "Attachment",
    "ConversationSummary",
    "CriteriaInput",
    "CriteriaRecord",
    "JobPosting",
    "Location",
    "MessageRecord",
    "NotificationInput",
    "NotificationPage",
    "NotificationRecord",
    "SalaryRange",
    # Enums
    "ExperienceLevel",
    "NotificationType",
    "Priority",
    "Role",
    # Helpers
    "conversation_key",
    "normalize_keywords",
    # Exceptions
    "DomainError",
    "InvalidInputError",
    "NotFoundError",
    "AuthorizationError",
]
