"""Domain models for alerts, notifications and messages.

This module defines the data structures shared by every service:
- JobPosting / Application: read-only views of records owned by other stores
- Actor: the already-authenticated caller
- CriteriaInput / CriteriaRecord: saved job alerts
- NotificationInput / NotificationRecord: in-app notifications
- MessageRecord / ConversationSummary: direct messages between two users
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from jobboard_events.utils.timestamps import ensure_utc

CONVERSATION_KEY_SEPARATOR = "_"
CONVERSATION_KEY_ESCAPE = "\\"


def conversation_key(user_a: str, user_b: str) -> str:
    """Derive the conversation key shared by two participants.

    The two ids are sorted before joining, so the key does not depend on who
    sent the first message. Separator and escape characters inside an id are
    backslash-escaped, so two different pairs never share a key.

    Example:
        >>> conversation_key("u2", "u1") == conversation_key("u1", "u2") == "u1_u2"
        True
    """
    first, second = sorted((str(user_a), str(user_b)))
    return CONVERSATION_KEY_SEPARATOR.join((_escape_key_part(first), _escape_key_part(second)))


def _escape_key_part(user_id: str) -> str:
    return user_id.replace(CONVERSATION_KEY_ESCAPE, CONVERSATION_KEY_ESCAPE * 2).replace(
        CONVERSATION_KEY_SEPARATOR, CONVERSATION_KEY_ESCAPE + CONVERSATION_KEY_SEPARATOR
    )


def normalize_keywords(value: Union[None, str, List[str]]) -> List[str]:
    """Normalize alert keywords to a de-duplicated lowercase list.

    Accepts either a list of strings or a single comma-separated string.
    Order of first appearance is kept; blanks are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")

    normalized: List[str] = []
    for term in value:
        cleaned = str(term).strip().lower()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


class Role(str, Enum):
    """Roles supplied by the authentication collaborator."""

    JOB_SEEKER = "job_seeker"
    EMPLOYER = "employer"
    ADMIN = "admin"


class NotificationType(str, Enum):
    """Kinds of in-app notification."""

    APPLICATION = "application"
    MESSAGE = "message"
    JOB_ALERT = "job_alert"
    SYSTEM = "system"
    INTERVIEW = "interview"
    STATUS_UPDATE = "status_update"


class Priority(str, Enum):
    """Notification priority."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class ExperienceLevel(str, Enum):
    """Seniority ladder, lowest first."""

    ENTRY = "Entry Level"
    MID = "Mid Level"
    SENIOR = "Senior Level"
    LEAD = "Lead"
    MANAGER = "Manager"

    @classmethod
    def rank(cls, value: Optional[str]) -> Optional[int]:
        """Position of ``value`` on the ladder, or None if it is not a level."""
        for index, level in enumerate(cls):
            if level.value == value:
                return index
        return None


class Actor(BaseModel):
    """Authenticated caller identity, validated upstream."""

    id: str = Field(..., min_length=1, description="User id")
    role: Role = Field(Role.JOB_SEEKER, description="User role")

    model_config = {"use_enum_values": True}

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


class Location(BaseModel):
    """Structured location shared by postings and alerts."""

    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

    @field_validator("city", "state", "country")
    @classmethod
    def strip_component(cls, v: Optional[str]) -> Optional[str]:
        """Strip whitespace; blank components become None."""
        return _blank_to_none(v)

    def is_empty(self) -> bool:
        return not (self.city or self.state or self.country)


class SalaryRange(BaseModel):
    """Advertised salary band of a posting."""

    min: Optional[float] = Field(None, ge=0)
    max: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = None


class JobPosting(BaseModel):
    """Job posting as handed over by the job store at creation time.

    Only ``id`` is required; matching treats anything missing as absent.
    """

    id: str = Field(..., min_length=1, description="Job id in the job store")
    title: str = Field("", description="Job title")
    description: str = Field("", description="Full description text")
    skills: List[str] = Field(default_factory=list, description="Free-text skill list")
    category: Optional[str] = None
    job_type: Optional[str] = None
    location: Optional[Location] = None
    salary: Optional[SalaryRange] = None
    experience_level: Optional[str] = None
    employer_id: Optional[str] = None
    company: Optional[str] = None

    model_config = {"json_schema_extra": {"example": {
        "id": "job-42",
        "title": "Senior Python Engineer",
        "description": "Build event-driven services.",
        "skills": ["python", "sqlalchemy"],
        "category": "Technology",
        "job_type": "Full-time",
        "location": {"city": "Austin", "state": "TX", "country": "USA"},
        "salary": {"min": 120000, "max": 150000, "currency": "USD"},
        "experience_level": "Senior Level",
        "employer_id": "emp-7",
        "company": "Example Corp",
    }}}


class Application(BaseModel):
    """Application as seen at status-change time."""

    id: str = Field(..., min_length=1)
    job_id: str = Field(..., min_length=1)
    job_title: str = Field("", description="Title of the job applied for")
    applicant_id: str = Field(..., min_length=1)
    employer_id: Optional[str] = None
    status: str = Field("pending", min_length=1)

    @field_validator("status")
    @classmethod
    def normalize_status(cls, v: str) -> str:
        """Statuses compare case-insensitively."""
        return v.strip().lower()


class CriteriaInput(BaseModel):
    """Fields a user may set on a job alert.

    Used for both creation and partial updates; on update only the fields
    explicitly provided are applied.
    """

    name: Optional[str] = Field(None, description="Display name of the alert")
    keywords: List[str] = Field(default_factory=list, description="Any-of keyword list")
    location: Optional[Location] = None
    category: Optional[str] = None
    job_type: Optional[str] = None
    min_salary: Optional[float] = Field(None, ge=0)
    experience_level: Optional[ExperienceLevel] = None
    is_active: bool = True

    model_config = {"use_enum_values": True}

    @field_validator("keywords", mode="before")
    @classmethod
    def split_keywords(cls, v: Any) -> List[str]:
        """Accept a list or a comma-separated string."""
        return normalize_keywords(v)

    @field_validator("name", "category", "job_type", mode="before")
    @classmethod
    def blank_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Empty strings mean the dimension is not set."""
        return _blank_to_none(v) if isinstance(v, str) else v

    @field_validator("location")
    @classmethod
    def empty_location_is_unset(cls, v: Optional[Location]) -> Optional[Location]:
        if v is not None and v.is_empty():
            return None
        return v


class CriteriaRecord(CriteriaInput):
    """Persisted job alert owned by one user."""

    id: int
    owner_id: str = Field(..., min_length=1)
    created_at: datetime
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class NotificationInput(BaseModel):
    """Everything needed to create one notification."""

    recipient_id: str = Field(..., description="User the notification is for")
    sender_id: Optional[str] = Field(None, description="None for system notifications")
    type: NotificationType
    title: str
    message: str
    link: Optional[str] = None
    related_job_id: Optional[str] = None
    related_application_id: Optional[str] = None
    related_message_id: Optional[int] = None
    priority: Priority = Priority.NORMAL
    metadata: Optional[Dict[str, Any]] = None

    model_config = {"use_enum_values": True}

    @field_validator("recipient_id", "title", "message")
    @classmethod
    def require_text(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped


class NotificationRecord(NotificationInput):
    """Stored notification. Only the read flag and read time ever change."""

    id: int
    is_read: bool = False
    read_at: Optional[datetime] = None
    created_at: datetime

    @field_validator("created_at", "read_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class Attachment(BaseModel):
    """Metadata of a file attached to a message (the file lives elsewhere)."""

    name: str
    url: str
    content_type: Optional[str] = None
    size: Optional[int] = Field(None, ge=0)


class MessageRecord(BaseModel):
    """Stored direct message."""

    id: int
    sender_id: str
    receiver_id: str
    content: str = Field(..., min_length=1)
    conversation_key: str
    job_id: Optional[str] = None
    application_id: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    attachments: List[Attachment] = Field(default_factory=list)
    created_at: datetime

    @field_validator("created_at", "read_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_conversation_key(self):
        """The stored key must be the one derived from the participants."""
        expected = conversation_key(self.sender_id, self.receiver_id)
        if self.conversation_key != expected:
            raise ValueError(
                f"conversation_key {self.conversation_key!r} does not match "
                f"participants (expected {expected!r})"
            )
        return self

    def other_participant(self, user_id: str) -> str:
        return self.receiver_id if self.sender_id == user_id else self.sender_id


class ConversationSummary(BaseModel):
    """One row of a user's conversation list."""

    conversation_key: str
    other_user_id: str
    last_message: MessageRecord
    unread_count: int = 0


class NotificationPage(BaseModel):
    """A page of notifications plus the counters the UI needs."""

    items: List[NotificationRecord] = Field(default_factory=list)
    total: int = 0
    unread_count: int = 0
    page: int = 1
    limit: int = 20
    total_pages: int = 0
