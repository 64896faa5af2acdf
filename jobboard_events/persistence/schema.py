"""SQLAlchemy ORM models and their conversions to domain models.

Timestamps are stored as fixed-width ISO 8601 strings (see
``jobboard_events.utils.timestamps``), which keeps ordering and range
comparisons correct on every backend.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, Column, Float, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from jobboard_events.domain.models import (
    CriteriaInput,
    CriteriaRecord,
    Location,
    MessageRecord,
    NotificationInput,
    NotificationRecord,
    conversation_key,
)
from jobboard_events.utils.timestamps import from_storage, to_storage

logger = logging.getLogger(__name__)

Base = declarative_base()


class CriteriaModel(Base):
    """ORM model for the job_alerts table (one row per saved alert)."""

    __tablename__ = "job_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=True)

    # Match dimensions; NULL means "not set"
    keywords = Column(JSON, nullable=False, default=list)
    location_city = Column(String(255), nullable=True)
    location_state = Column(String(255), nullable=True)
    location_country = Column(String(255), nullable=True)
    category = Column(String(100), nullable=True)
    job_type = Column(String(50), nullable=True)
    min_salary = Column(Float, nullable=True)
    experience_level = Column(String(50), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(String(32), nullable=False)
    updated_at = Column(String(32), nullable=True)

    __table_args__ = (
        Index("idx_job_alerts_owner_active", "owner_id", "is_active"),
        Index("idx_job_alerts_prefilter", "is_active", "category", "job_type"),
    )

    def to_domain(self) -> CriteriaRecord:
        location = Location(
            city=self.location_city, state=self.location_state, country=self.location_country
        )
        return CriteriaRecord(
            id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            keywords=list(self.keywords or []),
            location=None if location.is_empty() else location,
            category=self.category,
            job_type=self.job_type,
            min_salary=self.min_salary,
            experience_level=self.experience_level,
            is_active=bool(self.is_active),
            created_at=from_storage(self.created_at),
            updated_at=from_storage(self.updated_at),
        )

    def apply(self, data: CriteriaInput, fields: Optional[set] = None) -> None:
        """Copy alert fields onto this row.

        Args:
            data: Validated alert input
            fields: Restrict the copy to these field names (partial update)
        """
        values = data.model_dump(include=fields)
        for name, value in values.items():
            if name == "location":
                location = value or {}
                self.location_city = location.get("city")
                self.location_state = location.get("state")
                self.location_country = location.get("country")
            else:
                setattr(self, name, value)


class NotificationModel(Base):
    """ORM model for the notifications table."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(String(64), nullable=False)
    sender_id = Column(String(64), nullable=True)
    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(Text, nullable=True)

    related_job_id = Column(String(64), nullable=True)
    related_application_id = Column(String(64), nullable=True)
    related_message_id = Column(Integer, nullable=True)

    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(String(32), nullable=True)
    priority = Column(String(16), nullable=False, default="normal")
    # "metadata" is reserved on declarative classes
    extra_data = Column("metadata", JSON, nullable=True)
    created_at = Column(String(32), nullable=False)

    __table_args__ = (
        Index("idx_notifications_recipient_read", "recipient_id", "is_read", "created_at"),
        Index("idx_notifications_recipient_type", "recipient_id", "type", "created_at"),
        Index("idx_notifications_read_at", "is_read", "read_at"),
    )

    @classmethod
    def from_input(cls, data: NotificationInput, created_at: datetime) -> "NotificationModel":
        return cls(
            recipient_id=data.recipient_id,
            sender_id=data.sender_id,
            type=data.type,
            title=data.title,
            message=data.message,
            link=data.link,
            related_job_id=data.related_job_id,
            related_application_id=data.related_application_id,
            related_message_id=data.related_message_id,
            is_read=False,
            read_at=None,
            priority=data.priority,
            extra_data=data.metadata,
            created_at=to_storage(created_at),
        )

    def to_domain(self) -> NotificationRecord:
        return NotificationRecord(
            id=self.id,
            recipient_id=self.recipient_id,
            sender_id=self.sender_id,
            type=self.type,
            title=self.title,
            message=self.message,
            link=self.link,
            related_job_id=self.related_job_id,
            related_application_id=self.related_application_id,
            related_message_id=self.related_message_id,
            is_read=bool(self.is_read),
            read_at=from_storage(self.read_at),
            priority=self.priority,
            metadata=self.extra_data,
            created_at=from_storage(self.created_at),
        )


class MessageModel(Base):
    """ORM model for the messages table.

    ``conversation_key`` is always derived from the participants when a row
    is created; it is never taken from caller input.
    """

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    conversation_key = Column(String(320), nullable=False)
    job_id = Column(String(64), nullable=True)
    application_id = Column(String(64), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(String(32), nullable=True)
    attachments = Column(JSON, nullable=False, default=list)
    created_at = Column(String(32), nullable=False)

    __table_args__ = (
        Index("idx_messages_conversation", "conversation_key", "created_at"),
        Index("idx_messages_receiver_read", "receiver_id", "is_read"),
        Index("idx_messages_participants", "sender_id", "receiver_id"),
    )

    @classmethod
    def create(
        cls,
        sender_id: str,
        receiver_id: str,
        content: str,
        created_at: datetime,
        job_id: Optional[str] = None,
        application_id: Optional[str] = None,
        attachments: Optional[list] = None,
    ) -> "MessageModel":
        return cls(
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            conversation_key=conversation_key(sender_id, receiver_id),
            job_id=job_id,
            application_id=application_id,
            is_read=False,
            read_at=None,
            attachments=attachments or [],
            created_at=to_storage(created_at),
        )

    def to_domain(self) -> MessageRecord:
        return MessageRecord(
            id=self.id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            content=self.content,
            conversation_key=self.conversation_key,
            job_id=self.job_id,
            application_id=self.application_id,
            is_read=bool(self.is_read),
            read_at=from_storage(self.read_at),
            attachments=list(self.attachments or []),
            created_at=from_storage(self.created_at),
        )


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes that do not exist yet (idempotent)."""
    logger.info("Creating database schema if not exists")
    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(tables)}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
