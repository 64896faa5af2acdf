"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class FanoutConfig(BaseModel):
    """Settings for job-alert fan-out."""

    max_workers: int = Field(
        8, ge=1, le=64, description="Worker threads evaluating and writing alerts per posting"
    )
    background: bool = Field(
        True, description="Run fan-out off the caller's thread (submit_job_alerts)"
    )
    prefilter: bool = Field(
        True, description="Narrow candidate alerts by category and job type in the query"
    )


class NotificationConfig(BaseModel):
    """Notification listing and retention settings."""

    retention_window: str = Field(
        "30d", description="How long read notifications are kept, measured from read time"
    )
    purge_interval: str = Field("1h", description="How often the retention purge runs")
    default_page_size: int = Field(20, ge=1, le=500)
    max_page_size: int = Field(100, ge=1, le=500)

    # Computed fields
    retention_seconds: Optional[int] = None
    purge_interval_seconds: Optional[int] = None

    @field_validator("retention_window")
    @classmethod
    def validate_retention_window(cls, v: str) -> str:
        try:
            validate_duration_range(
                parse_duration(v), min_seconds=3600, max_seconds=365 * 86400, name="Retention window"
            )
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @field_validator("purge_interval")
    @classmethod
    def validate_purge_interval(cls, v: str) -> str:
        try:
            validate_duration_range(
                parse_duration(v), min_seconds=60, max_seconds=7 * 86400, name="Purge interval"
            )
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def compute_fields(self):
        """Check page sizes and compute the durations in seconds."""
        if self.default_page_size > self.max_page_size:
            raise ValueError(
                f"default_page_size ({self.default_page_size}) cannot exceed "
                f"max_page_size ({self.max_page_size})"
            )
        self.retention_seconds = parse_duration(self.retention_window)
        self.purge_interval_seconds = parse_duration(self.purge_interval)
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object. Every section is optional."""

    fanout: FanoutConfig = Field(default_factory=FanoutConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
