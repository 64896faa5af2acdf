"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/jobboard_events.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        database_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
        fanout_max_workers: Optional[int] = None,
    ):
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.log_level = log_level.upper() if log_level else None
        self.environment = environment or "development"
        self.fanout_max_workers = fanout_max_workers


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables. None are required.

    Optional environment variables:
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/jobboard_events.db)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Deployment name attached to every log record
    - FANOUT_MAX_WORKERS: Override fanout.max_workers (1-64)

    Raises:
        ConfigurationError: If a variable is set to an invalid value
    """
    errors = []

    database_url = os.getenv("DATABASE_URL")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")
    workers_str = os.getenv("FANOUT_MAX_WORKERS")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    fanout_max_workers = None
    if workers_str:
        try:
            fanout_max_workers = int(workers_str)
            if not 1 <= fanout_max_workers <= 64:
                errors.append(
                    f"Invalid FANOUT_MAX_WORKERS: {fanout_max_workers}. Must be between 1 and 64."
                )
        except ValueError:
            errors.append(
                f"Invalid FANOUT_MAX_WORKERS: '{workers_str}'. Must be a valid integer."
            )

    if database_url is not None and not database_url.strip():
        errors.append("DATABASE_URL is set but empty")

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Unset variables you do not need; every variable has a default",
            ],
        )

    return EnvironmentConfig(
        database_url=database_url,
        log_level=log_level,
        environment=environment,
        fanout_max_workers=fanout_max_workers,
    )
