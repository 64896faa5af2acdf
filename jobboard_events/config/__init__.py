"""Configuration management for the job board event services."""

from .duration import DurationParseError, parse_duration
from .environment import EnvironmentConfig, load_environment_config
from .exceptions import ConfigurationError
from .loader import load_config, parse_config
from .models import (
    AppConfig,
    FanoutConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
    NotificationConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "parse_config",
    "load_environment_config",
    "parse_duration",
    # Configuration models
    "AppConfig",
    "FanoutConfig",
    "NotificationConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
    "DurationParseError",
]
