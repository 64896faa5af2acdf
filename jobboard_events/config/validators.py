"""Advisory checks for settings that are valid but probably unintended."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Inspect a raw configuration dictionary and return warning messages.

    Args:
        config_dict: Configuration as loaded from YAML

    Returns:
        List of warning messages (empty when nothing looks off)
    """
    warning_messages = []

    fanout = config_dict.get("fanout") or {}
    if isinstance(fanout, dict):
        workers = fanout.get("max_workers")
        if isinstance(workers, int) and workers > 32:
            warning_messages.append(
                f"Large fanout.max_workers ({workers}) may exhaust database connections"
            )
        if fanout.get("prefilter") is False:
            warning_messages.append(
                "fanout.prefilter is disabled; every active alert is evaluated for each posting"
            )

    notifications = config_dict.get("notifications") or {}
    if isinstance(notifications, dict):
        retention = notifications.get("retention_window")
        purge = notifications.get("purge_interval")
        if isinstance(retention, str) and isinstance(purge, str):
            try:
                if parse_duration(purge) > parse_duration(retention):
                    warning_messages.append(
                        f"notifications.purge_interval ({purge}) is longer than "
                        f"retention_window ({retention}); read notifications will outlive it"
                    )
            except DurationParseError:
                # Reported by model validation
                pass

    for section in config_dict:
        if section not in ("fanout", "notifications", "logging"):
            warning_messages.append(f"Unknown configuration section '{section}' is ignored")

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a ``UserWarning``."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
