"""Notification fan-out for job postings and application events."""

from .coordinator import FanoutCoordinator
from .models import FanoutFailure, FanoutResult

__all__ = [
    "FanoutCoordinator",
    "FanoutResult",
    "FanoutFailure",
]
