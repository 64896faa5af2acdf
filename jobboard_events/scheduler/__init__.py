"""Scheduling of periodic maintenance jobs."""

from .service import MaintenanceScheduler

__all__ = [
    "MaintenanceScheduler",
]
