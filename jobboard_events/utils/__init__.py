"""Shared helpers for time handling."""

from .timestamps import (
    STORAGE_FORMAT,
    cutoff_before,
    ensure_utc,
    from_storage,
    to_storage,
    utc_now,
)

__all__ = [
    "STORAGE_FORMAT",
    "utc_now",
    "ensure_utc",
    "to_storage",
    "from_storage",
    "cutoff_before",
]
