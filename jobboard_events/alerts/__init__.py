"""Saved job alert management."""

from .service import CriteriaService

__all__ = ["CriteriaService"]
