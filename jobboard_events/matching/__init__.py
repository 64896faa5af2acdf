"""Criteria matching for job alerts.

This module provides:
- CriteriaMatcher: evaluates a saved alert against a job posting
- MatchResult: which dimensions were checked, passed and failed
"""

from .engine import CriteriaMatcher
from .models import MatchResult
from .utils import build_job_text

__all__ = [
    "CriteriaMatcher",
    "MatchResult",
    "build_job_text",
]
