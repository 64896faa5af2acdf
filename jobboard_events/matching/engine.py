"""Criteria matching engine for job alerts.

Evaluation is conjunctive across dimensions and disjunctive within the
keyword list. A dimension the alert leaves unset never causes a failure; a
dimension the alert sets but the posting lacks always does.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from jobboard_events.domain.models import ExperienceLevel, normalize_keywords

from .models import MatchResult
from .utils import LOCATION_COMPONENTS, build_job_text, location_component

logger = logging.getLogger(__name__)

# (passed, matched keywords)
CheckOutcome = Tuple[bool, List[str]]


class CriteriaMatcher:
    """Evaluates saved job alerts against job postings.

    The matcher is stateless and side-effect free apart from debug logging,
    so one instance can be shared by every fan-out worker thread. It never
    raises: malformed values count as a failed dimension.
    """

    def __init__(self, logger_instance: logging.Logger = None):
        self.logger = logger_instance or logger
        self._checks: Dict[str, Callable[[object, object], Optional[CheckOutcome]]] = {
            "keywords": self._check_keywords,
            "location": self._check_location,
            "category": self._check_category,
            "job_type": self._check_job_type,
            "min_salary": self._check_min_salary,
            "experience_level": self._check_experience_level,
        }

    def matches(self, criteria, job) -> bool:
        """Return True if ``job`` satisfies every dimension ``criteria`` specifies."""
        return self.evaluate(criteria, job).is_match

    def evaluate(self, criteria, job) -> MatchResult:
        """Evaluate one alert against one posting.

        Args:
            criteria: CriteriaRecord, CriteriaInput or any object with the same attributes
            job: JobPosting or any object with the same attributes

        Returns:
            MatchResult listing checked, passed and failed dimensions
        """
        result = MatchResult(
            criteria_id=getattr(criteria, "id", None),
            job_id=str(getattr(job, "id", "")),
        )

        for dimension, check in self._checks.items():
            try:
                outcome = check(criteria, job)
            except (AttributeError, TypeError, ValueError) as e:
                self.logger.debug(
                    f"Dimension {dimension} could not be evaluated: {e}",
                    extra={
                        "event": "matching.dimension.invalid",
                        "criteria_id": result.criteria_id,
                        "job_id": result.job_id,
                        "dimension": dimension,
                    },
                )
                result.checked.append(dimension)
                result.failed.append(dimension)
                continue

            if outcome is None:
                continue

            passed, matched_keywords = outcome
            result.checked.append(dimension)
            (result.passed if passed else result.failed).append(dimension)
            result.matched_keywords.extend(matched_keywords)

        self.logger.debug(
            f"Alert {result.criteria_id} vs job {result.job_id}: {result.summary}",
            extra={
                "event": "matching.evaluated",
                "criteria_id": result.criteria_id,
                "job_id": result.job_id,
                "is_match": result.is_match,
                "failed_dimensions": result.failed,
            },
        )
        return result

    # Each check returns None when the alert leaves the dimension unset.

    @staticmethod
    def _check_keywords(criteria, job) -> Optional[CheckOutcome]:
        # A bare string is a comma-separated list, never a sequence of characters
        keywords = normalize_keywords(getattr(criteria, "keywords", None))
        if not keywords:
            return None

        haystack = build_job_text(
            getattr(job, "title", None),
            getattr(job, "description", None),
            getattr(job, "skills", None),
        )
        found = [keyword for keyword in keywords if keyword in haystack]
        return bool(found), found

    @staticmethod
    def _check_location(criteria, job) -> Optional[CheckOutcome]:
        wanted = getattr(criteria, "location", None)
        components = {
            name: location_component(wanted, name)
            for name in LOCATION_COMPONENTS
            if location_component(wanted, name)
        }
        if not components:
            return None

        job_location = getattr(job, "location", None)
        passed = all(
            expected in location_component(job_location, name)
            for name, expected in components.items()
        )
        return passed, []

    @staticmethod
    def _check_category(criteria, job) -> Optional[CheckOutcome]:
        wanted = getattr(criteria, "category", None)
        if not wanted:
            return None
        return getattr(job, "category", None) == wanted, []

    @staticmethod
    def _check_job_type(criteria, job) -> Optional[CheckOutcome]:
        wanted = getattr(criteria, "job_type", None)
        if not wanted:
            return None
        return getattr(job, "job_type", None) == wanted, []

    @staticmethod
    def _check_min_salary(criteria, job) -> Optional[CheckOutcome]:
        minimum = getattr(criteria, "min_salary", None)
        if minimum is None:
            return None

        salary = getattr(job, "salary", None)
        floor = salary.get("min") if isinstance(salary, dict) else getattr(salary, "min", None)
        if floor is None:
            return False, []
        return float(floor) >= float(minimum), []

    @staticmethod
    def _check_experience_level(criteria, job) -> Optional[CheckOutcome]:
        wanted = getattr(criteria, "experience_level", None)
        if not wanted:
            return None

        wanted_rank = ExperienceLevel.rank(getattr(wanted, "value", wanted))
        if wanted_rank is None:
            raise ValueError(f"unknown experience level {wanted!r}")

        job_rank = ExperienceLevel.rank(getattr(job, "experience_level", None))
        return job_rank is not None and job_rank >= wanted_rank, []
