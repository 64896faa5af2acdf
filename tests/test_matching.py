"""Unit tests for the criteria matching engine."""

import logging
from types import SimpleNamespace

import pytest

from jobboard_events.domain.models import CriteriaInput, JobPosting
from jobboard_events.matching import CriteriaMatcher, MatchResult, build_job_text


@pytest.fixture
def matcher():
    return CriteriaMatcher()


class TestKeywordDimension:
    """Any one keyword in title, description or skills satisfies the dimension."""

    def test_no_keywords_is_vacuous(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(), make_job())

    def test_keyword_in_title(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(keywords=["senior"]), make_job())

    def test_keyword_in_description(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(keywords=["event-driven"]), make_job())

    def test_keyword_in_skills(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(keywords=["postgresql"]), make_job())

    def test_any_keyword_suffices(self, matcher, make_job):
        result = matcher.evaluate(CriteriaInput(keywords=["rust", "python"]), make_job())
        assert result.is_match
        assert result.matched_keywords == ["python"]

    def test_no_keyword_found(self, matcher, make_job):
        result = matcher.evaluate(CriteriaInput(keywords="rust, golang"), make_job())
        assert not result.is_match
        assert result.failed == ["keywords"]

    def test_case_insensitive_substring(self, matcher, make_job):
        job = make_job(title="PYTHONISTA wanted", description="", skills=[])
        assert matcher.matches(CriteriaInput(keywords=["Python"]), job)

    def test_plain_string_keywords_are_split_on_commas(self, matcher, make_job):
        job = make_job(title="Java developer", description="", skills=[])
        assert not matcher.matches(SimpleNamespace(keywords="rust, golang"), job)
        assert matcher.matches(SimpleNamespace(keywords="Rust, Java"), job)

    def test_plain_string_keyword_is_not_split_into_characters(self, matcher, make_job):
        job = make_job(title="Data analyst", description="", skills=[])
        result = matcher.evaluate(SimpleNamespace(keywords="python"), job)
        assert not result.is_match
        assert result.failed == ["keywords"]


class TestLocationDimension:
    """Each specified location component must be contained in the job's component."""

    def test_matching_city(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(location={"city": "austin"}), make_job())

    def test_partial_component_contained(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(location={"state": "tex"}), make_job())

    def test_all_components_must_pass(self, matcher, make_job):
        criteria = CriteriaInput(location={"city": "Austin", "country": "Canada"})
        assert not matcher.matches(criteria, make_job())

    def test_component_compared_against_same_component(self, matcher, make_job):
        """A city value does not match the job's state text."""
        job = make_job(location={"city": "Springfield", "state": "Austin County"})
        assert not matcher.matches(CriteriaInput(location={"city": "Austin"}), job)

    def test_job_without_location_fails(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(location={"city": "Austin"}), make_job(location=None))


class TestExactDimensions:
    def test_category_must_equal(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(category="Technology"), make_job())
        assert not matcher.matches(CriteriaInput(category="Finance"), make_job())

    def test_category_is_case_sensitive(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(category="technology"), make_job())

    def test_job_type_must_equal(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(job_type="Full-time"), make_job())
        assert not matcher.matches(CriteriaInput(job_type="Contract"), make_job())

    def test_job_missing_category_fails(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(category="Technology"), make_job(category=None))


class TestSalaryDimension:
    def test_floor_at_or_above_minimum(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(min_salary=120000), make_job())
        assert matcher.matches(CriteriaInput(min_salary=100000), make_job())

    def test_floor_below_minimum(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(min_salary=130000), make_job())

    def test_missing_salary_fails(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(min_salary=1), make_job(salary=None))
        assert not matcher.matches(CriteriaInput(min_salary=1), make_job(salary={"max": 90000}))

    def test_zero_minimum_is_specified(self, matcher, make_job):
        """A minimum of 0 is still a specified dimension."""
        assert not matcher.matches(CriteriaInput(min_salary=0), make_job(salary=None))


class TestExperienceDimension:
    def test_job_at_or_above_level(self, matcher, make_job):
        assert matcher.matches(CriteriaInput(experience_level="Mid Level"), make_job())
        assert matcher.matches(CriteriaInput(experience_level="Senior Level"), make_job())

    def test_job_below_level(self, matcher, make_job):
        assert not matcher.matches(CriteriaInput(experience_level="Lead"), make_job())

    def test_job_without_level_fails(self, matcher, make_job):
        criteria = CriteriaInput(experience_level="Entry Level")
        assert not matcher.matches(criteria, make_job(experience_level=None))


class TestConjunction:
    """Every specified dimension must pass; unspecified ones never fail."""

    DIMENSIONS = {
        "keywords": (["python"], ["cobol"]),
        "location": ({"city": "Austin"}, {"city": "Boston"}),
        "category": ("Technology", "Finance"),
        "job_type": ("Full-time", "Part-time"),
        "min_salary": (100000, 200000),
        "experience_level": ("Mid Level", "Manager"),
    }

    @pytest.mark.parametrize("dimension", sorted(DIMENSIONS))
    def test_single_dimension_pass_and_fail(self, matcher, make_job, dimension):
        passing, failing = self.DIMENSIONS[dimension]

        assert matcher.matches(CriteriaInput(**{dimension: passing}), make_job())

        result = matcher.evaluate(CriteriaInput(**{dimension: failing}), make_job())
        assert not result.is_match
        assert result.failed == [dimension]

    def test_all_dimensions_passing(self, matcher, make_job):
        criteria = CriteriaInput(**{name: values[0] for name, values in self.DIMENSIONS.items()})
        result = matcher.evaluate(criteria, make_job())
        assert result.is_match
        assert result.checked == list(self.DIMENSIONS)

    def test_one_failing_dimension_fails_all(self, matcher, make_job):
        data = {name: values[0] for name, values in self.DIMENSIONS.items()}
        data["job_type"] = "Part-time"
        assert not matcher.matches(CriteriaInput(**data), make_job())


class TestTolerance:
    """Partially populated inputs never raise."""

    def test_minimal_job(self, matcher):
        criteria = CriteriaInput(keywords=["python"], category="Technology", min_salary=1)
        result = matcher.evaluate(criteria, JobPosting(id="bare"))
        assert result.failed == ["keywords", "category", "min_salary"]

    def test_plain_objects_accepted(self, matcher):
        criteria = SimpleNamespace(id=9, keywords=["python"], location=None)
        job = SimpleNamespace(id="j", title="Python dev")
        result = matcher.evaluate(criteria, job)
        assert result.is_match
        assert result.criteria_id == 9

    def test_malformed_value_counts_as_failure(self, matcher, caplog):
        criteria = SimpleNamespace(min_salary="lots")
        job = SimpleNamespace(id="j", salary=SimpleNamespace(min=10))
        with caplog.at_level(logging.DEBUG, logger="jobboard_events.matching.engine"):
            result = matcher.evaluate(criteria, job)
        assert result.failed == ["min_salary"]
        assert any(getattr(r, "event", None) == "matching.dimension.invalid" for r in caplog.records)

    def test_unknown_experience_level_on_criteria(self, matcher, make_job):
        criteria = SimpleNamespace(experience_level="Wizard")
        assert not matcher.matches(criteria, make_job())


class TestMatchResult:
    def test_summary(self):
        assert MatchResult(criteria_id=1, job_id="j").summary == "matched (no dimensions specified)"
        result = MatchResult(criteria_id=1, job_id="j", checked=["category"], failed=["category"])
        assert result.summary == "failed on category"


def test_build_job_text_does_not_join_across_parts():
    text = build_job_text("Data", "Science lead", ["SQL"])
    assert text == "data\nscience lead\nsql"
    assert "datascience" not in text
