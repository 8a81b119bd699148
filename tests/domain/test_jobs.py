"""Tests for the job posting model."""

import math

import pytest

from job_fit_learning.domain.jobs import JobPosting, coerce_category_scores
from job_fit_learning.exceptions import JobPayloadError


def test_searchable_text_joins_title_and_description() -> None:
    job = JobPosting(title="Engineer", company="Acme", description="Remote first")

    assert job.searchable_text == "Engineer Remote first"


def test_coerce_category_scores_accepts_ints_and_floats() -> None:
    scores = coerce_category_scores({"a": 0, "b": 100, "c": 42.5})

    assert dict(scores) == {"a": 0.0, "b": 100.0, "c": 42.5}


def test_coerce_category_scores_rejects_nan() -> None:
    with pytest.raises(JobPayloadError, match="between 0 and 100"):
        coerce_category_scores({"a": math.nan})
