"""Rejection classifier fakes for tests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from job_fit_learning.domain.jobs import JobPosting
from job_fit_learning.domain.rejections import RejectionAnalysis
from job_fit_learning.protocols import RejectionClassifier


def _empty_analysis() -> RejectionAnalysis:
    return RejectionAnalysis(patterns=(), suggested_adjustments=(), filters=())


def _empty_calls() -> list[tuple[str, JobPosting]]:
    return []


@dataclass
class FakeClassifier(RejectionClassifier):
    """Classifier returning a fixed analysis, or raising ``error`` when set."""

    analysis: RejectionAnalysis = field(default_factory=_empty_analysis)
    error: Exception | None = None
    calls: list[tuple[str, JobPosting]] = field(default_factory=_empty_calls)

    @override
    def classify(self, reason_text: str, job: JobPosting) -> RejectionAnalysis:
        self.calls.append((reason_text, job))
        if self.error is not None:
            raise self.error
        return self.analysis
