"""Public scoring, learning and filtering API.

Usage example:
    service = FitLearningService(
        catalog=catalog,
        learner=learner,
        analyzer=analyzer,
        filter_engine=filter_engine,
        repository=repository,
    )
    if not service.apply_filters(job).blocked:
        score = service.compute_fit_score(job)
    service.record_rejection(job, "Too junior for this role")
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from ..domain.filters import FilterResult
from ..domain.fit_score import compute_fit_score, derive_blockers
from ..domain.jobs import JobPosting
from ..domain.profiles import ProfileCatalog
from ..domain.rejections import (
    PatternType,
    RejectionAnalysis,
    RejectionPattern,
    extract_company,
    is_too_junior,
)
from ..domain.weights import WeightAdjustment
from ..exceptions import JobPayloadError
from ..infrastructure.io.validation import parse_job_json
from ..observability import get_logger
from ..protocols import FileSystem, LearningRepository
from .filter_engine import FilterEngine
from .rejection_analysis import RejectionAnalyzer
from .weight_learner import WeightLearner

MIN_SENIORITY_VALUE = "not senior enough"


@dataclass(frozen=True)
class FitScoreResult:
    """A fit score with the weights used and the low-match blockers."""

    fit_score: float
    profile: str | None
    weights: dict[str, float]
    blockers: list[str]


@dataclass(frozen=True)
class ScoredJob:
    job: JobPosting
    fit_score: float


@dataclass(frozen=True)
class BatchScoreReport:
    """Outcome of scoring many postings with per-item isolation."""

    scored: list[ScoredJob]
    failures: list[tuple[str, str]]


@dataclass(frozen=True)
class RejectionOutcome:
    """What one recorded rejection changed."""

    analysis: RejectionAnalysis
    applied_adjustments: list[WeightAdjustment]
    stored_patterns: list[RejectionPattern]


@dataclass(frozen=True)
class RejectionRecord:
    """A historical rejection to replay through the learning loop."""

    job: JobPosting
    reason_text: str
    rejection_id: str | None = None


@dataclass
class BackfillReport:
    analyzed: int = 0
    skipped: int = 0
    errors: int = 0
    applied_adjustments: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)


def _job_label(job: JobPosting) -> str:
    return job.id or f"{job.title} @ {job.company}"


def load_job_posting(*, path: Path, fs: FileSystem) -> JobPosting:
    """Read one job posting from a JSON file.

    Raises:
        JobPayloadError: If the file is missing or the posting is invalid.
    """
    if not fs.exists(path):
        raise JobPayloadError(f"file not found: {path}")
    return parse_job_json(fs.read_text(path))


class FitLearningService:
    """Facade over the weight learner, rejection analyzer and filter engine."""

    def __init__(
        self,
        *,
        catalog: ProfileCatalog,
        learner: WeightLearner,
        analyzer: RejectionAnalyzer,
        filter_engine: FilterEngine,
        repository: LearningRepository,
    ) -> None:
        self.catalog = catalog
        self.learner = learner
        self.analyzer = analyzer
        self.filter_engine = filter_engine
        self.repository = repository

    def get_active_weights(self, profile: str | None = None) -> dict[str, float]:
        return self.learner.get_active_weights(profile)

    def explain_fit_score(self, job: JobPosting, profile: str | None = None) -> FitScoreResult:
        target = profile or job.profile
        weights = self.learner.get_active_weights(target)
        return FitScoreResult(
            fit_score=compute_fit_score(
                job.category_scores, weights, self.catalog.bonus_only_categories()
            ),
            profile=target,
            weights=weights,
            blockers=derive_blockers(job.category_scores, weights),
        )

    def compute_fit_score(self, job: JobPosting, profile: str | None = None) -> float:
        """Score a posting against the effective weights of ``profile`` (or the job's own)."""
        return self.explain_fit_score(job, profile).fit_score

    def recompute_fit_scores(
        self, jobs: Iterable[JobPosting], profile: str | None = None
    ) -> BatchScoreReport:
        """Score many postings; a failing posting is logged and reported, not raised."""
        logger = get_logger("job_fit_learning.service")
        scored: list[ScoredJob] = []
        failures: list[tuple[str, str]] = []
        for job in jobs:
            try:
                scored.append(ScoredJob(job=job, fit_score=self.compute_fit_score(job, profile)))
            except Exception as exc:
                logger.warning("Failed to score %s: %s", _job_label(job), exc)
                failures.append((_job_label(job), str(exc)))
        return BatchScoreReport(scored=scored, failures=failures)

    def apply_filters(self, job: JobPosting, profile: str | None = None) -> FilterResult:
        return self.filter_engine.apply(job, profile)

    def record_rejection(
        self,
        job: JobPosting,
        reason_text: str,
        rejection_id: str | None = None,
        use_classifier: bool = False,
    ) -> RejectionOutcome:
        """Analyze a rejection, adjust weights and store patterns for future filtering."""
        profile = job.profile or self.catalog.default_profile
        technical = self.catalog.technical_category(profile)
        if use_classifier:
            analysis = self.analyzer.analyze_with_external_classifier(
                reason_text, job, technical
            )
        else:
            analysis = self.analyzer.analyze(reason_text, technical)

        applied: list[WeightAdjustment] = []
        for suggestion in analysis.suggested_adjustments:
            record = self.learner.apply_adjustment(
                profile,
                suggestion.category,
                suggestion.adjustment,
                suggestion.reason,
                rejection_id,
            )
            if record is not None:
                applied.append(record)

        stored: list[RejectionPattern] = []
        seen: set[tuple[str, str]] = set()
        # One too-junior signal per rejection; SeniorityMinimum counts rejections
        junior_seen = False

        def _store(
            pattern_type: PatternType,
            value: str,
            confidence: float,
            profile_category: str | None = None,
        ) -> None:
            nonlocal junior_seen
            text = value.strip()
            if not text or (pattern_type, text) in seen:
                return
            if pattern_type == "seniority" and is_too_junior(text):
                if junior_seen:
                    return
                junior_seen = True
            seen.add((pattern_type, text))
            stored.append(
                self.repository.upsert_rejection_pattern(
                    pattern_type, text, confidence, profile_category
                )
            )

        for pattern in analysis.patterns:
            if pattern.pattern_type == "company":
                company = extract_company(reason_text, job) or job.company
                _store("company", company, pattern.confidence)
            else:
                _store(
                    pattern.pattern_type,
                    pattern.value,
                    pattern.confidence,
                    pattern.profile_category,
                )

        for suggestion in analysis.filters:
            match suggestion.kind:
                case "block_company":
                    _store("company", suggestion.value, 1.0)
                case "avoid_keyword":
                    _store("keyword", suggestion.value, 1.0)
                case "min_seniority":
                    _store("seniority", MIN_SENIORITY_VALUE, 1.0)

        get_logger("job_fit_learning.service").info(
            "Recorded rejection for %s: %s patterns, %s weight adjustments",
            _job_label(job),
            len(stored),
            len(applied),
        )
        return RejectionOutcome(
            analysis=analysis, applied_adjustments=applied, stored_patterns=stored
        )

    def backfill_rejections(
        self, rejections: Iterable[RejectionRecord], use_classifier: bool = False
    ) -> BackfillReport:
        """Replay historical rejections; each failure is logged and counted."""
        logger = get_logger("job_fit_learning.service")
        report = BackfillReport()
        for rejection in rejections:
            if not rejection.reason_text.strip():
                report.skipped += 1
                continue
            try:
                outcome = self.record_rejection(
                    rejection.job,
                    rejection.reason_text,
                    rejection.rejection_id,
                    use_classifier=use_classifier,
                )
            except Exception as exc:
                logger.warning(
                    "Failed to backfill rejection for %s: %s", _job_label(rejection.job), exc
                )
                report.errors += 1
                report.failures.append((_job_label(rejection.job), str(exc)))
                continue
            report.analyzed += 1
            report.applied_adjustments += len(outcome.applied_adjustments)
        return report
