"""Rejection analysis: deterministic keyword rules with an optional external classifier."""

from __future__ import annotations

from dataclasses import replace

from ..domain.jobs import JobPosting
from ..domain.rejections import (
    AdjustmentTargets,
    RejectionAnalysis,
    RejectionPattern,
    WeightAdjustmentSuggestion,
    analyze_keywords,
    extract_company,
    extract_seniority_target,
    extract_tech_keywords,
    merge_classifier_analysis,
    to_adjustments,
)
from ..observability import get_logger
from ..protocols import RejectionClassifier
from .reference_tables import ReferenceTables


class RejectionAnalyzer:
    """Turns rejection text into patterns and weight adjustment suggestions."""

    def __init__(
        self,
        *,
        tables: ReferenceTables,
        targets: AdjustmentTargets,
        classifier: RejectionClassifier | None = None,
        adjustment_clamp: float = 5.0,
    ) -> None:
        self.tables = tables
        self.targets = targets
        self.classifier = classifier
        self.adjustment_clamp = adjustment_clamp

    def analyze_keywords(self, reason_text: str) -> list[RejectionPattern]:
        return analyze_keywords(
            reason_text,
            rules=self.tables.phrase_rules,
            tech_keywords=self.tables.tech_keywords,
            tech_confidence=self.tables.tech_confidence,
        )

    def to_adjustments(
        self, patterns: list[RejectionPattern], primary_category: str | None = None
    ) -> list[WeightAdjustmentSuggestion]:
        """Map patterns to adjustments; ``primary_category`` overrides the tech fallback."""
        targets = self.targets
        if primary_category is not None:
            targets = replace(targets, primary_category=primary_category)
        return to_adjustments(
            patterns, targets=targets, tech_categories=self.tables.tech_categories
        )

    def analyze(
        self, reason_text: str, primary_category: str | None = None
    ) -> RejectionAnalysis:
        """Run the deterministic keyword path only."""
        patterns = self.analyze_keywords(reason_text)
        return RejectionAnalysis(
            patterns=tuple(patterns),
            suggested_adjustments=tuple(self.to_adjustments(patterns, primary_category)),
            filters=(),
        )

    def analyze_with_external_classifier(
        self, reason_text: str, job: JobPosting, primary_category: str | None = None
    ) -> RejectionAnalysis:
        """Merge classifier output with the keyword result.

        Any classifier failure degrades to the keyword-only analysis with no filters.
        """
        deterministic = self.analyze(reason_text, primary_category)
        if self.classifier is None:
            return deterministic

        try:
            classified = self.classifier.classify(reason_text, job)
        except Exception as exc:
            get_logger("job_fit_learning.rejection_analysis").warning(
                "Rejection classifier failed, using keyword analysis only: %s", exc
            )
            return deterministic

        return merge_classifier_analysis(
            classified,
            keyword_patterns=deterministic.patterns,
            keyword_adjustments=deterministic.suggested_adjustments,
            clamp=self.adjustment_clamp,
        )

    def extract_company(self, reason_text: str, job: JobPosting) -> str | None:
        return extract_company(reason_text, job)

    def extract_tech_keywords(self, reason_text: str) -> list[str]:
        return extract_tech_keywords(reason_text, self.tables.tech_keywords)

    def extract_seniority_target(self, reason_text: str) -> str | None:
        return extract_seniority_target(reason_text)
