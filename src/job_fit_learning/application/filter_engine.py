"""Filter engine: build the blocking chain from rule tables and learned patterns.

Chain order, stopping at the first block:
1. Prohibited keywords (manual)
2. Role type (non-target role families)
3. Contract only (contract profile only)
4. Learned filters from rejection patterns seen at least ``activation_count`` times:
   company blocklist, keyword avoidance, seniority minimum, tech stack avoidance
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..domain.filters import (
    MATCH_MODES,
    FilterResult,
    JobFilter,
    MatchMode,
    ProhibitedKeyword,
    apply_filters,
    company_blocklist_filter,
    contract_only_filter,
    default_match_mode,
    keyword_avoidance_filter,
    prohibited_keyword_filter,
    role_type_filters,
    seniority_minimum_filter,
    tech_stack_avoidance_filter,
)
from ..domain.jobs import JobPosting
from ..domain.rejections import PATTERN_TYPES, PatternType, RejectionPattern, is_too_junior
from ..exceptions import (
    DuplicateProhibitedKeywordError,
    InvalidMatchModeError,
    InvalidPatternTypeError,
    InvalidProhibitedKeywordError,
)
from ..observability import get_logger
from ..protocols import Clock, LearningRepository
from .reference_tables import ReferenceTables

MANUAL_FILTER_CONFIDENCE = 1.0


@dataclass(frozen=True)
class FilterStats:
    """Counts of currently active filters."""

    total_filters: int
    by_name: dict[str, int]


@dataclass(frozen=True)
class FilterTestResult:
    """One posting's outcome from a dry run of the filter chain."""

    job: JobPosting
    result: FilterResult


def _as_pattern_type(value: str) -> PatternType:
    for pattern_type in PATTERN_TYPES:
        if pattern_type == value:
            return pattern_type
    raise InvalidPatternTypeError(value)


def _as_match_mode(value: str) -> MatchMode:
    for mode in MATCH_MODES:
        if mode == value:
            return mode
    raise InvalidMatchModeError(value)


class FilterEngine:
    """Builds and applies the job filter chain."""

    def __init__(
        self,
        *,
        repository: LearningRepository,
        tables: ReferenceTables,
        clock: Clock,
        contract_profile: str = "contract",
        activation_count: int = 2,
    ) -> None:
        self.repository = repository
        self.tables = tables
        self.clock = clock
        self.contract_profile = contract_profile
        self.activation_count = activation_count

    def _learned_filters(self, patterns: list[RejectionPattern]) -> list[JobFilter]:
        active = [pattern for pattern in patterns if pattern.count >= self.activation_count]

        def _values(pattern_type: str) -> list[str]:
            return [pattern.value for pattern in active if pattern.pattern_type == pattern_type]

        filters: list[JobFilter] = []
        companies = _values("company")
        if companies:
            filters.append(company_blocklist_filter(companies))
        keywords = _values("keyword")
        if keywords:
            filters.append(keyword_avoidance_filter(keywords))
        junior_count = sum(
            pattern.count
            for pattern in patterns
            if pattern.pattern_type == "seniority" and is_too_junior(pattern.value)
        )
        if junior_count >= self.activation_count:
            filters.append(seniority_minimum_filter(self.tables.junior_title_pattern))
        tech_terms = _values("tech_stack")
        if tech_terms:
            filters.append(tech_stack_avoidance_filter(tech_terms))
        return filters

    def build(self, profile: str | None = None) -> list[JobFilter]:
        """Build the current filter chain from stored rules and patterns."""
        filters = [
            prohibited_keyword_filter(entry) for entry in self.repository.get_prohibited_keywords()
        ]
        filters.extend(role_type_filters(self.tables.role_families))
        if profile is not None and profile == self.contract_profile:
            filters.append(contract_only_filter(self.tables.contract_keywords))
        filters.extend(self._learned_filters(self.repository.get_rejection_patterns()))
        return filters

    def apply(self, job: JobPosting, profile: str | None = None) -> FilterResult:
        return apply_filters(job, self.build(profile or job.profile))

    def add_manual_filter(
        self, pattern_type: str, value: str, reason: str = "Manual filter"
    ) -> RejectionPattern:
        """Store a pattern that is active immediately.

        Raises:
            InvalidPatternTypeError: If ``pattern_type`` is not a known pattern type.
        """
        checked_type = _as_pattern_type(pattern_type.strip().lower())
        text = value.strip()
        key = (checked_type, text)
        existing = next(
            (
                pattern
                for pattern in self.repository.get_rejection_patterns(checked_type)
                if pattern.key == key
            ),
            None,
        )
        pattern = RejectionPattern(
            pattern_type=checked_type,
            value=text,
            confidence=MANUAL_FILTER_CONFIDENCE,
            count=max(self.activation_count, existing.count if existing else 0),
            profile_category=existing.profile_category if existing else None,
            last_seen=self.clock.now(),
        )
        self.repository.set_rejection_pattern(pattern)
        get_logger("job_fit_learning.filter_engine").info(
            'Added manual filter: %s = "%s" - %s', checked_type, text, reason
        )
        return pattern

    def add_prohibited_keyword(
        self,
        keyword: str,
        match_mode: str | None = None,
        reason: str | None = None,
    ) -> ProhibitedKeyword:
        """Add a prohibited keyword or comma-separated keyword group.

        Raises:
            InvalidProhibitedKeywordError: If the keyword is empty.
            InvalidMatchModeError: If ``match_mode`` is not word, substring or sentence.
            DuplicateProhibitedKeywordError: If the keyword already exists.
        """
        text = keyword.strip().lower()
        if not text:
            raise InvalidProhibitedKeywordError()
        mode = _as_match_mode(match_mode.strip().lower()) if match_mode else None
        if "," in text:
            mode = "sentence"
        elif mode is None:
            mode = default_match_mode(text)

        if any(entry.keyword == text for entry in self.repository.get_prohibited_keywords()):
            raise DuplicateProhibitedKeywordError(text)

        entry = ProhibitedKeyword(
            keyword=text,
            match_mode=mode,
            reason=(reason or "").strip() or None,
            created_at=self.clock.now(),
        )
        self.repository.add_prohibited_keyword(entry)
        return entry

    def remove_prohibited_keyword(self, keyword: str) -> bool:
        return self.repository.remove_prohibited_keyword(keyword)

    def clear_all_filters(self) -> int:
        """Delete every learned rejection pattern."""
        removed = self.repository.delete_all_rejection_patterns()
        get_logger("job_fit_learning.filter_engine").info(
            "Cleared %s rejection patterns", removed
        )
        return removed

    def filter_stats(self, profile: str | None = None) -> FilterStats:
        filters = self.build(profile)
        by_name: dict[str, int] = {}
        for job_filter in filters:
            by_name[job_filter.name] = by_name.get(job_filter.name, 0) + 1
        return FilterStats(total_filters=len(filters), by_name=by_name)

    def test_filters(
        self, jobs: Iterable[JobPosting], profile: str | None = None
    ) -> list[FilterTestResult]:
        filters_by_profile: dict[str | None, list[JobFilter]] = {}
        results: list[FilterTestResult] = []
        for job in jobs:
            target = profile or job.profile
            if target not in filters_by_profile:
                filters_by_profile[target] = self.build(target)
            results.append(
                FilterTestResult(job=job, result=apply_filters(job, filters_by_profile[target]))
            )
        return results
