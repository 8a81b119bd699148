"""Learning repository fakes for tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import override

from job_fit_learning.domain.filters import ProhibitedKeyword
from job_fit_learning.domain.rejections import PatternType, RejectionPattern
from job_fit_learning.domain.weights import WeightAdjustment
from job_fit_learning.protocols import LearningRepository


def _empty_adjustments() -> list[WeightAdjustment]:
    return []


def _empty_patterns() -> dict[tuple[str, str], RejectionPattern]:
    return {}


def _empty_keywords() -> dict[str, ProhibitedKeyword]:
    return {}


@dataclass
class InMemoryLearningRepository(LearningRepository):
    """In-memory learning store.

    ``now`` stamps upserted patterns; tests that care about recency set it directly.
    """

    adjustments: list[WeightAdjustment] = field(default_factory=_empty_adjustments)
    patterns: dict[tuple[str, str], RejectionPattern] = field(default_factory=_empty_patterns)
    keywords: dict[str, ProhibitedKeyword] = field(default_factory=_empty_keywords)
    now: datetime | None = None

    @override
    def get_weight_adjustments(self, profile: str | None = None) -> list[WeightAdjustment]:
        if profile is None:
            return list(self.adjustments)
        return [record for record in self.adjustments if record.search_profile == profile]

    @override
    def append_weight_adjustment(self, record: WeightAdjustment) -> None:
        self.adjustments.append(record)

    @override
    def delete_weight_adjustments(self, profile: str | None = None) -> int:
        before = len(self.adjustments)
        self.adjustments = [
            record
            for record in self.adjustments
            if profile is not None and record.search_profile != profile
        ]
        return before - len(self.adjustments)

    @override
    def get_rejection_patterns(
        self, pattern_type: PatternType | None = None
    ) -> list[RejectionPattern]:
        patterns = [
            pattern
            for pattern in self.patterns.values()
            if pattern_type is None or pattern.pattern_type == pattern_type
        ]
        return sorted(patterns, key=lambda pattern: pattern.count, reverse=True)

    @override
    def upsert_rejection_pattern(
        self,
        pattern_type: PatternType,
        value: str,
        confidence: float,
        profile_category: str | None = None,
    ) -> RejectionPattern:
        key = (pattern_type, value)
        existing = self.patterns.get(key)
        if existing is None:
            pattern = RejectionPattern(
                pattern_type=pattern_type,
                value=value,
                confidence=confidence,
                profile_category=profile_category,
                last_seen=self.now,
            )
        else:
            pattern = replace(
                existing,
                count=existing.count + 1,
                confidence=max(existing.confidence, confidence),
                last_seen=self.now,
            )
        self.patterns[key] = pattern
        return pattern

    @override
    def set_rejection_pattern(self, pattern: RejectionPattern) -> None:
        self.patterns[pattern.key] = pattern

    @override
    def delete_all_rejection_patterns(self) -> int:
        removed = len(self.patterns)
        self.patterns.clear()
        return removed

    @override
    def get_prohibited_keywords(self) -> list[ProhibitedKeyword]:
        return list(self.keywords.values())

    @override
    def add_prohibited_keyword(self, entry: ProhibitedKeyword) -> None:
        self.keywords[entry.keyword] = entry

    @override
    def remove_prohibited_keyword(self, keyword: str) -> bool:
        return self.keywords.pop(keyword.strip().lower(), None) is not None
