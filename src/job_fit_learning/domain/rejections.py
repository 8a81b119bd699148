"""Rule-based interpretation of free-text rejection reasons.

Rejection text is matched against an ordered phrase table and a technology keyword
table. Each hit becomes a ``RejectionPattern``; patterns then map to signed weight
adjustment suggestions.

Usage example:
    from job_fit_learning.domain.rejections import analyze_keywords, to_adjustments

    patterns = analyze_keywords("Too junior for this role", rules=rules, tech_keywords=())
    suggestions = to_adjustments(patterns, targets=targets, tech_categories={})
    assert suggestions[0].adjustment > 0
"""

from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Literal

from .jobs import JobPosting

PatternType = Literal["company", "keyword", "tech_stack", "seniority", "location", "compensation"]
FilterKind = Literal["block_company", "avoid_keyword", "min_seniority"]

PATTERN_TYPES: tuple[PatternType, ...] = (
    "company",
    "keyword",
    "tech_stack",
    "seniority",
    "location",
    "compensation",
)
FILTER_KINDS: tuple[FilterKind, ...] = ("block_company", "avoid_keyword", "min_seniority")

TOO_JUNIOR_MARKERS = (
    "junior",
    "not senior",
    "more experience",
    "not enough experience",
    "lack experience",
    "need senior",
    "require senior",
    "senior required",
)
TOO_SENIOR_MARKERS = ("overqualified", "too senior")

SENIORITY_SCALE = 3
LOCATION_SCALE = 2
COMPENSATION_SCALE = 2

_COMPANY_CAPTURE = re.compile(
    r"\b(?:at|from|with)\s+([A-Z0-9][\w&.-]*(?:\s+[A-Z0-9&][\w&.-]*)*)",
)
_COMPANY_STOP_WORDS = frozenset({"the", "this", "that", "our", "their"})
_MIN_COMPANY_LENGTH = 4


@dataclass(frozen=True)
class PhraseRule:
    """A phrase that signals one pattern type when found in rejection text."""

    pattern_type: PatternType
    phrase: str
    confidence: float
    word_boundary: bool = False


@dataclass(frozen=True)
class TechKeyword:
    """A technology term and the category it belongs to, if any."""

    term: str
    category: str | None


@dataclass(frozen=True)
class RejectionPattern:
    """A structured signal extracted from one or more rejections."""

    pattern_type: PatternType
    value: str
    confidence: float
    count: int = 1
    profile_category: str | None = None
    last_seen: datetime | None = None

    @property
    def key(self) -> tuple[str, str]:
        return (self.pattern_type, self.value)


@dataclass(frozen=True)
class WeightAdjustmentSuggestion:
    """A signed percentage-point change suggested for one category."""

    category: str
    adjustment: float
    reason: str


@dataclass(frozen=True)
class FilterSuggestion:
    """A filter suggested by the external classifier."""

    kind: FilterKind
    value: str


@dataclass(frozen=True)
class RejectionAnalysis:
    """Combined output of analysing a rejection."""

    patterns: tuple[RejectionPattern, ...]
    suggested_adjustments: tuple[WeightAdjustmentSuggestion, ...]
    filters: tuple[FilterSuggestion, ...] = ()


@dataclass(frozen=True)
class AdjustmentTargets:
    """Categories that non-technical rejection signals adjust."""

    primary_category: str
    seniority_category: str
    remote_category: str


def contains_term(text: str, term: str) -> bool:
    """Return True when ``term`` appears in ``text`` without touching other word characters.

    Works for terms with punctuation such as ``c#`` or ``node.js`` where ``\\b`` does not.
    """
    pattern = rf"(?<![a-z0-9]){re.escape(term.lower())}(?![a-z0-9])"
    return re.search(pattern, text.lower()) is not None


def _rule_matches(rule: PhraseRule, lowered: str) -> bool:
    if rule.word_boundary:
        return contains_term(lowered, rule.phrase)
    return rule.phrase.lower() in lowered


def analyze_keywords(
    reason_text: str,
    *,
    rules: Sequence[PhraseRule],
    tech_keywords: Sequence[TechKeyword],
    tech_confidence: float = 0.8,
) -> list[RejectionPattern]:
    """Extract patterns from rejection text using the phrase and tech keyword tables.

    Rules are evaluated in table order, followed by tech keywords. Each
    ``(type, value)`` pair appears at most once.
    """
    lowered = reason_text.lower()
    if not lowered.strip():
        return []

    patterns: list[RejectionPattern] = []
    seen: set[tuple[str, str]] = set()

    def _add(pattern: RejectionPattern) -> None:
        if pattern.key in seen:
            return
        seen.add(pattern.key)
        patterns.append(pattern)

    for rule in rules:
        if _rule_matches(rule, lowered):
            _add(RejectionPattern(rule.pattern_type, rule.phrase, rule.confidence))

    for keyword in tech_keywords:
        if contains_term(lowered, keyword.term):
            _add(
                RejectionPattern(
                    "tech_stack",
                    keyword.term,
                    tech_confidence,
                    profile_category=keyword.category,
                )
            )
    return patterns


def is_too_junior(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in TOO_JUNIOR_MARKERS)


def is_too_senior(value: str) -> bool:
    lowered = value.lower()
    return any(marker in lowered for marker in TOO_SENIOR_MARKERS)


def _magnitude(confidence: float, scale: int) -> int:
    return math.ceil(confidence * scale)


def to_adjustments(
    patterns: Iterable[RejectionPattern],
    *,
    targets: AdjustmentTargets,
    tech_categories: Mapping[str, str | None],
) -> list[WeightAdjustmentSuggestion]:
    """Map patterns to signed weight adjustment suggestions.

    Company and keyword patterns only feed filters and produce nothing here.
    """
    suggestions: list[WeightAdjustmentSuggestion] = []
    for pattern in patterns:
        match pattern.pattern_type:
            case "seniority":
                magnitude = _magnitude(pattern.confidence, SENIORITY_SCALE)
                if is_too_junior(pattern.value):
                    suggestions.append(
                        WeightAdjustmentSuggestion(
                            targets.seniority_category,
                            magnitude,
                            "Too junior - prioritizing more senior jobs",
                        )
                    )
                elif is_too_senior(pattern.value):
                    suggestions.append(
                        WeightAdjustmentSuggestion(
                            targets.seniority_category,
                            -magnitude,
                            "Too senior - considering mid-level jobs",
                        )
                    )
            case "tech_stack":
                category = (
                    pattern.profile_category
                    or tech_categories.get(pattern.value)
                    or targets.primary_category
                )
                suggestions.append(
                    WeightAdjustmentSuggestion(
                        category,
                        -_magnitude(pattern.confidence, SENIORITY_SCALE),
                        f"Wrong tech stack - avoiding {pattern.value}",
                    )
                )
            case "location":
                suggestions.append(
                    WeightAdjustmentSuggestion(
                        targets.remote_category,
                        _magnitude(pattern.confidence, LOCATION_SCALE),
                        "Location issue - prioritizing remote jobs",
                    )
                )
            case "compensation":
                suggestions.append(
                    WeightAdjustmentSuggestion(
                        targets.seniority_category,
                        -_magnitude(pattern.confidence, COMPENSATION_SCALE),
                        "Compensation issue - considering mid-level roles",
                    )
                )
            case _:
                pass
    return suggestions


def merge_classifier_analysis(
    classified: RejectionAnalysis,
    *,
    keyword_patterns: Sequence[RejectionPattern],
    keyword_adjustments: Sequence[WeightAdjustmentSuggestion],
    clamp: float,
) -> RejectionAnalysis:
    """Merge a classifier result with the deterministic keyword result.

    Keyword patterns are added when their ``(type, value)`` is missing and keyword
    adjustments when their category is missing. Classifier adjustments are clamped.
    """
    patterns = list(classified.patterns)
    seen = {pattern.key for pattern in patterns}
    for pattern in keyword_patterns:
        if pattern.key not in seen:
            seen.add(pattern.key)
            patterns.append(pattern)

    adjustments = [
        replace(item, adjustment=max(-clamp, min(clamp, item.adjustment)))
        for item in classified.suggested_adjustments
    ]
    categories = {item.category for item in adjustments}
    for item in keyword_adjustments:
        if item.category not in categories:
            adjustments.append(item)

    return RejectionAnalysis(
        patterns=tuple(patterns),
        suggested_adjustments=tuple(adjustments),
        filters=classified.filters,
    )


def extract_company(reason_text: str, job: JobPosting) -> str | None:
    """Return the company a rejection points at, if one can be identified."""
    company = job.company.strip()
    if company and company.lower() in reason_text.lower():
        return company

    for match in _COMPANY_CAPTURE.finditer(reason_text):
        candidate = match.group(1).strip().rstrip(".,")
        if len(candidate) < _MIN_COMPANY_LENGTH:
            continue
        if candidate.lower() in _COMPANY_STOP_WORDS:
            continue
        return candidate
    return None


def extract_tech_keywords(reason_text: str, tech_keywords: Sequence[TechKeyword]) -> list[str]:
    """Return the technology terms mentioned in the rejection text."""
    return [keyword.term for keyword in tech_keywords if contains_term(reason_text, keyword.term)]


def extract_seniority_target(reason_text: str) -> Literal["senior", "mid", "entry"] | None:
    """Infer the seniority level the rejection implies the candidate should target."""
    lowered = reason_text.lower()
    if "too junior" in lowered or "not senior enough" in lowered:
        return "senior"
    if "too senior" in lowered or "overqualified" in lowered:
        return "mid"
    if "entry level" in lowered or "junior" in lowered:
        return "entry"
    return None
