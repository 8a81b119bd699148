"""Job filters built from declarative rule data.

A filter is a tagged ``JobFilter`` value: a stable name, the reason reported when it
blocks, and a predicate over a ``JobPosting``. Chains are evaluated in order and stop
at the first filter that blocks.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from .jobs import JobPosting
from .rejections import contains_term

MatchMode = Literal["word", "substring", "sentence"]
MATCH_MODES: tuple[MatchMode, ...] = ("word", "substring", "sentence")

PROHIBITED_KEYWORDS = "ProhibitedKeywords"
ROLE_TYPE = "RoleType"
CONTRACT_ONLY = "ContractOnly"
COMPANY_BLOCKLIST = "CompanyBlocklist"
KEYWORD_AVOIDANCE = "KeywordAvoidance"
SENIORITY_MINIMUM = "SeniorityMinimum"
TECH_STACK_AVOIDANCE = "TechStackAvoidance"

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


@dataclass(frozen=True)
class JobFilter:
    """A named blocking predicate."""

    name: str
    reason: str
    matches: Callable[[JobPosting], bool]


@dataclass(frozen=True)
class FilterResult:
    """Outcome of running a filter chain against one posting."""

    blocked: bool
    reason: str | None = None
    filter_name: str | None = None


@dataclass(frozen=True)
class ProhibitedKeyword:
    """A manually configured keyword (or comma-separated keyword group) to block on."""

    keyword: str
    match_mode: MatchMode
    reason: str | None = None
    created_at: datetime | None = None

    @property
    def is_group(self) -> bool:
        return "," in self.keyword

    @property
    def members(self) -> tuple[str, ...]:
        return tuple(part.strip() for part in self.keyword.split(",") if part.strip())


@dataclass(frozen=True)
class RoleFamily:
    """A non-target role family recognised from job titles."""

    label: str
    patterns: tuple[re.Pattern[str], ...]

    def matches_title(self, title: str) -> bool:
        return any(pattern.search(title) for pattern in self.patterns)


def default_match_mode(keyword: str) -> MatchMode:
    return "sentence" if "," in keyword else "word"


def split_sentences(text: str) -> list[str]:
    return [sentence for sentence in _SENTENCE_BOUNDARY.split(text) if sentence.strip()]


def _keyword_matches(entry: ProhibitedKeyword, job: JobPosting) -> bool:
    text = job.searchable_text
    members = entry.members
    if entry.is_group and len(members) > 1:
        return any(
            all(contains_term(sentence, member) for member in members)
            for sentence in split_sentences(text)
        )
    if not members:
        return False
    if entry.match_mode == "substring":
        return members[0].lower() in text.lower()
    return contains_term(text, members[0])


def prohibited_keyword_filter(entry: ProhibitedKeyword) -> JobFilter:
    label = "keyword group" if entry.is_group else "keyword"
    reason = f'Job contains prohibited {label} "{entry.keyword}"'
    if entry.reason:
        reason = f"{reason}: {entry.reason}"
    return JobFilter(
        name=PROHIBITED_KEYWORDS,
        reason=reason,
        matches=lambda job: _keyword_matches(entry, job),
    )


def role_type_filters(families: Sequence[RoleFamily]) -> list[JobFilter]:
    return [
        JobFilter(
            name=ROLE_TYPE,
            reason=f"Non-target role type: {family.label}",
            matches=lambda job, family=family: family.matches_title(job.title),
        )
        for family in families
    ]


def contract_only_filter(contract_keywords: Sequence[str]) -> JobFilter:
    keywords = tuple(contract_keywords)
    return JobFilter(
        name=CONTRACT_ONLY,
        reason="Job does not indicate a contract position",
        matches=lambda job: not any(contains_term(job.searchable_text, kw) for kw in keywords),
    )


def company_blocklist_filter(companies: Iterable[str]) -> JobFilter:
    blocked = frozenset(company.strip().lower() for company in companies)
    return JobFilter(
        name=COMPANY_BLOCKLIST,
        reason="Company is on blocklist due to previous rejections",
        matches=lambda job: job.company.strip().lower() in blocked,
    )


def keyword_avoidance_filter(keywords: Iterable[str]) -> JobFilter:
    lowered = tuple(keyword.lower() for keyword in keywords)
    return JobFilter(
        name=KEYWORD_AVOIDANCE,
        reason="Job contains keywords associated with previous rejections",
        matches=lambda job: any(kw in job.searchable_text.lower() for kw in lowered),
    )


def seniority_minimum_filter(junior_title_pattern: re.Pattern[str]) -> JobFilter:
    return JobFilter(
        name=SENIORITY_MINIMUM,
        reason="Job does not meet minimum seniority requirement (senior)",
        matches=lambda job: junior_title_pattern.search(job.title) is not None,
    )


def tech_stack_avoidance_filter(terms: Iterable[str]) -> JobFilter:
    lowered = tuple(term.lower() for term in terms)
    return JobFilter(
        name=TECH_STACK_AVOIDANCE,
        reason="Job requires technology stack associated with previous rejections",
        matches=lambda job: any(term in job.searchable_text.lower() for term in lowered),
    )


def apply_filters(job: JobPosting, filters: Iterable[JobFilter]) -> FilterResult:
    """Run filters in order and report the first one that blocks."""
    for job_filter in filters:
        if job_filter.matches(job):
            return FilterResult(blocked=True, reason=job_filter.reason, filter_name=job_filter.name)
    return FilterResult(blocked=False)
