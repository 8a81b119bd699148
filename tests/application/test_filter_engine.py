"""Tests for the filter engine."""

from __future__ import annotations

import pytest

from job_fit_learning.application.filter_engine import FilterEngine
from job_fit_learning.domain.filters import (
    COMPANY_BLOCKLIST,
    CONTRACT_ONLY,
    PROHIBITED_KEYWORDS,
    ROLE_TYPE,
    SENIORITY_MINIMUM,
    TECH_STACK_AVOIDANCE,
)
from job_fit_learning.domain.jobs import JobPosting
from job_fit_learning.domain.rejections import RejectionPattern
from job_fit_learning.exceptions import (
    DuplicateProhibitedKeywordError,
    InvalidMatchModeError,
    InvalidPatternTypeError,
    InvalidProhibitedKeywordError,
)
from tests.fakes import FakeClock, InMemoryLearningRepository
from tests.support.catalog import bundled_tables


def _engine(repository: InMemoryLearningRepository | None = None) -> FilterEngine:
    return FilterEngine(
        repository=repository or InMemoryLearningRepository(),
        tables=bundled_tables(),
        clock=FakeClock(),
        contract_profile="contract",
        activation_count=2,
    )


def _job(
    title: str = "Senior Backend Engineer",
    company: str = "Globex",
    description: str = "",
    profile: str | None = None,
) -> JobPosting:
    return JobPosting(title=title, company=company, description=description, profile=profile)


def test_non_target_role_family_is_blocked() -> None:
    result = _engine().apply(_job(title="Senior Site Reliability Engineer"))

    assert result.blocked is True
    assert result.filter_name == ROLE_TYPE
    assert result.reason == "Non-target role type: DevOps/Infrastructure"


def test_clean_posting_passes() -> None:
    result = _engine().apply(_job())

    assert result.blocked is False
    assert result.filter_name is None


def test_company_pattern_activates_at_threshold() -> None:
    repository = InMemoryLearningRepository()
    engine = _engine(repository)
    job = _job(company="Acme")

    repository.upsert_rejection_pattern("company", "Acme", 0.8)
    assert engine.apply(job).blocked is False

    repository.upsert_rejection_pattern("company", "Acme", 0.8)
    result = engine.apply(job)
    assert result.blocked is True
    assert result.filter_name == COMPANY_BLOCKLIST


def test_prohibited_keyword_word_mode_ignores_longer_words() -> None:
    engine = _engine()
    entry = engine.add_prohibited_keyword("Java", reason="Not a Java developer")

    assert entry.keyword == "java"
    assert entry.match_mode == "word"
    assert engine.apply(_job(description="Full-stack JavaScript role")).blocked is False
    result = engine.apply(_job(description="Spring Boot and Java 21"))
    assert result.filter_name == PROHIBITED_KEYWORDS
    assert result.reason == 'Job contains prohibited keyword "java": Not a Java developer'


def test_prohibited_keyword_substring_mode() -> None:
    engine = _engine()
    engine.add_prohibited_keyword("java", match_mode="substring")

    assert engine.apply(_job(description="Full-stack JavaScript role")).blocked is True


def test_keyword_group_matches_within_one_sentence() -> None:
    engine = _engine()
    entry = engine.add_prohibited_keyword("clearance, government", match_mode="word")

    assert entry.match_mode == "sentence"
    assert engine.apply(_job(description="Government projects require clearance.")).blocked
    assert not engine.apply(
        _job(description="No clearance needed. Some clients are government bodies.")
    ).blocked


def test_duplicate_keyword_is_rejected() -> None:
    engine = _engine()
    engine.add_prohibited_keyword("crypto")

    with pytest.raises(DuplicateProhibitedKeywordError, match='Keyword "crypto" already exists'):
        engine.add_prohibited_keyword("  CRYPTO ")


def test_invalid_keyword_inputs_are_rejected() -> None:
    engine = _engine()

    with pytest.raises(InvalidProhibitedKeywordError):
        engine.add_prohibited_keyword("   ")
    with pytest.raises(InvalidMatchModeError):
        engine.add_prohibited_keyword("crypto", match_mode="fuzzy")


def test_remove_prohibited_keyword() -> None:
    engine = _engine()
    engine.add_prohibited_keyword("crypto")

    assert engine.remove_prohibited_keyword("Crypto") is True
    assert engine.remove_prohibited_keyword("crypto") is False


def test_contract_only_applies_to_contract_profile() -> None:
    engine = _engine()
    permanent = _job(description="Permanent role with pension")

    result = engine.apply(permanent, "contract")
    assert result.filter_name == CONTRACT_ONLY
    assert engine.apply(permanent, "core").blocked is False
    assert engine.apply(_job(description="12 month contract", profile="contract")).blocked is False


def test_junior_patterns_activate_seniority_minimum() -> None:
    repository = InMemoryLearningRepository()
    engine = _engine(repository)
    junior_job = _job(title="Junior Backend Developer")

    repository.upsert_rejection_pattern("seniority", "too junior", 0.8)
    assert engine.apply(junior_job).blocked is False

    repository.upsert_rejection_pattern("seniority", "not senior enough", 0.8)
    result = engine.apply(junior_job)
    assert result.filter_name == SENIORITY_MINIMUM
    assert engine.apply(_job()).blocked is False


def test_tech_stack_pattern_blocks_matching_postings() -> None:
    repository = InMemoryLearningRepository()
    for _ in range(2):
        repository.upsert_rejection_pattern("tech_stack", "php", 0.8)

    result = _engine(repository).apply(_job(title="PHP Developer"))

    assert result.filter_name == TECH_STACK_AVOIDANCE


def test_manual_filter_is_active_immediately() -> None:
    repository = InMemoryLearningRepository()
    engine = _engine(repository)

    pattern = engine.add_manual_filter("Company", " Initech ", reason="Bad interview")

    assert pattern.count == 2
    assert pattern.confidence == 1.0
    assert pattern.value == "Initech"
    assert engine.apply(_job(company="initech")).filter_name == COMPANY_BLOCKLIST


def test_manual_filter_keeps_higher_existing_count() -> None:
    repository = InMemoryLearningRepository()
    repository.set_rejection_pattern(RejectionPattern("keyword", "crypto", 0.6, count=5))

    pattern = _engine(repository).add_manual_filter("keyword", "crypto")

    assert pattern.count == 5
    assert pattern.confidence == 1.0


def test_manual_filter_rejects_unknown_type() -> None:
    with pytest.raises(InvalidPatternTypeError, match="Invalid pattern type: industry"):
        _engine().add_manual_filter("industry", "fintech")


def test_prohibited_keywords_run_before_role_type() -> None:
    engine = _engine()
    engine.add_prohibited_keyword("sre")

    result = engine.apply(_job(title="SRE Lead"))

    assert result.filter_name == PROHIBITED_KEYWORDS


def test_filter_stats_count_active_filters() -> None:
    repository = InMemoryLearningRepository()
    engine = _engine(repository)
    engine.add_manual_filter("company", "Initech")

    stats = engine.filter_stats()
    assert stats.by_name[ROLE_TYPE] == 5
    assert stats.by_name[COMPANY_BLOCKLIST] == 1
    assert stats.total_filters == 6
    assert engine.filter_stats("contract").by_name[CONTRACT_ONLY] == 1


def test_clear_all_filters_removes_learned_patterns() -> None:
    repository = InMemoryLearningRepository()
    engine = _engine(repository)
    engine.add_manual_filter("company", "Initech")
    engine.add_manual_filter("keyword", "crypto")

    assert engine.clear_all_filters() == 2
    assert engine.apply(_job(company="Initech")).blocked is False


def test_dry_run_uses_each_postings_profile() -> None:
    engine = _engine()
    jobs = [
        _job(description="Permanent", profile="contract"),
        _job(description="Permanent", profile="core"),
    ]

    results = engine.test_filters(jobs)

    assert [item.result.blocked for item in results] == [True, False]
    assert results[0].job is jobs[0]
