"""Tests for rule-based rejection analysis."""

import pytest

from job_fit_learning.domain.jobs import JobPosting
from job_fit_learning.domain.rejections import (
    AdjustmentTargets,
    FilterSuggestion,
    PhraseRule,
    RejectionAnalysis,
    RejectionPattern,
    TechKeyword,
    WeightAdjustmentSuggestion,
    analyze_keywords,
    contains_term,
    extract_company,
    extract_seniority_target,
    extract_tech_keywords,
    merge_classifier_analysis,
    to_adjustments,
)

RULES = (
    PhraseRule("seniority", "too junior", 0.8),
    PhraseRule("seniority", "overqualified", 0.8),
    PhraseRule("seniority", "mid level", 0.6),
    PhraseRule("location", "on-site only", 0.8),
    PhraseRule("compensation", "salary", 0.7),
    PhraseRule("compensation", "rate", 0.7, word_boundary=True),
    PhraseRule("company", "culture fit", 0.6),
)
TECH = (
    TechKeyword("kafka", "event-driven"),
    TechKeyword("java", None),
    TechKeyword("node.js", None),
)
TARGETS = AdjustmentTargets(
    primary_category="cloud-platform",
    seniority_category="seniority",
    remote_category="seniority",
)


def _analyze(text: str) -> list[RejectionPattern]:
    return analyze_keywords(text, rules=RULES, tech_keywords=TECH)


def _adjust(text: str) -> list[WeightAdjustmentSuggestion]:
    return to_adjustments(_analyze(text), targets=TARGETS, tech_categories={})


def test_too_junior_yields_positive_seniority_adjustment() -> None:
    patterns = _analyze("Too junior for this role")

    assert patterns == [RejectionPattern("seniority", "too junior", 0.8)]
    assert _adjust("Too junior for this role") == [
        WeightAdjustmentSuggestion("seniority", 3, "Too junior - prioritizing more senior jobs")
    ]


def test_overqualified_yields_negative_seniority_adjustment() -> None:
    suggestions = _adjust("Overqualified for this position")

    assert [item.adjustment for item in suggestions] == [-3]
    assert suggestions[0].category == "seniority"


def test_mid_level_seniority_produces_no_adjustment() -> None:
    assert [p.value for p in _analyze("Looking for mid level")] == ["mid level"]
    assert _adjust("Looking for mid level") == []


def test_tech_keyword_maps_to_its_category() -> None:
    patterns = _analyze("We went with someone with more Kafka depth")

    assert patterns == [
        RejectionPattern("tech_stack", "kafka", 0.8, profile_category="event-driven")
    ]
    assert _adjust("We went with someone with more Kafka depth") == [
        WeightAdjustmentSuggestion("event-driven", -3, "Wrong tech stack - avoiding kafka")
    ]


def test_unmapped_tech_keyword_targets_primary_category() -> None:
    suggestions = _adjust("The team is all Java")

    assert suggestions[0].category == "cloud-platform"
    assert suggestions[0].adjustment == -3


def test_tech_terms_match_whole_words_only() -> None:
    assert [p.value for p in _analyze("Heavy JavaScript shop")] == []
    assert [p.value for p in _analyze("Backend is Node.js.")] == ["node.js"]


def test_location_and_compensation_adjustments() -> None:
    assert _adjust("This role is on-site only") == [
        WeightAdjustmentSuggestion("seniority", 2, "Location issue - prioritizing remote jobs")
    ]
    assert _adjust("Salary expectations too high") == [
        WeightAdjustmentSuggestion(
            "seniority", -2, "Compensation issue - considering mid-level roles"
        )
    ]


def test_word_boundary_rule_ignores_embedded_words() -> None:
    assert _analyze("Not an accurate description") == []
    assert [p.pattern_type for p in _analyze("Your rate is above budget")] == ["compensation"]


def test_company_pattern_feeds_filters_only() -> None:
    patterns = _analyze("Not a culture fit")

    assert [p.pattern_type for p in patterns] == ["company"]
    assert _adjust("Not a culture fit") == []


@pytest.mark.parametrize("text", ["", "   ", "Thanks for applying"])
def test_empty_or_unrecognised_text_yields_nothing(text: str) -> None:
    assert _analyze(text) == []


def test_duplicate_phrases_appear_once() -> None:
    assert len(_analyze("Too junior. Honestly, too junior.")) == 1


def test_contains_term_handles_punctuated_terms() -> None:
    assert contains_term("we use c# daily", "c#")
    assert not contains_term("scala is great", "scal")


def test_merge_prefers_classifier_and_clamps_adjustments() -> None:
    classified = RejectionAnalysis(
        patterns=(RejectionPattern("seniority", "too junior", 0.95),),
        suggested_adjustments=(WeightAdjustmentSuggestion("seniority", 9, "model"),),
        filters=(FilterSuggestion("block_company", "Initech"),),
    )
    keyword_patterns = _analyze("Too junior, and the stack is Kafka")
    keyword_adjustments = to_adjustments(keyword_patterns, targets=TARGETS, tech_categories={})

    merged = merge_classifier_analysis(
        classified,
        keyword_patterns=keyword_patterns,
        keyword_adjustments=keyword_adjustments,
        clamp=5.0,
    )

    assert [p.key for p in merged.patterns] == [
        ("seniority", "too junior"),
        ("tech_stack", "kafka"),
    ]
    assert merged.patterns[0].confidence == 0.95
    assert [(a.category, a.adjustment) for a in merged.suggested_adjustments] == [
        ("seniority", 5),
        ("event-driven", -3),
    ]
    assert merged.filters == (FilterSuggestion("block_company", "Initech"),)


def test_extract_company_prefers_job_company_when_mentioned() -> None:
    job = JobPosting(title="Engineer", company="Initech")

    assert extract_company("Initech went with another candidate", job) == "Initech"


def test_extract_company_captures_named_company() -> None:
    job = JobPosting(title="Engineer", company="Acme")

    assert extract_company("Position filled at Globex Corporation.", job) == "Globex Corporation"
    assert extract_company("Rejected at IBM", job) is None
    assert extract_company("Nothing to see here", job) is None


def test_extract_tech_keywords() -> None:
    assert extract_tech_keywords("They wanted Kafka and Java", TECH) == ["kafka", "java"]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Too junior for us", "senior"),
        ("Candidate is overqualified", "mid"),
        ("This is an entry level role", "entry"),
        ("Salary mismatch", None),
    ],
)
def test_extract_seniority_target(text: str, expected: str | None) -> None:
    assert extract_seniority_target(text) == expected
