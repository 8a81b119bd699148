"""Fit-score calculation over weighted category scores.

Usage example:
    from job_fit_learning.domain.fit_score import compute_fit_score

    score = compute_fit_score(
        {"cloud": 80, "frontend": 0},
        {"cloud": 90.0, "frontend": 10.0},
        frozenset({"frontend"}),
    )
    assert score == 80.0
"""

from __future__ import annotations

from collections.abc import Mapping

MIN_FIT_SCORE = 0.0
MAX_FIT_SCORE = 100.0
BLOCKER_MIN_WEIGHT = 15.0
BLOCKER_MAX_SCORE = 40.0
MAX_BLOCKERS = 5


def redistribute_bonus_weights(
    category_scores: Mapping[str, float],
    effective_weights: Mapping[str, float],
    bonus_only_categories: frozenset[str],
) -> dict[str, float]:
    """Move the weight of unmatched bonus-only categories onto the other categories.

    A bonus-only category with positive weight and a zero (or missing) score gives
    up its weight. The freed weight is shared out proportionally, so an absent bonus
    skill never lowers the fit score.
    """
    zeroed = {
        category
        for category, weight in effective_weights.items()
        if category in bonus_only_categories
        and weight > 0
        and category_scores.get(category, 0) == 0
    }
    redistributed = sum(effective_weights[category] for category in zeroed)
    required_total = 100.0 - redistributed

    final: dict[str, float] = {}
    for category, weight in effective_weights.items():
        if category in zeroed:
            final[category] = 0.0
        elif required_total > 0:
            final[category] = weight + (weight / required_total) * redistributed
        else:
            final[category] = weight
    return final


def compute_fit_score(
    category_scores: Mapping[str, float],
    effective_weights: Mapping[str, float],
    bonus_only_categories: frozenset[str],
) -> float:
    """Return the weighted fit score in ``[0, 100]``."""
    final_weights = redistribute_bonus_weights(
        category_scores, effective_weights, bonus_only_categories
    )
    fit = sum(
        (weight / 100.0) * float(category_scores.get(category, 0))
        for category, weight in final_weights.items()
    )
    return max(MIN_FIT_SCORE, min(MAX_FIT_SCORE, fit))


def derive_blockers(
    category_scores: Mapping[str, float],
    effective_weights: Mapping[str, float],
) -> list[str]:
    """List heavily weighted categories where the posting scores poorly."""
    blockers: list[str] = []
    for category, weight in effective_weights.items():
        if weight >= BLOCKER_MIN_WEIGHT and category_scores.get(category, 0) < BLOCKER_MAX_SCORE:
            blockers.append(f"Low match: {category}")
    return blockers[:MAX_BLOCKERS]
