"""Weight arithmetic for the rejection learning loop.

Weights are percentages over categories. Adjustments are stored as an append-only
ledger and folded back into the base weights on read.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

TARGET_TOTAL = 100.0
SUM_TOLERANCE = 0.01
HIGH_WEIGHT_LIMIT = 50.0


@dataclass(frozen=True)
class WeightAdjustment:
    """One applied weight change for a category, optionally scoped to a profile."""

    category: str
    search_profile: str | None
    old_weight: float
    new_weight: float
    reason: str
    rejection_id: str | None
    created_at: datetime

    @property
    def delta(self) -> float:
        return self.new_weight - self.old_weight


@dataclass(frozen=True)
class WeightValidation:
    """Advisory result of checking a weight map."""

    is_valid: bool
    issues: tuple[str, ...]


def clamp_delta(raw_delta: float, bound: float) -> float:
    """Clamp a raw delta into ``[-bound, bound]``."""
    return max(-bound, min(bound, raw_delta))


def cumulative_adjustments(records: Iterable[WeightAdjustment]) -> dict[str, float]:
    """Sum the deltas of adjustment records per category."""
    totals: dict[str, float] = {}
    for record in records:
        totals[record.category] = totals.get(record.category, 0.0) + record.delta
    return totals


def normalize_weights(weights: Mapping[str, float]) -> dict[str, float]:
    """Scale weights so they sum to 100.

    Maps already within tolerance are returned unchanged. An all-zero map cannot be
    rescaled and is returned as-is.
    """
    total = sum(weights.values())
    if abs(total - TARGET_TOTAL) <= SUM_TOLERANCE or total == 0:
        return dict(weights)
    factor = TARGET_TOTAL / total
    return {category: weight * factor for category, weight in weights.items()}


def validate_weights(weights: Mapping[str, float]) -> WeightValidation:
    """Flag sum drift, negative weights and over-concentrated weights."""
    issues: list[str] = []
    total = sum(weights.values())
    if abs(total - TARGET_TOTAL) > SUM_TOLERANCE:
        issues.append(f"Total weight is {total:.2f}%, expected 100%")
    for category, weight in weights.items():
        if weight < 0:
            issues.append(f"Category {category} has negative weight: {weight:.2f}%")
        if weight > HIGH_WEIGHT_LIMIT:
            issues.append(f"Category {category} has very high weight: {weight:.2f}%")
    return WeightValidation(is_valid=not issues, issues=tuple(issues))


def apply_cumulative(
    base_weights: Mapping[str, float], adjustments: Mapping[str, float]
) -> dict[str, float]:
    """Add cumulative deltas to base weights, flooring each result at zero.

    Deltas for categories absent from ``base_weights`` are ignored.
    """
    return {
        category: max(0.0, weight + adjustments.get(category, 0.0))
        for category, weight in base_weights.items()
    }
