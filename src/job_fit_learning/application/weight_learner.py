"""Weight learning: fold rejection-driven adjustments into effective category weights.

Usage example:
    learner = WeightLearner(
        repository=repository, catalog=catalog, cache=cache, clock=clock, config=config
    )
    learner.apply_adjustment("core", "seniority", 3, "Too junior - prioritizing more senior jobs")
    weights = learner.get_active_weights("core")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from ..config import FitLearningConfig
from ..domain.profiles import ProfileCatalog
from ..domain.weights import (
    WeightAdjustment,
    WeightValidation,
    apply_cumulative,
    clamp_delta,
    cumulative_adjustments,
    normalize_weights,
    validate_weights,
)
from ..observability import get_logger
from ..protocols import Clock, LearningRepository, WeightCache

UNSCOPED_CACHE_KEY = "__unscoped__"
DEFAULT_HISTORY_LIMIT = 20


@dataclass(frozen=True)
class AdjustmentSummary:
    """Base and adjusted weights for one profile (or the unscoped view)."""

    profile: str | None
    base_weights: dict[str, float]
    adjusted_weights: dict[str, float]
    adjustments: dict[str, float]
    total_adjustment: float


@dataclass(frozen=True)
class LearningStats:
    """Aggregate counters over the adjustment ledger."""

    total_adjustments: int
    categories_adjusted: int
    average_adjustment: float
    last_adjustment_at: datetime | None


class WeightLearner:
    """Maintains effective weights as base weights plus cumulative learned deltas."""

    def __init__(
        self,
        *,
        repository: LearningRepository,
        catalog: ProfileCatalog,
        cache: WeightCache,
        clock: Clock,
        config: FitLearningConfig,
    ) -> None:
        self.repository = repository
        self.catalog = catalog
        self.cache = cache
        self.clock = clock
        self.config = config

    def base_weights(self, profile: str | None = None) -> dict[str, float]:
        """Return the profile's registered distribution, or the default base weights."""
        if profile:
            registered = self.catalog.get_profile_weights(profile)
            if registered is not None:
                return registered
        return self.catalog.get_default_weights()

    def get_active_weights(self, profile: str | None = None) -> dict[str, float]:
        """Return normalized effective weights, using the cache when fresh."""
        key = profile or UNSCOPED_CACHE_KEY
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        adjustments = cumulative_adjustments(self.repository.get_weight_adjustments(profile))
        weights = normalize_weights(apply_cumulative(self.base_weights(profile), adjustments))
        self.cache.set(key, weights)
        return dict(weights)

    def apply_adjustment(
        self,
        profile: str | None,
        category: str,
        raw_delta: float,
        reason: str,
        rejection_id: str | None = None,
    ) -> WeightAdjustment | None:
        """Clamp, floor and record a weight change.

        Returns the stored record, or None when the category is unknown or the
        effective change is too small to keep.
        """
        logger = get_logger("job_fit_learning.weight_learner")
        current = self.get_active_weights(profile)
        if category not in current:
            logger.warning(
                "Cannot adjust unknown category %s; available categories: %s",
                category,
                ", ".join(current),
            )
            return None

        old_weight = current[category]
        clamped = clamp_delta(raw_delta, self.config.adjustment_clamp)
        new_weight = max(self.config.min_weight, old_weight + clamped)
        actual = new_weight - old_weight
        if abs(actual) < self.config.min_applied_delta:
            logger.info(
                "Skipping small adjustment: %s %+.2f%% - %s", category, actual, reason
            )
            return None

        record = WeightAdjustment(
            category=category,
            search_profile=profile,
            old_weight=old_weight,
            new_weight=new_weight,
            reason=reason,
            rejection_id=rejection_id,
            created_at=self.clock.now(),
        )
        self.repository.append_weight_adjustment(record)
        self.cache.clear()
        logger.info(
            "Weight adjustment [%s]: %s %.2f%% -> %.2f%% (%+.2f%%) - %s",
            profile or "all",
            category,
            old_weight,
            new_weight,
            actual,
            reason,
        )
        return record

    def reset_adjustments(self, profile: str | None = None) -> int:
        """Delete learned adjustments (all, or one profile's) and clear the cache."""
        removed = self.repository.delete_weight_adjustments(profile)
        self.cache.clear()
        get_logger("job_fit_learning.weight_learner").info(
            "Reset %s weight adjustments for %s", removed, profile or "all profiles"
        )
        return removed

    def normalize(self, weights: Mapping[str, float]) -> dict[str, float]:
        return normalize_weights(weights)

    def validate(self, weights: Mapping[str, float]) -> WeightValidation:
        return validate_weights(weights)

    def adjustment_summary(self, profile: str | None = None) -> AdjustmentSummary:
        adjustments = cumulative_adjustments(self.repository.get_weight_adjustments(profile))
        return AdjustmentSummary(
            profile=profile,
            base_weights=self.base_weights(profile),
            adjusted_weights=self.get_active_weights(profile),
            adjustments=adjustments,
            total_adjustment=sum(adjustments.values()),
        )

    def adjustment_history(self, limit: int = DEFAULT_HISTORY_LIMIT) -> list[WeightAdjustment]:
        """Return the most recent adjustments, newest first."""
        records = sorted(
            self.repository.get_weight_adjustments(),
            key=lambda record: record.created_at,
            reverse=True,
        )
        return records[:limit]

    def learning_stats(self) -> LearningStats:
        records = self.repository.get_weight_adjustments()
        if not records:
            return LearningStats(
                total_adjustments=0,
                categories_adjusted=0,
                average_adjustment=0.0,
                last_adjustment_at=None,
            )
        return LearningStats(
            total_adjustments=len(records),
            categories_adjusted=len({record.category for record in records}),
            average_adjustment=sum(record.delta for record in records) / len(records),
            last_adjustment_at=max(record.created_at for record in records),
        )
