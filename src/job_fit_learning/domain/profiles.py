"""Domain model for skill categories and search profiles.

Usage example:
    from job_fit_learning.domain.profiles import ProfileCatalog

    weights = catalog.get_profile_weights("security") or catalog.get_default_weights()
    assert round(sum(weights.values()), 2) == 100.0
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from ..exceptions import ProfileSelectionError


@dataclass(frozen=True)
class Category:
    """A scored skill category.

    A category with no required keywords is bonus-only: it can lift a score when
    matched but never drags the score down when absent.
    """

    key: str
    name: str
    base_weight: float
    required_keywords: tuple[str, ...]
    preferred_keywords: tuple[str, ...]
    description: str = ""

    @property
    def is_bonus_only(self) -> bool:
        return not self.required_keywords


@dataclass(frozen=True)
class Profile:
    """A named search profile with its own weight distribution."""

    name: str
    technical_key: str
    description: str
    weights: MappingProxyType[str, float]


@dataclass(frozen=True)
class ProfileCatalog:
    """Categories and search profiles bundled in a single schema version."""

    schema_version: int
    revision: int
    default_profile: str
    primary_category: str
    seniority_category: str
    remote_category: str
    categories: tuple[Category, ...]
    profiles: tuple[Profile, ...]

    def category_keys(self) -> tuple[str, ...]:
        return tuple(category.key for category in self.categories)

    def bonus_only_categories(self) -> frozenset[str]:
        return frozenset(category.key for category in self.categories if category.is_bonus_only)

    def get_default_weights(self) -> dict[str, float]:
        """Return each category's base weight."""
        return {category.key: category.base_weight for category in self.categories}

    def get_profile(self, name: str) -> Profile:
        """Resolve a profile by name.

        Raises:
            ProfileSelectionError: If no profile carries ``name``.
        """
        target = name.strip()
        for profile in self.profiles:
            if profile.name == target:
                return profile
        available = tuple(sorted(profile.name for profile in self.profiles))
        raise ProfileSelectionError(target, available)

    def technical_category(self, name: str | None) -> str:
        """Return the category unmapped tech keywords fall back to for ``name``."""
        for profile in self.profiles:
            if profile.name == name:
                return profile.technical_key
        return self.primary_category

    def get_profile_weights(self, name: str) -> dict[str, float] | None:
        """Return the weight distribution registered for ``name``, if any."""
        for profile in self.profiles:
            if profile.name == name:
                return dict(profile.weights)
        return None
