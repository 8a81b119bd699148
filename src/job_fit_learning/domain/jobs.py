"""Job posting model consumed by scoring and filtering."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..exceptions import JobPayloadError


def _empty_scores() -> MappingProxyType[str, float]:
    return MappingProxyType({})


@dataclass(frozen=True)
class JobPosting:
    """A candidate posting with the raw category scores produced by an external scorer."""

    title: str
    company: str
    description: str = ""
    id: str | None = None
    category_scores: MappingProxyType[str, float] = field(default_factory=_empty_scores)
    profile: str | None = None

    @property
    def searchable_text(self) -> str:
        return f"{self.title} {self.description}"


def coerce_category_scores(raw: Mapping[str, object]) -> MappingProxyType[str, float]:
    """Validate scorer output as ``category -> number in [0, 100]``.

    Raises:
        JobPayloadError: If a score is non-numeric or out of range.
    """
    scores: dict[str, float] = {}
    for category, value in raw.items():
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise JobPayloadError(f"score for '{category}' must be a number")
        number = float(value)
        if math.isnan(number) or number < 0 or number > 100:
            raise JobPayloadError(f"score for '{category}' must be between 0 and 100")
        scores[category] = number
    return MappingProxyType(scores)
