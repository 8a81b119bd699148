"""Cache implementations for infrastructure.

Usage example:
    from job_fit_learning.infrastructure.cache import TtlWeightCache
    from job_fit_learning.infrastructure.clock import SystemClock

    cache = TtlWeightCache(ttl_seconds=60.0, clock=SystemClock())
    cache.set("security", {"security": 35.0})
    cached = cache.get("security")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import override

from ..protocols import Clock, WeightCache


def _empty_entries() -> dict[str, tuple[float, dict[str, float]]]:
    return {}


@dataclass
class TtlWeightCache(WeightCache):
    """In-process weight cache with a per-entry time-to-live.

    Entries older than ``ttl_seconds`` (measured on the injected clock's monotonic
    reading) are treated as missing and evicted on read.
    """

    ttl_seconds: float
    clock: Clock
    _entries: dict[str, tuple[float, dict[str, float]]] = field(default_factory=_empty_entries)

    @override
    def get(self, key: str) -> dict[str, float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, weights = entry
        if self.clock.monotonic() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        return dict(weights)

    @override
    def set(self, key: str, weights: Mapping[str, float]) -> None:
        self._entries[key] = (self.clock.monotonic(), dict(weights))

    @override
    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
