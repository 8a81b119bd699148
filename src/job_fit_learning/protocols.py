"""Protocol definitions for dependency injection.

These protocols define the abstract interfaces that the learning loop depends on,
enabling isolated unit testing with in-memory implementations.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import pandas as pd

    from .domain.filters import ProhibitedKeyword
    from .domain.jobs import JobPosting
    from .domain.rejections import PatternType, RejectionAnalysis, RejectionPattern
    from .domain.weights import WeightAdjustment


@runtime_checkable
class HttpSession(Protocol):
    """Abstract HTTP session for JSON requests."""

    def get_json(self, url: str, *, timeout_seconds: float) -> dict[str, object]:
        """Fetch a JSON object from a URL."""
        ...

    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        timeout_seconds: float,
    ) -> dict[str, object]:
        """POST a JSON body and return the decoded JSON object response."""
        ...


@runtime_checkable
class FileSystem(Protocol):
    """Abstract filesystem for reading/writing learning data."""

    def read_csv(self, path: Path) -> pd.DataFrame:
        """Read CSV file into DataFrame."""
        ...

    def write_csv(self, df: pd.DataFrame, path: Path) -> None:
        """Write DataFrame to CSV file."""
        ...

    def read_json(self, path: Path) -> dict[str, object]:
        """Read JSON file."""
        ...

    def write_json(self, data: Mapping[str, object], path: Path) -> None:
        """Write JSON file."""
        ...

    def read_text(self, path: Path) -> str:
        """Read text file."""
        ...

    def write_text(self, content: str, path: Path) -> None:
        """Write text file."""
        ...

    def exists(self, path: Path) -> bool:
        """Check if path exists."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Source of wall-clock timestamps and monotonic time."""

    def now(self) -> datetime:
        """Return the current UTC timestamp."""
        ...

    def monotonic(self) -> float:
        """Return a monotonic reading in seconds."""
        ...


@runtime_checkable
class WeightCache(Protocol):
    """Per-profile cache of effective weights."""

    def get(self, key: str) -> dict[str, float] | None:
        """Return a fresh cached weight map, or None when missing or expired."""
        ...

    def set(self, key: str, weights: Mapping[str, float]) -> None:
        """Store a weight map under key."""
        ...

    def clear(self) -> None:
        """Drop every cached entry."""
        ...


@runtime_checkable
class LearningRepository(Protocol):
    """Storage for weight adjustments, rejection patterns and prohibited keywords."""

    def get_weight_adjustments(self, profile: str | None = None) -> list[WeightAdjustment]:
        """Return adjustment records, oldest first, optionally scoped to a profile."""
        ...

    def append_weight_adjustment(self, record: WeightAdjustment) -> None:
        """Append one adjustment record."""
        ...

    def delete_weight_adjustments(self, profile: str | None = None) -> int:
        """Delete adjustment records (all, or one profile's) and return how many."""
        ...

    def get_rejection_patterns(
        self, pattern_type: PatternType | None = None
    ) -> list[RejectionPattern]:
        """Return patterns ordered by count then recency, both descending."""
        ...

    def upsert_rejection_pattern(
        self,
        pattern_type: PatternType,
        value: str,
        confidence: float,
        profile_category: str | None = None,
    ) -> RejectionPattern:
        """Insert a pattern or increment the count of an existing ``(type, value)``."""
        ...

    def set_rejection_pattern(self, pattern: RejectionPattern) -> None:
        """Insert or replace a pattern exactly as given."""
        ...

    def delete_all_rejection_patterns(self) -> int:
        """Delete every rejection pattern and return how many."""
        ...

    def get_prohibited_keywords(self) -> list[ProhibitedKeyword]:
        """Return configured prohibited keywords."""
        ...

    def add_prohibited_keyword(self, entry: ProhibitedKeyword) -> None:
        """Store a prohibited keyword."""
        ...

    def remove_prohibited_keyword(self, keyword: str) -> bool:
        """Remove a prohibited keyword, returning whether it existed."""
        ...


@runtime_checkable
class RejectionClassifier(Protocol):
    """External classifier for nuanced rejection analysis."""

    def classify(self, reason_text: str, job: JobPosting) -> RejectionAnalysis:
        """Return patterns, adjustments and filters for a rejection."""
        ...


@runtime_checkable
class CircuitBreaker(Protocol):
    """Abstract circuit breaker for outbound requests."""

    def check(self) -> None:
        """Raise if the circuit is open."""
        ...

    def record_success(self) -> None:
        """Record a successful request."""
        ...

    def record_failure(self) -> None:
        """Record a failed request."""
        ...


@runtime_checkable
class RetryPolicy(Protocol):
    """Abstract retry policy for transient failures."""

    max_retries: int
    retry_exceptions: tuple[type[Exception], ...]

    def compute_backoff(self, attempt: int) -> float:
        """Return a delay for the next retry attempt."""
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """CLI-owned progress reporting interface."""

    def start(self, label: str, total: int | None) -> None:
        """Start a progress session."""
        ...

    def advance(self, count: int) -> None:
        """Advance progress by count."""
        ...

    def finish(self) -> None:
        """Finish a progress session."""
        ...

