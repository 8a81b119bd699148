"""Resilience utilities for outbound classifier calls.

Usage example:
    from job_fit_learning.infrastructure.resilience import CircuitBreaker, RetryPolicy

    circuit_breaker = CircuitBreaker(threshold=3, recovery_timeout_seconds=30.0)
    retry_policy = RetryPolicy(max_retries=2, backoff_factor=1.0)
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import override

import requests

from ..exceptions import CircuitBreakerOpen, ClassifierResponseError
from ..protocols import CircuitBreaker as CircuitBreakerProtocol
from ..protocols import RetryPolicy as RetryPolicyProtocol


@dataclass
class CircuitBreaker(CircuitBreakerProtocol):
    """Circuit breaker that stops calling a failing classifier.

    Opens after ``threshold`` consecutive failures and allows a single probe call
    once ``recovery_timeout_seconds`` have elapsed.
    """

    threshold: int = 3
    recovery_timeout_seconds: float = 30.0
    half_open_max_calls: int = 1
    monotonic: Callable[[], float] = time.monotonic
    consecutive_failures: int = field(default=0, init=False)
    state: str = field(default="closed", init=False)  # closed | open | half_open
    open_until: float | None = field(default=None, init=False)
    half_open_calls: int = field(default=0, init=False)

    @property
    def is_open(self) -> bool:
        return self.state == "open"

    @override
    def record_success(self) -> None:
        """Record a successful request - resets failure count."""
        self.reset()

    @override
    def record_failure(self) -> None:
        """Record a failed request - may open circuit."""
        self.consecutive_failures += 1
        if self.state == "half_open" or self.consecutive_failures >= self.threshold:
            self._open(self.monotonic())

    @override
    def check(self) -> None:
        """Check if circuit is open - raises if so."""
        if self.state == "open":
            if self.open_until is not None and self.monotonic() >= self.open_until:
                self.state = "half_open"
                self.half_open_calls = 0
            else:
                raise CircuitBreakerOpen(self.consecutive_failures, self.threshold)

        if self.state == "half_open":
            if self.half_open_calls >= self.half_open_max_calls:
                raise CircuitBreakerOpen(self.consecutive_failures, self.threshold)
            self.half_open_calls += 1

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        self.consecutive_failures = 0
        self.state = "closed"
        self.open_until = None
        self.half_open_calls = 0

    def _open(self, now: float) -> None:
        self.state = "open"
        self.open_until = now + self.recovery_timeout_seconds
        self.half_open_calls = 0


def _default_retry_exceptions() -> tuple[type[Exception], ...]:
    return (
        requests.Timeout,
        requests.ConnectionError,
        requests.HTTPError,
        ClassifierResponseError,
    )


@dataclass
class RetryPolicy(RetryPolicyProtocol):
    """Exponential backoff with jitter for transient classifier failures."""

    max_retries: int = 2
    backoff_factor: float = 1.0
    max_backoff_seconds: float = 30.0
    jitter_seconds: float = 0.1
    retry_exceptions: tuple[type[Exception], ...] = field(
        default_factory=_default_retry_exceptions
    )

    @override
    def compute_backoff(self, attempt: int) -> float:
        """Return ``backoff_factor * 2**attempt`` capped, plus random jitter."""
        base = min(self.max_backoff_seconds, self.backoff_factor * (2**attempt))
        if self.jitter_seconds > 0:
            base += random.uniform(0.0, self.jitter_seconds)
        return float(base)
