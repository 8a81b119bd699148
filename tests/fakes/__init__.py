"""Exports for test fakes."""

from .cache import InMemoryWeightCache
from .classifier import FakeClassifier
from .clock import FakeClock
from .filesystem import InMemoryFileSystem
from .http import FakeHttpSession
from .progress import FakeProgressReporter
from .repository import InMemoryLearningRepository
from .resilience import FakeCircuitBreaker, FakeRetryPolicy

__all__ = [
    "FakeCircuitBreaker",
    "FakeClassifier",
    "FakeClock",
    "FakeHttpSession",
    "FakeProgressReporter",
    "FakeRetryPolicy",
    "InMemoryFileSystem",
    "InMemoryLearningRepository",
    "InMemoryWeightCache",
]
