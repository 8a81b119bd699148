"""Concrete infrastructure implementations and shared helpers."""

from .cache import TtlWeightCache
from .classifier import OllamaRejectionClassifier
from .clock import SystemClock
from .filesystem import LocalFileSystem
from .http import RequestsSession
from .repository import JsonFileLearningRepository
from .resilience import CircuitBreaker, RetryPolicy

__all__ = [
    "CircuitBreaker",
    "JsonFileLearningRepository",
    "LocalFileSystem",
    "OllamaRejectionClassifier",
    "RequestsSession",
    "RetryPolicy",
    "SystemClock",
    "TtlWeightCache",
]
