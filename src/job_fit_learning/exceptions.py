"""Custom exceptions for the job fit learning loop.

These exceptions provide clear error handling and enable testing of error paths.
"""

from __future__ import annotations

from collections.abc import Iterable


class FitLearningError(Exception):
    """Base exception for all fit learning errors."""

    pass


class ClassifierUnavailableError(FitLearningError):
    """Raised when the external rejection classifier cannot be reached."""

    def __init__(self, base_url: str, detail: str = "") -> None:
        suffix = f": {detail}" if detail else ""
        super().__init__(f"Rejection classifier at {base_url} is not available{suffix}")


class ClassifierResponseError(FitLearningError):
    """Raised when the classifier returns a payload that cannot be used."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Rejection classifier returned an unusable response: {detail}")


class CircuitBreakerOpen(FitLearningError):
    """Raised when circuit breaker trips due to repeated classifier failures.

    Callers should skip the classifier until the recovery timeout elapses.
    """

    def __init__(self, failure_count: int, threshold: int) -> None:
        self.failure_count = failure_count
        self.threshold = threshold
        super().__init__(
            f"Circuit breaker tripped: {failure_count} consecutive failures "
            f"(threshold: {threshold}). Skipping classifier calls."
        )


class ProfileCatalogFileNotFoundError(FitLearningError):
    """Raised when a profile catalogue file is missing."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Profile catalogue not found: {path}")


class ProfileCatalogValidationError(FitLearningError):
    """Raised when a profile catalogue fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid profile catalogue {path}: {detail}")


class ProfileSelectionError(FitLearningError):
    """Raised when a requested profile does not exist in the catalogue."""

    def __init__(self, name: str, available: Iterable[str]) -> None:
        self.name = name
        self.available = tuple(available)
        super().__init__(
            f"Unknown profile '{name}'. Available profiles: {', '.join(self.available)}"
        )


class ReferenceTableFileNotFoundError(FitLearningError):
    """Raised when a reference rule table file is missing."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Reference table not found: {path}")


class ReferenceTableValidationError(FitLearningError):
    """Raised when a reference rule table fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid reference table {path}: {detail}")


class LearningStoreValidationError(FitLearningError):
    """Raised when the persisted learning store cannot be parsed."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid learning store {path}: {detail}")


class DuplicateProhibitedKeywordError(FitLearningError):
    """Raised when a prohibited keyword is already configured."""

    def __init__(self, keyword: str) -> None:
        self.keyword = keyword
        super().__init__(f'Keyword "{keyword}" already exists')


class InvalidProhibitedKeywordError(FitLearningError):
    """Raised when a prohibited keyword is empty after trimming."""

    def __init__(self) -> None:
        super().__init__("Prohibited keyword must not be empty")


class InvalidMatchModeError(FitLearningError):
    """Raised when a prohibited keyword uses an unsupported match mode."""

    def __init__(self, mode: str) -> None:
        super().__init__(f"Invalid match mode: {mode}. Valid modes: word, substring, sentence")


class InvalidPatternTypeError(FitLearningError):
    """Raised when a manual filter names an unsupported pattern type."""

    def __init__(self, pattern_type: str) -> None:
        super().__init__(
            f"Invalid pattern type: {pattern_type}. "
            "Valid types: company, keyword, tech_stack, seniority, location, compensation"
        )


class JobPayloadError(FitLearningError):
    """Raised when a job posting payload cannot be parsed."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid job posting: {detail}")


class ConfigFileNotFoundError(FitLearningError):
    """Raised when a config file path does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Config file not found: {path}")


class ConfigFileParseError(FitLearningError):
    """Raised when a config file is not valid TOML."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Config file {path} is not valid TOML: {detail}")


class ConfigFileValidationError(FitLearningError):
    """Raised when a config file fails schema validation."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Invalid config file {path}: {detail}")
