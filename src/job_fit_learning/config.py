"""Centralised, injectable configuration for the fit-score learning loop."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Self

from dotenv import load_dotenv

from .config_file import FitLearningConfigFile


class PositiveNumberEnvVarError(ValueError):
    """Raised when an environment variable must be a positive number."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive number.")


class PositiveIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a positive integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a positive integer.")


class NonNegativeIntegerEnvVarError(ValueError):
    """Raised when an environment variable must be a non-negative integer."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a non-negative integer.")


class BooleanEnvVarError(ValueError):
    """Raised when an environment variable must be a supported boolean."""

    def __init__(self, env_name: str) -> None:
        super().__init__(f"{env_name} must be a boolean value (true/false, 1/0, yes/no, on/off).")


@dataclass(frozen=True)
class FitLearningConfig:
    """Immutable configuration object for scoring, learning and filtering.

    Load from environment with `FitLearningConfig.from_env()` or construct directly for testing.
    """

    # Weight learning
    adjustment_clamp: float = 5.0
    min_weight: float = 0.1
    min_applied_delta: float = 0.5
    weight_cache_ttl_seconds: float = 60.0

    # Filtering
    pattern_activation_count: int = 2
    contract_profile: str = "contract"

    # Storage and reference data
    store_path: str = "data/learning/store.json"
    profile_catalog_path: str = ""

    # External rejection classifier (Ollama-compatible)
    classifier_enabled: bool = False
    classifier_base_url: str = "http://localhost:11434"
    classifier_model: str = "llama3.1"
    classifier_timeout_seconds: float = 30.0
    classifier_max_retries: int = 2
    classifier_backoff_factor: float = 1.0
    classifier_circuit_breaker_threshold: int = 3
    classifier_circuit_breaker_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Self:
        """Load configuration from environment variables.

        Args:
            dotenv_path: Optional path to .env file. If None, uses default .env discovery.

        Returns:
            FitLearningConfig instance populated from environment.
        """
        load_dotenv(dotenv_path)

        return cls(
            adjustment_clamp=_parse_positive_float(
                os.getenv("FIT_ADJUSTMENT_CLAMP", "5.0"), env_name="FIT_ADJUSTMENT_CLAMP"
            ),
            min_weight=_parse_positive_float(
                os.getenv("FIT_MIN_WEIGHT", "0.1"), env_name="FIT_MIN_WEIGHT"
            ),
            min_applied_delta=_parse_positive_float(
                os.getenv("FIT_MIN_APPLIED_DELTA", "0.5"), env_name="FIT_MIN_APPLIED_DELTA"
            ),
            weight_cache_ttl_seconds=_parse_positive_float(
                os.getenv("FIT_WEIGHT_CACHE_TTL_SECONDS", "60"),
                env_name="FIT_WEIGHT_CACHE_TTL_SECONDS",
            ),
            pattern_activation_count=_parse_positive_int(
                os.getenv("FIT_PATTERN_ACTIVATION_COUNT", "2"),
                env_name="FIT_PATTERN_ACTIVATION_COUNT",
            ),
            contract_profile=os.getenv("FIT_CONTRACT_PROFILE", "contract").strip() or "contract",
            store_path=os.getenv("FIT_STORE_PATH", "data/learning/store.json").strip()
            or "data/learning/store.json",
            profile_catalog_path=os.getenv("FIT_PROFILE_CATALOG", "").strip(),
            classifier_enabled=_parse_optional_bool(
                os.getenv("CLASSIFIER_ENABLED", ""), env_name="CLASSIFIER_ENABLED"
            )
            or False,
            classifier_base_url=os.getenv("CLASSIFIER_BASE_URL", "http://localhost:11434").strip()
            or "http://localhost:11434",
            classifier_model=os.getenv("CLASSIFIER_MODEL", "llama3.1").strip() or "llama3.1",
            classifier_timeout_seconds=_parse_positive_float(
                os.getenv("CLASSIFIER_TIMEOUT_SECONDS", "30"),
                env_name="CLASSIFIER_TIMEOUT_SECONDS",
            ),
            classifier_max_retries=_parse_non_negative_int(
                os.getenv("CLASSIFIER_MAX_RETRIES", "2"), env_name="CLASSIFIER_MAX_RETRIES"
            ),
            classifier_backoff_factor=_parse_positive_float(
                os.getenv("CLASSIFIER_BACKOFF_FACTOR", "1.0"), env_name="CLASSIFIER_BACKOFF_FACTOR"
            ),
            classifier_circuit_breaker_threshold=_parse_positive_int(
                os.getenv("CLASSIFIER_CIRCUIT_BREAKER_THRESHOLD", "3"),
                env_name="CLASSIFIER_CIRCUIT_BREAKER_THRESHOLD",
            ),
            classifier_circuit_breaker_timeout_seconds=_parse_positive_float(
                os.getenv("CLASSIFIER_CIRCUIT_BREAKER_TIMEOUT_SECONDS", "30"),
                env_name="CLASSIFIER_CIRCUIT_BREAKER_TIMEOUT_SECONDS",
            ),
        )

    def with_overrides(
        self,
        *,
        store_path: str | None = None,
        profile_catalog_path: str | None = None,
        adjustment_clamp: float | None = None,
        classifier_enabled: bool | None = None,
    ) -> Self:
        """Return a new config with specified overrides (for CLI options)."""
        return replace(
            self,
            store_path=self.store_path if store_path is None else store_path.strip(),
            profile_catalog_path=self.profile_catalog_path
            if profile_catalog_path is None
            else profile_catalog_path.strip(),
            adjustment_clamp=self.adjustment_clamp
            if adjustment_clamp is None
            else adjustment_clamp,
            classifier_enabled=self.classifier_enabled
            if classifier_enabled is None
            else classifier_enabled,
        )

    def with_file_overrides(self, file_config: FitLearningConfigFile) -> Self:
        """Return a new config with config-file values overriding env/default values."""
        return replace(
            self,
            adjustment_clamp=self.adjustment_clamp
            if file_config.adjustment_clamp is None
            else file_config.adjustment_clamp,
            min_weight=self.min_weight
            if file_config.min_weight is None
            else file_config.min_weight,
            min_applied_delta=self.min_applied_delta
            if file_config.min_applied_delta is None
            else file_config.min_applied_delta,
            weight_cache_ttl_seconds=self.weight_cache_ttl_seconds
            if file_config.weight_cache_ttl_seconds is None
            else file_config.weight_cache_ttl_seconds,
            pattern_activation_count=self.pattern_activation_count
            if file_config.pattern_activation_count is None
            else file_config.pattern_activation_count,
            contract_profile=self.contract_profile
            if file_config.contract_profile is None
            else file_config.contract_profile,
            store_path=self.store_path
            if file_config.store_path is None
            else file_config.store_path,
            profile_catalog_path=self.profile_catalog_path
            if file_config.profile_catalog_path is None
            else file_config.profile_catalog_path,
            classifier_enabled=self.classifier_enabled
            if file_config.classifier_enabled is None
            else file_config.classifier_enabled,
            classifier_base_url=self.classifier_base_url
            if file_config.classifier_base_url is None
            else file_config.classifier_base_url,
            classifier_model=self.classifier_model
            if file_config.classifier_model is None
            else file_config.classifier_model,
            classifier_timeout_seconds=self.classifier_timeout_seconds
            if file_config.classifier_timeout_seconds is None
            else file_config.classifier_timeout_seconds,
            classifier_max_retries=self.classifier_max_retries
            if file_config.classifier_max_retries is None
            else file_config.classifier_max_retries,
        )


def _parse_positive_float(value: str, *, env_name: str) -> float:
    """Parse a positive float from an environment variable."""
    try:
        parsed = float(value.strip())
    except ValueError as exc:
        raise PositiveNumberEnvVarError(env_name) from exc
    if parsed <= 0:
        raise PositiveNumberEnvVarError(env_name)
    return parsed


def _parse_positive_int(value: str, *, env_name: str) -> int:
    """Parse a positive integer from an environment variable."""
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise PositiveIntegerEnvVarError(env_name) from exc
    if parsed < 1:
        raise PositiveIntegerEnvVarError(env_name)
    return parsed


def _parse_non_negative_int(value: str, *, env_name: str) -> int:
    """Parse a non-negative integer from an environment variable."""
    try:
        parsed = int(value.strip())
    except ValueError as exc:
        raise NonNegativeIntegerEnvVarError(env_name) from exc
    if parsed < 0:
        raise NonNegativeIntegerEnvVarError(env_name)
    return parsed


def _parse_optional_bool(value: str, *, env_name: str) -> bool | None:
    """Parse an optional boolean from an environment variable."""
    text = value.strip().lower()
    if not text:
        return None
    if text in {"1", "true", "yes", "y", "on"}:
        return True
    if text in {"0", "false", "no", "n", "off"}:
        return False
    raise BooleanEnvVarError(env_name)
