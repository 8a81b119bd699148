"""Typed parsing and validation for fit-learning config files.

Example ``job-fit.toml``:

    schema_version = 1

    [learning]
    adjustment_clamp = 10.0
    pattern_activation_count = 3

    [classifier]
    enabled = true
    model = "llama3.1"
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigFileNotFoundError, ConfigFileParseError, ConfigFileValidationError
from .protocols import FileSystem

_SCHEMA_VERSION = 1


@dataclass(frozen=True)
class FitLearningConfigFile:
    """Validated config values loaded from a TOML file."""

    adjustment_clamp: float | None = None
    min_weight: float | None = None
    min_applied_delta: float | None = None
    weight_cache_ttl_seconds: float | None = None
    pattern_activation_count: int | None = None
    contract_profile: str | None = None
    store_path: str | None = None
    profile_catalog_path: str | None = None
    classifier_enabled: bool | None = None
    classifier_base_url: str | None = None
    classifier_model: str | None = None
    classifier_timeout_seconds: float | None = None
    classifier_max_retries: int | None = None


class _LearningSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    adjustment_clamp: float | None = None
    min_weight: float | None = None
    min_applied_delta: float | None = None
    weight_cache_ttl_seconds: float | None = None
    pattern_activation_count: int | None = None
    contract_profile: str | None = None
    store_path: str | None = None
    profile_catalog_path: str | None = None

    @field_validator(
        "adjustment_clamp", "min_weight", "min_applied_delta", "weight_cache_ttl_seconds"
    )
    @classmethod
    def _validate_positive_number(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value

    @field_validator("pattern_activation_count")
    @classmethod
    def _validate_positive_int(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 1:
            raise ValueError
        return value

    @field_validator("contract_profile", "store_path", "profile_catalog_path")
    @classmethod
    def _validate_non_empty_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text


class _ClassifierSectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    enabled: bool | None = None
    base_url: str | None = None
    model: str | None = None
    timeout_seconds: float | None = None
    max_retries: int | None = None

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text.startswith(("http://", "https://")):
            raise ValueError
        return text

    @field_validator("model")
    @classmethod
    def _validate_model(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, value: float | None) -> float | None:
        if value is None:
            return None
        if value <= 0:
            raise ValueError
        return value

    @field_validator("max_retries")
    @classmethod
    def _validate_retries(cls, value: int | None) -> int | None:
        if value is None:
            return None
        if value < 0:
            raise ValueError
        return value


class _ConfigFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    learning: _LearningSectionModel = Field(default_factory=_LearningSectionModel)
    classifier: _ClassifierSectionModel = Field(default_factory=_ClassifierSectionModel)

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def load_config_file(*, path: Path, fs: FileSystem) -> FitLearningConfigFile:
    """Load and validate a fit-learning TOML config file."""
    if not fs.exists(path):
        raise ConfigFileNotFoundError(str(path))

    raw_payload = fs.read_text(path)
    try:
        payload: object = tomllib.loads(raw_payload)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileParseError(str(path), str(exc)) from exc

    try:
        model = _ConfigFileModel.model_validate(payload)
    except ValidationError as exc:
        raise ConfigFileValidationError(str(path), _format_validation_error(exc)) from exc

    learning = model.learning
    classifier = model.classifier
    return FitLearningConfigFile(
        adjustment_clamp=learning.adjustment_clamp,
        min_weight=learning.min_weight,
        min_applied_delta=learning.min_applied_delta,
        weight_cache_ttl_seconds=learning.weight_cache_ttl_seconds,
        pattern_activation_count=learning.pattern_activation_count,
        contract_profile=learning.contract_profile,
        store_path=learning.store_path,
        profile_catalog_path=learning.profile_catalog_path,
        classifier_enabled=classifier.enabled,
        classifier_base_url=classifier.base_url,
        classifier_model=classifier.model,
        classifier_timeout_seconds=classifier.timeout_seconds,
        classifier_max_retries=classifier.max_retries,
    )
