"""Tests for configuration precedence resolution."""

from __future__ import annotations

from job_fit_learning.config import FitLearningConfig
from job_fit_learning.config_file import FitLearningConfigFile


def test_with_file_overrides_applies_config_file_values() -> None:
    env_config = FitLearningConfig(
        adjustment_clamp=5.0,
        pattern_activation_count=2,
        store_path="env/store.json",
        classifier_model="llama3.1",
    )
    file_config = FitLearningConfigFile(
        adjustment_clamp=10.0,
        pattern_activation_count=3,
        store_path="file/store.json",
        classifier_enabled=True,
        classifier_model="mistral",
        classifier_max_retries=0,
    )

    resolved = env_config.with_file_overrides(file_config)

    assert resolved.adjustment_clamp == 10.0
    assert resolved.pattern_activation_count == 3
    assert resolved.store_path == "file/store.json"
    assert resolved.classifier_enabled is True
    assert resolved.classifier_model == "mistral"
    assert resolved.classifier_max_retries == 0


def test_with_file_overrides_keeps_env_when_file_value_missing() -> None:
    env_config = FitLearningConfig(min_weight=0.2, contract_profile="freelance")

    resolved = env_config.with_file_overrides(FitLearningConfigFile(adjustment_clamp=8.0))

    assert resolved.adjustment_clamp == 8.0
    assert resolved.min_weight == 0.2
    assert resolved.contract_profile == "freelance"


def test_precedence_cli_over_config_file_over_env_over_defaults() -> None:
    base = FitLearningConfig(store_path="default/store.json", adjustment_clamp=5.0)
    env = base.with_overrides(store_path="env/store.json")
    from_file = env.with_file_overrides(
        FitLearningConfigFile(store_path="file/store.json", adjustment_clamp=7.0)
    )

    resolved = from_file.with_overrides(store_path="cli/store.json")

    assert resolved.store_path == "cli/store.json"
    assert resolved.adjustment_clamp == 7.0
