"""Composition root for wiring CLI dependencies."""

from __future__ import annotations

from pathlib import Path

from .application.filter_engine import FilterEngine
from .application.profile_catalog import load_profile_catalog, resolve_profile_catalog_path
from .application.reference_tables import load_reference_tables
from .application.rejection_analysis import RejectionAnalyzer
from .application.service import FitLearningService
from .application.weight_learner import WeightLearner
from .cli import CliDependencies, create_app
from .cli_progress import CliProgressReporter
from .config import FitLearningConfig
from .config_file import load_config_file
from .domain.rejections import AdjustmentTargets
from .infrastructure import (
    CircuitBreaker,
    JsonFileLearningRepository,
    LocalFileSystem,
    OllamaRejectionClassifier,
    RequestsSession,
    RetryPolicy,
    SystemClock,
    TtlWeightCache,
)
from .protocols import Clock, FileSystem, LearningRepository, RejectionClassifier


def load_cli_config(*, config_path: Path | None) -> FitLearningConfig:
    """Load env configuration, then apply the optional TOML config file."""
    config = FitLearningConfig.from_env()
    if config_path is None:
        return config
    return config.with_file_overrides(load_config_file(path=config_path, fs=LocalFileSystem()))


def build_service(
    *,
    config: FitLearningConfig,
    fs: FileSystem,
    clock: Clock,
    repository: LearningRepository,
    with_classifier: bool = False,
) -> FitLearningService:
    """Assemble the learning service from configuration and injected I/O."""
    catalog = load_profile_catalog(
        path=resolve_profile_catalog_path(config.profile_catalog_path), fs=fs
    )
    tables = load_reference_tables(fs=fs)

    classifier: RejectionClassifier | None = None
    if with_classifier:
        classifier = OllamaRejectionClassifier(
            session=RequestsSession(),
            base_url=config.classifier_base_url,
            model=config.classifier_model,
            categories=catalog.category_keys(),
            clock=clock,
            timeout_seconds=config.classifier_timeout_seconds,
            adjustment_clamp=config.adjustment_clamp,
            retry_policy=RetryPolicy(
                max_retries=config.classifier_max_retries,
                backoff_factor=config.classifier_backoff_factor,
            ),
            circuit_breaker=CircuitBreaker(
                threshold=config.classifier_circuit_breaker_threshold,
                recovery_timeout_seconds=config.classifier_circuit_breaker_timeout_seconds,
            ),
        )

    return FitLearningService(
        catalog=catalog,
        learner=WeightLearner(
            repository=repository,
            catalog=catalog,
            cache=TtlWeightCache(ttl_seconds=config.weight_cache_ttl_seconds, clock=clock),
            clock=clock,
            config=config,
        ),
        analyzer=RejectionAnalyzer(
            tables=tables,
            targets=AdjustmentTargets(
                primary_category=catalog.primary_category,
                seniority_category=catalog.seniority_category,
                remote_category=catalog.remote_category,
            ),
            classifier=classifier,
            adjustment_clamp=config.adjustment_clamp,
        ),
        filter_engine=FilterEngine(
            repository=repository,
            tables=tables,
            clock=clock,
            contract_profile=config.contract_profile,
            activation_count=config.pattern_activation_count,
        ),
        repository=repository,
    )


def build_cli_dependencies(
    *,
    config: FitLearningConfig,
    build_classifier: bool,
) -> CliDependencies:
    """Build concrete dependencies for CLI commands.

    Args:
        config: Fit-learning configuration (store, catalog and classifier wiring).
        build_classifier: Whether to construct the external rejection classifier.
    """
    fs = LocalFileSystem()
    clock = SystemClock()
    repository = JsonFileLearningRepository(path=Path(config.store_path), fs=fs, clock=clock)
    service = build_service(
        config=config,
        fs=fs,
        clock=clock,
        repository=repository,
        with_classifier=build_classifier or config.classifier_enabled,
    )
    return CliDependencies(fs=fs, service=service, progress=CliProgressReporter())


app = create_app(build_cli_dependencies, load_cli_config)
