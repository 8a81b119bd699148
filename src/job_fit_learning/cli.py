"""CLI for the job fit-score learning loop.

Commands:
- weights: Show base and effective category weights
- validate-weights: Check effective weights for drift and outliers
- reset-weights: Delete learned weight adjustments
- score: Compute the fit score for a job posting JSON file
- filter: Run the filter chain against a job posting JSON file
- reject: Record a rejection and learn from its reason text
- add-filter / add-prohibited-keyword / remove-prohibited-keyword: Manual filter overrides
- list-filters / clear-filters: Inspect or clear learned filters
- stats: Show learning and filter statistics
- rescore: Recompute fit scores and filter decisions for a CSV of postings
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Protocol

import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from . import __version__
from .application.rescore import run_rescore
from .application.service import FitLearningService, load_job_posting
from .config import FitLearningConfig
from .domain.jobs import JobPosting
from .exceptions import FitLearningError
from .protocols import FileSystem, ProgressReporter


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(
        self,
        *,
        config: FitLearningConfig,
        build_classifier: bool,
    ) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


class ConfigLoader(Protocol):
    """Protocol for loading configuration before any command runs."""

    def __call__(self, *, config_path: Path | None) -> FitLearningConfig:
        """Load configuration, applying the optional config file."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    fs: FileSystem
    service: FitLearningService
    progress: ProgressReporter


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: FitLearningConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, build_classifier: bool = False) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=self.config, build_classifier=build_classifier)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the job-fit entry point.")


DEFAULT_HISTORY_LIMIT = 10


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _fail(exc: Exception) -> typer.Exit:
    rprint(f"[red]✗ {escape(str(exc))}[/red]")
    return typer.Exit(code=1)


def _checked_profile(service: FitLearningService, profile: str | None) -> str | None:
    if profile is not None:
        service.catalog.get_profile(profile)
    return profile


def _load_job(deps: CliDependencies, path: Path) -> JobPosting:
    return load_job_posting(path=path, fs=deps.fs)


def _version_callback(value: bool) -> None:
    if value:
        rprint(f"job-fit {__version__}")
        raise typer.Exit()


def create_app(deps_builder: DependenciesBuilder, config_loader: ConfigLoader) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Job fit scoring that learns from rejection feedback.",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                "-c",
                help="TOML config file (schema_version = 1)",
            ),
        ] = None,
        store_path: Annotated[
            Path | None,
            typer.Option(
                "--store",
                help="Learning store JSON file (default: FIT_STORE_PATH)",
            ),
        ] = None,
        profile_catalog_path: Annotated[
            Path | None,
            typer.Option(
                "--profile-catalog",
                help="Profile catalogue JSON file (default: bundled catalogue)",
            ),
        ] = None,
        version: Annotated[
            bool,
            typer.Option(
                "--version",
                callback=_version_callback,
                is_eager=True,
                help="Show the version and exit",
            ),
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        try:
            config = config_loader(config_path=config_path)
        except FitLearningError as exc:
            raise _fail(exc) from exc
        config = config.with_overrides(
            store_path=None if store_path is None else str(store_path),
            profile_catalog_path=None
            if profile_catalog_path is None
            else str(profile_catalog_path),
        )
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def weights(
        ctx: typer.Context,
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Search profile name"),
        ] = None,
    ) -> None:
        """Show base weights, learned adjustments and effective weights."""
        deps = _get_context(ctx).build_dependencies()
        try:
            summary = deps.service.learner.adjustment_summary(
                _checked_profile(deps.service, profile)
            )
        except FitLearningError as exc:
            raise _fail(exc) from exc

        table = Table(title=f"Weights ({profile or 'default'})")
        table.add_column("Category")
        table.add_column("Base", justify="right")
        table.add_column("Adjustment", justify="right")
        table.add_column("Effective", justify="right")
        for category, effective in summary.adjusted_weights.items():
            table.add_row(
                category,
                f"{summary.base_weights.get(category, 0.0):.2f}",
                f"{summary.adjustments.get(category, 0.0):+.2f}",
                f"{effective:.2f}",
            )
        rprint(table)
        rprint(f"  Total adjustment: {summary.total_adjustment:+.2f}")

    @app.command(name="validate-weights")
    def validate_weights(
        ctx: typer.Context,
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Search profile name"),
        ] = None,
    ) -> None:
        """Check the effective weights for sum drift, negatives and outliers."""
        deps = _get_context(ctx).build_dependencies()
        try:
            active = deps.service.get_active_weights(_checked_profile(deps.service, profile))
        except FitLearningError as exc:
            raise _fail(exc) from exc
        validation = deps.service.learner.validate(active)
        if validation.is_valid:
            rprint("[green]✓ Weights are valid[/green]")
            return
        for issue in validation.issues:
            rprint(f"[yellow]• {escape(issue)}[/yellow]")
        raise typer.Exit(code=1)

    @app.command(name="reset-weights")
    def reset_weights(
        ctx: typer.Context,
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Only reset this profile's adjustments"),
        ] = None,
    ) -> None:
        """Delete learned weight adjustments so effective weights return to base."""
        deps = _get_context(ctx).build_dependencies()
        removed = deps.service.learner.reset_adjustments(profile)
        rprint(f"[green]✓ Reset {removed} weight adjustments[/green]")

    @app.command()
    def score(
        ctx: typer.Context,
        job_path: Annotated[Path, typer.Argument(help="Job posting JSON file")],
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Search profile name"),
        ] = None,
    ) -> None:
        """Compute the fit score for a job posting."""
        deps = _get_context(ctx).build_dependencies()
        try:
            job = _load_job(deps, job_path)
            result = deps.service.explain_fit_score(job, _checked_profile(deps.service, profile))
        except FitLearningError as exc:
            raise _fail(exc) from exc
        rprint(f"[green]✓ Fit score:[/green] {result.fit_score:.2f}")
        rprint(f"  Profile: {result.profile or 'default'}")
        for blocker in result.blockers:
            rprint(f"  [yellow]{escape(blocker)}[/yellow]")

    @app.command(name="filter")
    def filter_job(
        ctx: typer.Context,
        job_path: Annotated[Path, typer.Argument(help="Job posting JSON file")],
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Search profile name"),
        ] = None,
    ) -> None:
        """Run the filter chain against a job posting."""
        deps = _get_context(ctx).build_dependencies()
        try:
            job = _load_job(deps, job_path)
            result = deps.service.apply_filters(job, _checked_profile(deps.service, profile))
        except FitLearningError as exc:
            raise _fail(exc) from exc
        if result.blocked:
            rprint(f"[red]✗ Blocked by {result.filter_name}:[/red] {escape(result.reason)}")
        else:
            rprint("[green]✓ Passed all filters[/green]")

    @app.command()
    def reject(
        ctx: typer.Context,
        job_path: Annotated[Path, typer.Argument(help="Job posting JSON file")],
        reason: Annotated[
            str,
            typer.Option("--reason", "-r", help="Rejection reason text"),
        ],
        rejection_id: Annotated[
            str | None,
            typer.Option("--rejection-id", help="External rejection identifier"),
        ] = None,
        use_classifier: Annotated[
            bool,
            typer.Option(
                "--use-classifier",
                help="Ask the external classifier first (falls back to keyword rules)",
            ),
        ] = False,
    ) -> None:
        """Record a rejection: learn weight adjustments and filter patterns."""
        deps = _get_context(ctx).build_dependencies(build_classifier=use_classifier)
        try:
            job = _load_job(deps, job_path)
            outcome = deps.service.record_rejection(
                job, reason, rejection_id=rejection_id, use_classifier=use_classifier
            )
        except FitLearningError as exc:
            raise _fail(exc) from exc
        title, company = escape(job.title), escape(job.company)
        rprint(f"[green]✓ Rejection recorded:[/green] {title} @ {company}")
        for pattern in outcome.stored_patterns:
            rprint(
                f"  Pattern: {pattern.pattern_type} = {escape(pattern.value)} "
                f"(seen {pattern.count}x)"
            )
        for adjustment in outcome.applied_adjustments:
            rprint(
                f"  Weight: {adjustment.category} {adjustment.old_weight:.2f} → "
                f"{adjustment.new_weight:.2f} ({escape(adjustment.reason)})"
            )
        if not outcome.stored_patterns and not outcome.applied_adjustments:
            rprint("[yellow]  No patterns recognised in the reason text[/yellow]")

    @app.command(name="add-filter")
    def add_filter(
        ctx: typer.Context,
        pattern_type: Annotated[
            str,
            typer.Argument(
                help="company, keyword, tech_stack, seniority, location or compensation"
            ),
        ],
        value: Annotated[str, typer.Argument(help="Value to filter on")],
        reason: Annotated[
            str,
            typer.Option("--reason", help="Why the filter was added"),
        ] = "Manual filter",
    ) -> None:
        """Add a learned-style filter that is active immediately."""
        deps = _get_context(ctx).build_dependencies()
        try:
            pattern = deps.service.filter_engine.add_manual_filter(pattern_type, value, reason)
        except FitLearningError as exc:
            raise _fail(exc) from exc
        shown = escape(pattern.value)
        rprint(f'[green]✓ Added filter:[/green] {pattern.pattern_type} = "{shown}"')

    @app.command(name="add-prohibited-keyword")
    def add_prohibited_keyword(
        ctx: typer.Context,
        keyword: Annotated[
            str,
            typer.Argument(help="Keyword, or comma-separated group matched within a sentence"),
        ],
        mode: Annotated[
            str | None,
            typer.Option("--mode", "-m", help="word, substring or sentence"),
        ] = None,
        reason: Annotated[
            str | None,
            typer.Option("--reason", help="Why the keyword is prohibited"),
        ] = None,
    ) -> None:
        """Block every posting that contains a keyword."""
        deps = _get_context(ctx).build_dependencies()
        try:
            entry = deps.service.filter_engine.add_prohibited_keyword(keyword, mode, reason)
        except FitLearningError as exc:
            raise _fail(exc) from exc
        rprint(
            f'[green]✓ Added prohibited keyword:[/green] "{escape(entry.keyword)}" '
            f"({entry.match_mode})"
        )

    @app.command(name="remove-prohibited-keyword")
    def remove_prohibited_keyword(
        ctx: typer.Context,
        keyword: Annotated[str, typer.Argument(help="Keyword to remove")],
    ) -> None:
        """Remove a prohibited keyword."""
        deps = _get_context(ctx).build_dependencies()
        if not deps.service.filter_engine.remove_prohibited_keyword(keyword):
            rprint(f'[yellow]Keyword "{escape(keyword)}" not found[/yellow]')
            raise typer.Exit(code=1)
        rprint(f'[green]✓ Removed prohibited keyword:[/green] "{escape(keyword)}"')

    @app.command(name="list-filters")
    def list_filters(
        ctx: typer.Context,
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Search profile name"),
        ] = None,
    ) -> None:
        """List prohibited keywords, rejection patterns and active filters."""
        deps = _get_context(ctx).build_dependencies()
        service = deps.service
        stats = service.filter_engine.filter_stats(profile)
        rprint(f"[bold]Active filters:[/bold] {stats.total_filters}")
        for name, count in stats.by_name.items():
            rprint(f"  {name}: {count}")

        keywords = service.repository.get_prohibited_keywords()
        if keywords:
            rprint("[bold]Prohibited keywords:[/bold]")
            for entry in keywords:
                suffix = f" - {escape(entry.reason)}" if entry.reason else ""
                rprint(f'  "{escape(entry.keyword)}" ({entry.match_mode}){suffix}')

        patterns = service.repository.get_rejection_patterns()
        if patterns:
            table = Table(title="Rejection patterns")
            table.add_column("Type")
            table.add_column("Value")
            table.add_column("Count", justify="right")
            table.add_column("Confidence", justify="right")
            table.add_column("Active")
            for pattern in patterns:
                active = pattern.count >= service.filter_engine.activation_count
                table.add_row(
                    pattern.pattern_type,
                    escape(pattern.value),
                    str(pattern.count),
                    f"{pattern.confidence:.2f}",
                    "yes" if active else "no",
                )
            rprint(table)

    @app.command(name="clear-filters")
    def clear_filters(
        ctx: typer.Context,
        yes: Annotated[
            bool,
            typer.Option("--yes", "-y", help="Skip the confirmation prompt"),
        ] = False,
    ) -> None:
        """Delete every learned rejection pattern (prohibited keywords are kept)."""
        if not yes:
            typer.confirm("Delete all learned rejection patterns?", abort=True)
        deps = _get_context(ctx).build_dependencies()
        removed = deps.service.filter_engine.clear_all_filters()
        rprint(f"[green]✓ Cleared {removed} rejection patterns[/green]")

    @app.command()
    def stats(
        ctx: typer.Context,
        limit: Annotated[
            int,
            typer.Option("--limit", "-n", help="Number of recent adjustments to show"),
        ] = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        """Show learning statistics and recent weight adjustments."""
        deps = _get_context(ctx).build_dependencies()
        learner = deps.service.learner
        learning = learner.learning_stats()
        rprint("[bold]Learning[/bold]")
        rprint(f"  Total adjustments: {learning.total_adjustments}")
        rprint(f"  Categories adjusted: {learning.categories_adjusted}")
        rprint(f"  Average adjustment: {learning.average_adjustment:+.2f}")
        if learning.last_adjustment_at is not None:
            rprint(f"  Last adjustment: {learning.last_adjustment_at.isoformat()}")

        filters = deps.service.filter_engine.filter_stats()
        rprint(f"[bold]Filters[/bold]\n  Active filters: {filters.total_filters}")

        history = learner.adjustment_history(limit)
        if history:
            rprint("[bold]Recent adjustments[/bold]")
            for record in history:
                scope = escape(f"[{record.search_profile or 'all'}]")
                rprint(
                    f"  {record.created_at:%Y-%m-%d %H:%M} {scope} "
                    f"{record.category} {record.delta:+.2f} - {escape(record.reason)}"
                )

    @app.command()
    def rescore(
        ctx: typer.Context,
        input_path: Annotated[Path, typer.Argument(help="CSV of job postings")],
        output_path: Annotated[
            Path,
            typer.Option("--output", "-o", help="Output CSV path"),
        ],
        profile: Annotated[
            str | None,
            typer.Option("--profile", "-p", help="Score every row with this profile"),
        ] = None,
    ) -> None:
        """Recompute fit scores and filter decisions for a CSV of postings."""
        deps = _get_context(ctx).build_dependencies()
        try:
            report = run_rescore(
                input_path=input_path,
                output_path=output_path,
                service=deps.service,
                fs=deps.fs,
                profile=_checked_profile(deps.service, profile),
                progress=deps.progress,
            )
        except (FitLearningError, ValueError) as exc:
            raise _fail(exc) from exc
        rprint(f"[green]✓ Rescore complete:[/green] {report.output_path}")
        rprint(
            f"  {report.total:,} rows → {report.scored:,} scored, "
            f"{report.blocked:,} blocked, {report.failed:,} failed"
        )

    _ = (
        main,
        weights,
        validate_weights,
        reset_weights,
        score,
        filter_job,
        reject,
        add_filter,
        add_prohibited_keyword,
        remove_prohibited_keyword,
        list_filters,
        clear_filters,
        stats,
        rescore,
    )

    return app
