"""Rich progress reporting for long-running CLI commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import override

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .protocols import ProgressReporter


def _stderr_console() -> Console:
    return Console(stderr=True)


@dataclass
class CliProgressReporter(ProgressReporter):
    """Shows one batch at a time as a transient bar on stderr."""

    console: Console = field(default_factory=_stderr_console)
    _progress: Progress | None = None
    _task_id: TaskID | None = None

    @override
    def start(self, label: str, total: int | None) -> None:
        self.finish()
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )
        self._progress.start()
        self._task_id = self._progress.add_task(label, total=total)

    @override
    def advance(self, count: int) -> None:
        if self._progress is None or self._task_id is None:
            return
        self._progress.advance(self._task_id, count)

    @override
    def finish(self) -> None:
        if self._progress is None:
            return
        self._progress.stop()
        self._progress = None
        self._task_id = None
