"""Batch rescoring: recompute fit scores and filter decisions for a CSV of postings.

Each row is isolated: a row with a bad score or missing title is logged, marked in
the ``error`` column and left unscored while the remaining rows continue.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from ..domain.jobs import JobPosting
from ..exceptions import FitLearningError
from ..infrastructure.io.validation import parse_job_payload
from ..observability import get_logger
from ..protocols import FileSystem, ProgressReporter
from ..schemas import (
    RESCORE_OPTIONAL_COLUMNS,
    RESCORE_REQUIRED_COLUMNS,
    RESCORE_RESULT_COLUMNS,
    SCORE_COLUMN_PREFIX,
    score_columns,
    validate_columns,
)
from .service import FitLearningService


@dataclass(frozen=True)
class RescoreReport:
    """Counts from one batch run."""

    output_path: Path
    total: int
    scored: int
    blocked: int
    failed: int


def _cell_value(text: str) -> object:
    try:
        return float(text)
    except ValueError:
        return text


def _row_payload(row: Mapping[str, str], scores: list[str]) -> dict[str, object]:
    payload: dict[str, object] = {
        column: row.get(column, "") for column in ("title", "company", *RESCORE_OPTIONAL_COLUMNS)
    }
    payload["id"] = payload["id"] or None
    payload["category_scores"] = {
        column.removeprefix(SCORE_COLUMN_PREFIX): _cell_value(row[column].strip())
        for column in scores
        if row.get(column, "").strip()
    }
    return payload


def _empty_result(error: str) -> dict[str, object]:
    return {
        "fit_score": "",
        "blocked": "",
        "filter_name": "",
        "block_reason": "",
        "blockers": "",
        "error": error,
    }


def _score_row(
    job: JobPosting, service: FitLearningService, profile: str | None
) -> dict[str, object]:
    explained = service.explain_fit_score(job, profile)
    decision = service.apply_filters(job, profile)
    return {
        "fit_score": round(explained.fit_score, 2),
        "blocked": decision.blocked,
        "filter_name": decision.filter_name or "",
        "block_reason": decision.reason or "",
        "blockers": "|".join(explained.blockers),
        "error": "",
    }


def run_rescore(
    *,
    input_path: Path,
    output_path: Path,
    service: FitLearningService,
    fs: FileSystem,
    profile: str | None = None,
    progress: ProgressReporter | None = None,
) -> RescoreReport:
    """Score and filter every posting in ``input_path`` and write the results.

    Output rows keep the input columns, gain the result columns and are ordered
    by fit score, highest first, with failed rows last.

    Raises:
        ValueError: If the input is missing the title or company column.
    """
    logger = get_logger("job_fit_learning.rescore")
    df = fs.read_csv(input_path).fillna("")
    columns = [str(column) for column in df.columns]
    validate_columns(columns, RESCORE_REQUIRED_COLUMNS, "Rescore input")
    scores = score_columns(columns)
    logger.info("Rescoring %s postings with %s score columns", len(df), len(scores))

    if progress is not None:
        progress.start("Rescoring postings", len(df))

    results: list[dict[str, object]] = []
    failed = 0
    for index, row in df.iterrows():
        record = {str(key): str(value) for key, value in row.to_dict().items()}
        try:
            job = parse_job_payload(_row_payload(record, scores))
            results.append(_score_row(job, service, profile))
        except FitLearningError as exc:
            logger.warning("Skipping row %s: %s", index, exc)
            results.append(_empty_result(str(exc)))
            failed += 1
        if progress is not None:
            progress.advance(1)

    if progress is not None:
        progress.finish()

    result_df = pd.DataFrame(results, columns=list(RESCORE_RESULT_COLUMNS), index=df.index)
    base = df.drop(columns=list(RESCORE_RESULT_COLUMNS), errors="ignore")
    output = pd.concat([base, result_df], axis=1)
    output["_sort_score"] = pd.to_numeric(output["fit_score"], errors="coerce").fillna(-1.0)
    output = output.sort_values("_sort_score", ascending=False, kind="stable").drop(
        columns=["_sort_score"]
    )
    fs.write_csv(output, output_path)

    blocked = sum(1 for result in results if result["blocked"] is True)
    report = RescoreReport(
        output_path=output_path,
        total=len(df),
        scored=len(df) - failed,
        blocked=blocked,
        failed=failed,
    )
    logger.info(
        "Rescored %s postings (%s blocked, %s failed): %s",
        report.scored,
        report.blocked,
        report.failed,
        output_path,
    )
    return report
