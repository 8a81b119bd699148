"""Column contracts for batch CSV input and output.

A rescore input CSV holds one posting per row. Raw scorer output is spread over
``score_<category>`` columns; an empty cell means the category was not scored.
"""

from __future__ import annotations

SCORE_COLUMN_PREFIX = "score_"

RESCORE_REQUIRED_COLUMNS = frozenset(["title", "company"])

RESCORE_OPTIONAL_COLUMNS = (
    "id",
    "description",
    "profile",
)

# Appended to the input columns in the rescore output
RESCORE_RESULT_COLUMNS = (
    "fit_score",
    "blocked",
    "filter_name",
    "block_reason",
    "blockers",  # pipe-separated "Low match: <category>" entries
    "error",
)


def score_columns(df_columns: list[str]) -> list[str]:
    """Return the ``score_<category>`` columns in their original order."""
    return [
        column
        for column in df_columns
        if column.startswith(SCORE_COLUMN_PREFIX) and len(column) > len(SCORE_COLUMN_PREFIX)
    ]


def validate_columns(df_columns: list[str], required: frozenset[str], stage_name: str) -> None:
    """Validate that DataFrame has required columns.

    Args:
        df_columns: List of column names from DataFrame.
        required: Set of required column names.
        stage_name: Name of the batch step for error messages.

    Raises:
        ValueError: If required columns are missing.
    """
    missing = required - set(df_columns)
    if missing:
        raise ValueError(f"{stage_name}: Missing required columns: {sorted(missing)}")
