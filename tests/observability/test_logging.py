"""Tests for shared observability logging."""

import logging
import time

import pytest

from job_fit_learning.observability.logging import get_logger


def test_get_logger_formats_utc_timestamps(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    fixed = time.struct_time((2026, 1, 15, 9, 30, 5, 3, 15, 0))

    def fake_gmtime(_: float | None = None) -> time.struct_time:
        return fixed

    monkeypatch.setattr(time, "gmtime", fake_gmtime)

    name = "job_fit_learning.test.logging"
    logger = get_logger(name)
    logger.info("Applied %s adjustments", 2)

    captured = capsys.readouterr()
    assert (
        "2026-01-15T09:30:05+0000 INFO job_fit_learning.test.logging: Applied 2 adjustments"
        in captured.err
    )


def test_get_logger_is_singleton_per_name() -> None:
    name = "job_fit_learning.test.logging.singleton"
    logger = get_logger(name)
    logger_again = get_logger(name)

    assert logger is logger_again
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.propagate is False
