"""Tests for filesystem infrastructure components."""

from pathlib import Path

import pandas as pd
import pytest

from job_fit_learning.infrastructure import LocalFileSystem


class TestLocalFileSystemJson:
    """Tests for LocalFileSystem JSON helpers."""

    def test_write_json_creates_parents_and_roundtrips(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "learning" / "store.json"

        fs.write_json({"schema_version": 1, "name": "café"}, path)

        assert fs.read_json(path) == {"schema_version": 1, "name": "café"}
        assert not path.with_suffix(".json.tmp").exists()

    def test_read_json_rejects_non_object(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "list.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(RuntimeError, match="must contain an object"):
            fs.read_json(path)


class TestLocalFileSystemCsv:
    """Tests for LocalFileSystem CSV helpers."""

    def test_read_csv_keeps_values_as_text(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "out" / "postings.csv"
        fs.write_csv(pd.DataFrame({"id": ["007"], "score_seniority": [None]}), path)

        df = fs.read_csv(path)

        assert df["id"].tolist() == ["007"]
        assert df["score_seniority"].tolist() == [""]


class TestLocalFileSystemText:
    """Tests for LocalFileSystem text helpers."""

    def test_write_text_and_exists(self, tmp_path: Path) -> None:
        fs = LocalFileSystem()
        path = tmp_path / "nested" / "job.json"

        assert fs.exists(path) is False
        fs.write_text('{"title": "Engineer"}', path)

        assert fs.exists(path) is True
        assert fs.read_text(path) == '{"title": "Engineer"}'
