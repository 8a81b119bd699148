"""Tests for the JSON-file learning repository."""

from datetime import UTC, datetime
from pathlib import Path

import pytest

from job_fit_learning.domain.filters import ProhibitedKeyword
from job_fit_learning.domain.rejections import RejectionPattern
from job_fit_learning.domain.weights import WeightAdjustment
from job_fit_learning.exceptions import LearningStoreValidationError
from job_fit_learning.infrastructure import JsonFileLearningRepository, LocalFileSystem
from tests.fakes import FakeClock, InMemoryFileSystem

STORE = Path("data/learning/store.json")


def _adjustment(profile: str | None, category: str = "seniority") -> WeightAdjustment:
    return WeightAdjustment(
        category=category,
        search_profile=profile,
        old_weight=10.0,
        new_weight=13.0,
        reason="Too junior - prioritizing more senior jobs",
        rejection_id="rej-1",
        created_at=datetime(2026, 1, 15, 9, 30, tzinfo=UTC),
    )


def _repository(
    fs: InMemoryFileSystem, clock: FakeClock | None = None
) -> JsonFileLearningRepository:
    return JsonFileLearningRepository(path=STORE, fs=fs, clock=clock or FakeClock())


class TestJsonFileLearningRepository:
    """Tests for JsonFileLearningRepository."""

    def test_missing_store_starts_empty(self) -> None:
        repository = _repository(InMemoryFileSystem())

        assert repository.get_weight_adjustments() == []
        assert repository.get_rejection_patterns() == []
        assert repository.get_prohibited_keywords() == []

    def test_state_survives_reload(self) -> None:
        fs = InMemoryFileSystem()
        repository = _repository(fs)
        repository.append_weight_adjustment(_adjustment("core"))
        repository.upsert_rejection_pattern("tech_stack", "kafka", 0.8, "event-driven")
        repository.add_prohibited_keyword(
            ProhibitedKeyword("crypto", "word", reason="No thanks", created_at=FakeClock().now())
        )

        reloaded = _repository(fs)

        assert reloaded.get_weight_adjustments() == [_adjustment("core")]
        (pattern,) = reloaded.get_rejection_patterns()
        assert pattern.key == ("tech_stack", "kafka")
        assert pattern.profile_category == "event-driven"
        assert pattern.last_seen == FakeClock().now()
        assert reloaded.get_prohibited_keywords()[0].reason == "No thanks"

    def test_store_uses_type_key_for_patterns(self) -> None:
        fs = InMemoryFileSystem()
        _repository(fs).upsert_rejection_pattern("company", "Acme", 0.6)

        payload = fs.read_json(STORE)

        assert payload["schema_version"] == 1
        assert payload["rejection_patterns"] == [
            {
                "type": "company",
                "value": "Acme",
                "confidence": 0.6,
                "count": 1,
                "profile_category": None,
                "last_seen": "2026-01-15T09:30:00+00:00",
            }
        ]

    def test_invalid_store_raises(self) -> None:
        fs = InMemoryFileSystem()
        fs.write_text('{"schema_version": 1, "rejection_patterns": [{"type": "vibes"}]}', STORE)

        with pytest.raises(LearningStoreValidationError) as exc_info:
            _repository(fs).get_rejection_patterns()

        assert "rejection_patterns.0" in str(exc_info.value)

    def test_upsert_increments_count_and_keeps_highest_confidence(self) -> None:
        clock = FakeClock()
        repository = _repository(InMemoryFileSystem(), clock)
        repository.upsert_rejection_pattern("company", "Acme", 0.9)
        clock.advance(60)

        pattern = repository.upsert_rejection_pattern("company", "Acme", 0.6)

        assert pattern.count == 2
        assert pattern.confidence == 0.9
        assert pattern.last_seen == clock.now()

    def test_patterns_order_by_count_then_recency(self) -> None:
        clock = FakeClock()
        repository = _repository(InMemoryFileSystem(), clock)
        repository.upsert_rejection_pattern("company", "Older", 0.6)
        clock.advance(60)
        repository.upsert_rejection_pattern("company", "Newer", 0.6)
        repository.set_rejection_pattern(RejectionPattern("keyword", "crypto", 1.0, count=3))

        ordered = [pattern.value for pattern in repository.get_rejection_patterns()]

        assert ordered == ["crypto", "Newer", "Older"]
        assert [p.value for p in repository.get_rejection_patterns("company")] == [
            "Newer",
            "Older",
        ]

    def test_delete_adjustments_for_one_profile(self) -> None:
        repository = _repository(InMemoryFileSystem())
        repository.append_weight_adjustment(_adjustment("core"))
        repository.append_weight_adjustment(_adjustment("security"))
        repository.append_weight_adjustment(_adjustment(None))

        assert repository.delete_weight_adjustments("security") == 1
        assert len(repository.get_weight_adjustments()) == 2
        assert repository.get_weight_adjustments("core") == [_adjustment("core")]
        assert repository.delete_weight_adjustments() == 2

    def test_no_write_when_nothing_removed(self) -> None:
        fs = InMemoryFileSystem()
        repository = _repository(fs)

        assert repository.delete_weight_adjustments() == 0
        assert repository.delete_all_rejection_patterns() == 0
        assert repository.remove_prohibited_keyword("crypto") is False
        assert fs.json_writes == 0

    def test_remove_prohibited_keyword_is_case_insensitive(self) -> None:
        repository = _repository(InMemoryFileSystem())
        repository.add_prohibited_keyword(ProhibitedKeyword("crypto", "word"))

        assert repository.remove_prohibited_keyword(" CRYPTO ") is True
        assert repository.get_prohibited_keywords() == []

    def test_local_store_roundtrip(self, tmp_path: Path) -> None:
        path = tmp_path / "store.json"
        repository = JsonFileLearningRepository(path=path, fs=LocalFileSystem(), clock=FakeClock())
        repository.append_weight_adjustment(_adjustment("core"))

        reloaded = JsonFileLearningRepository(path=path, fs=LocalFileSystem(), clock=FakeClock())

        assert reloaded.get_weight_adjustments("core") == [_adjustment("core")]
