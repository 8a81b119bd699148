"""JSON-file learning repository.

The whole learning state lives in one JSON document:

    {
      "schema_version": 1,
      "weight_adjustments": [...],
      "rejection_patterns": [...],
      "prohibited_keywords": [...]
    }

The document is validated with pydantic when first read and rewritten after every
mutation.

Usage example:
    from pathlib import Path

    from job_fit_learning.infrastructure.clock import SystemClock
    from job_fit_learning.infrastructure.filesystem import LocalFileSystem
    from job_fit_learning.infrastructure.repository import JsonFileLearningRepository

    repository = JsonFileLearningRepository(
        path=Path("data/learning/store.json"), fs=LocalFileSystem(), clock=SystemClock()
    )
    repository.upsert_rejection_pattern("company", "Acme", 0.8)
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Literal, override

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.filters import ProhibitedKeyword
from ..domain.rejections import PatternType, RejectionPattern
from ..domain.weights import WeightAdjustment
from ..exceptions import LearningStoreValidationError
from ..protocols import Clock, FileSystem, LearningRepository

_SCHEMA_VERSION = 1
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class _WeightAdjustmentModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    category: str
    search_profile: str | None = None
    old_weight: float
    new_weight: float
    reason: str
    rejection_id: str | None = None
    created_at: datetime


class _RejectionPatternModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: PatternType
    value: str
    confidence: float = Field(ge=0.0, le=1.0)
    count: int = Field(ge=1)
    profile_category: str | None = None
    last_seen: datetime | None = None


class _ProhibitedKeywordModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    keyword: str
    match_mode: Literal["word", "substring", "sentence"]
    reason: str | None = None
    created_at: datetime | None = None

    @field_validator("keyword")
    @classmethod
    def _validate_keyword(cls, value: str) -> str:
        text = value.strip().lower()
        if not text:
            raise ValueError
        return text


class _StoreModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    weight_adjustments: list[_WeightAdjustmentModel] = Field(default_factory=list)
    rejection_patterns: list[_RejectionPatternModel] = Field(default_factory=list)
    prohibited_keywords: list[_ProhibitedKeywordModel] = Field(default_factory=list)

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


def _isoformat(value: datetime | None) -> str | None:
    return None if value is None else value.isoformat()


def _recency(pattern: RejectionPattern) -> datetime:
    if pattern.last_seen is None:
        return _EPOCH
    if pattern.last_seen.tzinfo is None:
        return pattern.last_seen.replace(tzinfo=UTC)
    return pattern.last_seen


class JsonFileLearningRepository(LearningRepository):
    """Learning repository persisted as a single JSON document via ``FileSystem``."""

    def __init__(self, *, path: Path, fs: FileSystem, clock: Clock) -> None:
        self.path = path
        self.fs = fs
        self.clock = clock
        self._loaded = False
        self._adjustments: list[WeightAdjustment] = []
        self._patterns: dict[tuple[str, str], RejectionPattern] = {}
        self._keywords: dict[str, ProhibitedKeyword] = {}

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        self._loaded = True
        if not self.fs.exists(self.path):
            return
        try:
            model = _StoreModel.model_validate_json(self.fs.read_text(self.path))
        except ValidationError as exc:
            raise LearningStoreValidationError(
                str(self.path), _format_validation_error(exc)
            ) from exc

        self._adjustments = [
            WeightAdjustment(
                category=item.category,
                search_profile=item.search_profile,
                old_weight=item.old_weight,
                new_weight=item.new_weight,
                reason=item.reason,
                rejection_id=item.rejection_id,
                created_at=item.created_at,
            )
            for item in model.weight_adjustments
        ]
        self._patterns = {
            (item.type, item.value): RejectionPattern(
                pattern_type=item.type,
                value=item.value,
                confidence=item.confidence,
                count=item.count,
                profile_category=item.profile_category,
                last_seen=item.last_seen,
            )
            for item in model.rejection_patterns
        }
        self._keywords = {
            item.keyword: ProhibitedKeyword(
                keyword=item.keyword,
                match_mode=item.match_mode,
                reason=item.reason,
                created_at=item.created_at,
            )
            for item in model.prohibited_keywords
        }

    def _save(self) -> None:
        self.fs.write_json(
            {
                "schema_version": _SCHEMA_VERSION,
                "weight_adjustments": [
                    {
                        "category": record.category,
                        "search_profile": record.search_profile,
                        "old_weight": record.old_weight,
                        "new_weight": record.new_weight,
                        "reason": record.reason,
                        "rejection_id": record.rejection_id,
                        "created_at": record.created_at.isoformat(),
                    }
                    for record in self._adjustments
                ],
                "rejection_patterns": [
                    {
                        "type": pattern.pattern_type,
                        "value": pattern.value,
                        "confidence": pattern.confidence,
                        "count": pattern.count,
                        "profile_category": pattern.profile_category,
                        "last_seen": _isoformat(pattern.last_seen),
                    }
                    for pattern in self._patterns.values()
                ],
                "prohibited_keywords": [
                    {
                        "keyword": entry.keyword,
                        "match_mode": entry.match_mode,
                        "reason": entry.reason,
                        "created_at": _isoformat(entry.created_at),
                    }
                    for entry in self._keywords.values()
                ],
            },
            self.path,
        )

    @override
    def get_weight_adjustments(self, profile: str | None = None) -> list[WeightAdjustment]:
        self._ensure_loaded()
        if profile is None:
            return list(self._adjustments)
        return [record for record in self._adjustments if record.search_profile == profile]

    @override
    def append_weight_adjustment(self, record: WeightAdjustment) -> None:
        self._ensure_loaded()
        self._adjustments.append(record)
        self._save()

    @override
    def delete_weight_adjustments(self, profile: str | None = None) -> int:
        self._ensure_loaded()
        before = len(self._adjustments)
        if profile is None:
            self._adjustments = []
        else:
            self._adjustments = [
                record for record in self._adjustments if record.search_profile != profile
            ]
        removed = before - len(self._adjustments)
        if removed:
            self._save()
        return removed

    @override
    def get_rejection_patterns(
        self, pattern_type: PatternType | None = None
    ) -> list[RejectionPattern]:
        self._ensure_loaded()
        patterns = [
            pattern
            for pattern in self._patterns.values()
            if pattern_type is None or pattern.pattern_type == pattern_type
        ]
        return sorted(patterns, key=lambda p: (p.count, _recency(p)), reverse=True)

    @override
    def upsert_rejection_pattern(
        self,
        pattern_type: PatternType,
        value: str,
        confidence: float,
        profile_category: str | None = None,
    ) -> RejectionPattern:
        self._ensure_loaded()
        key = (pattern_type, value)
        now = self.clock.now()
        existing = self._patterns.get(key)
        if existing is None:
            pattern = RejectionPattern(
                pattern_type=pattern_type,
                value=value,
                confidence=confidence,
                count=1,
                profile_category=profile_category,
                last_seen=now,
            )
        else:
            pattern = RejectionPattern(
                pattern_type=pattern_type,
                value=value,
                confidence=max(existing.confidence, confidence),
                count=existing.count + 1,
                profile_category=profile_category or existing.profile_category,
                last_seen=now,
            )
        self._patterns[key] = pattern
        self._save()
        return pattern

    @override
    def set_rejection_pattern(self, pattern: RejectionPattern) -> None:
        self._ensure_loaded()
        self._patterns[pattern.key] = pattern
        self._save()

    @override
    def delete_all_rejection_patterns(self) -> int:
        self._ensure_loaded()
        removed = len(self._patterns)
        self._patterns = {}
        if removed:
            self._save()
        return removed

    @override
    def get_prohibited_keywords(self) -> list[ProhibitedKeyword]:
        self._ensure_loaded()
        return list(self._keywords.values())

    @override
    def add_prohibited_keyword(self, entry: ProhibitedKeyword) -> None:
        self._ensure_loaded()
        self._keywords[entry.keyword] = entry
        self._save()

    @override
    def remove_prohibited_keyword(self, keyword: str) -> bool:
        self._ensure_loaded()
        removed = self._keywords.pop(keyword.strip().lower(), None)
        if removed is None:
            return False
        self._save()
        return True
