"""Loading and validation for versioned rule tables under ``reference/``.

Three JSON documents drive rejection analysis and filtering:
- ``rejection_rules.json``: ordered phrase rules with pattern type and confidence
- ``tech_keywords.json``: technology terms and the category each belongs to
- ``filter_rules.json``: non-target role families, contract keywords and the junior title regex
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..domain.filters import RoleFamily
from ..domain.rejections import PatternType, PhraseRule, TechKeyword
from ..exceptions import ReferenceTableFileNotFoundError, ReferenceTableValidationError
from ..protocols import FileSystem

_SCHEMA_VERSION = 1

BUNDLED_REFERENCE_DIR = Path(__file__).resolve().parent.parent / "reference"
REJECTION_RULES_FILE = "rejection_rules.json"
TECH_KEYWORDS_FILE = "tech_keywords.json"
FILTER_RULES_FILE = "filter_rules.json"


def _check_schema_version(value: int) -> int:
    if value != _SCHEMA_VERSION:
        raise ValueError
    return value


def _validate_regex(value: str) -> str:
    try:
        re.compile(value, re.IGNORECASE)
    except re.error as exc:
        raise ValueError(f"invalid regex {value!r}: {exc}") from exc
    return value


class _PhraseRuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: PatternType
    phrase: str
    confidence: float = Field(ge=0.0, le=1.0)
    match: Literal["substring", "word"] = "substring"

    @field_validator("phrase")
    @classmethod
    def _validate_phrase(cls, value: str) -> str:
        text = value.strip().lower()
        if not text:
            raise ValueError
        return text


class _RejectionRulesModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    revision: int
    rules: tuple[_PhraseRuleModel, ...]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        return _check_schema_version(value)


class _TechKeywordModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    term: str
    category: str | None = None

    @field_validator("term")
    @classmethod
    def _validate_term(cls, value: str) -> str:
        text = value.strip().lower()
        if not text:
            raise ValueError
        return text


class _TechKeywordsModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    revision: int
    confidence: float = Field(ge=0.0, le=1.0)
    keywords: tuple[_TechKeywordModel, ...]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        return _check_schema_version(value)


class _RoleFamilyModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    label: str
    patterns: tuple[str, ...]

    @field_validator("patterns")
    @classmethod
    def _validate_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError
        return tuple(_validate_regex(pattern) for pattern in value)


class _FilterRulesModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    revision: int
    role_families: tuple[_RoleFamilyModel, ...]
    contract_keywords: tuple[str, ...]
    junior_title_pattern: str

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        return _check_schema_version(value)

    @field_validator("contract_keywords")
    @classmethod
    def _validate_contract_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(keyword.strip().lower() for keyword in value if keyword.strip())
        if not cleaned:
            raise ValueError
        return cleaned

    @field_validator("junior_title_pattern")
    @classmethod
    def _validate_junior_pattern(cls, value: str) -> str:
        return _validate_regex(value)


@dataclass(frozen=True)
class ReferenceTables:
    """Rule data used by rejection analysis and the filter engine."""

    phrase_rules: tuple[PhraseRule, ...]
    tech_keywords: tuple[TechKeyword, ...]
    tech_confidence: float
    role_families: tuple[RoleFamily, ...]
    contract_keywords: tuple[str, ...]
    junior_title_pattern: re.Pattern[str]
    revisions: MappingProxyType[str, int]

    @property
    def tech_categories(self) -> dict[str, str | None]:
        return {keyword.term: keyword.category for keyword in self.tech_keywords}


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def _load_model[ModelT: BaseModel](model_type: type[ModelT], path: Path, fs: FileSystem) -> ModelT:
    if not fs.exists(path):
        raise ReferenceTableFileNotFoundError(str(path))
    try:
        return model_type.model_validate_json(fs.read_text(path))
    except ValidationError as exc:
        raise ReferenceTableValidationError(str(path), _format_validation_error(exc)) from exc


def load_reference_tables(
    *, fs: FileSystem, directory: Path = BUNDLED_REFERENCE_DIR
) -> ReferenceTables:
    """Load and validate all rule tables from ``directory``."""
    rules = _load_model(_RejectionRulesModel, directory / REJECTION_RULES_FILE, fs)
    tech = _load_model(_TechKeywordsModel, directory / TECH_KEYWORDS_FILE, fs)
    filters = _load_model(_FilterRulesModel, directory / FILTER_RULES_FILE, fs)

    return ReferenceTables(
        phrase_rules=tuple(
            PhraseRule(
                pattern_type=rule.type,
                phrase=rule.phrase,
                confidence=rule.confidence,
                word_boundary=rule.match == "word",
            )
            for rule in rules.rules
        ),
        tech_keywords=tuple(
            TechKeyword(term=keyword.term, category=keyword.category) for keyword in tech.keywords
        ),
        tech_confidence=tech.confidence,
        role_families=tuple(
            RoleFamily(
                label=family.label,
                patterns=tuple(re.compile(pattern, re.IGNORECASE) for pattern in family.patterns),
            )
            for family in filters.role_families
        ),
        contract_keywords=filters.contract_keywords,
        junior_title_pattern=re.compile(filters.junior_title_pattern, re.IGNORECASE),
        revisions=MappingProxyType(
            {
                REJECTION_RULES_FILE: rules.revision,
                TECH_KEYWORDS_FILE: tech.revision,
                FILTER_RULES_FILE: filters.revision,
            }
        ),
    )
