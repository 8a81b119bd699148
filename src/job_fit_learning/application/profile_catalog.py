"""Loading and strict validation for the category/profile catalogue."""

from __future__ import annotations

from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..domain.profiles import Category, Profile, ProfileCatalog
from ..domain.weights import SUM_TOLERANCE, TARGET_TOTAL
from ..exceptions import ProfileCatalogFileNotFoundError, ProfileCatalogValidationError
from ..observability import get_logger
from ..protocols import FileSystem

_SCHEMA_VERSION = 1

BUNDLED_PROFILE_CATALOG_PATH = (
    Path(__file__).resolve().parent.parent / "reference" / "profiles.json"
)


def _validate_weight(value: float) -> float:
    if value < 0.0 or value > 100.0:
        raise ValueError
    return value


class _CategoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str
    name: str
    base_weight: float
    required_keywords: tuple[str, ...]
    preferred_keywords: tuple[str, ...]
    description: str = ""

    @field_validator("key", "name")
    @classmethod
    def _validate_non_empty(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("base_weight")
    @classmethod
    def _validate_base_weight(cls, value: float) -> float:
        return _validate_weight(value)

    @field_validator("required_keywords", "preferred_keywords")
    @classmethod
    def _validate_keywords(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if any(not keyword.strip() for keyword in value):
            raise ValueError
        return tuple(keyword.strip() for keyword in value)


class _ProfileModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    technical_key: str
    description: str = ""
    weights: dict[str, float]

    @field_validator("name", "technical_key")
    @classmethod
    def _validate_non_empty(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError
        return text

    @field_validator("weights")
    @classmethod
    def _validate_weights(cls, value: dict[str, float]) -> dict[str, float]:
        if not value:
            raise ValueError
        return {key.strip(): _validate_weight(weight) for key, weight in value.items()}


class _ProfileCatalogModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int
    revision: int
    default_profile: str
    primary_category: str
    seniority_category: str
    remote_category: str
    categories: tuple[_CategoryModel, ...]
    profiles: tuple[_ProfileModel, ...]

    @field_validator("schema_version")
    @classmethod
    def _validate_schema_version(cls, value: int) -> int:
        if value != _SCHEMA_VERSION:
            raise ValueError
        return value

    @model_validator(mode="after")
    def _validate_references(self) -> _ProfileCatalogModel:
        if not self.categories:
            raise ValueError("catalogue must define at least one category")
        keys = [category.key for category in self.categories]
        if len(set(keys)) != len(keys):
            raise ValueError("category keys must be unique")
        known = set(keys)
        for target in (self.primary_category, self.seniority_category, self.remote_category):
            if target not in known:
                raise ValueError(f"unknown category '{target}'")

        names = [profile.name for profile in self.profiles]
        if len(set(names)) != len(names):
            raise ValueError("profile names must be unique")
        if self.profiles and self.default_profile not in set(names):
            raise ValueError(f"default profile '{self.default_profile}' is not defined")
        for profile in self.profiles:
            unknown = sorted(set(profile.weights) - known)
            if unknown:
                raise ValueError(
                    f"profile '{profile.name}' references unknown categories: {', '.join(unknown)}"
                )
            if profile.technical_key not in known:
                raise ValueError(
                    f"profile '{profile.name}' has unknown technical_key '{profile.technical_key}'"
                )
        return self


def _format_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    message = str(first.get("msg", "invalid value"))
    return f"{location}: {message}"


def _warn_on_weight_drift(model: _ProfileCatalogModel, path: Path) -> None:
    logger = get_logger("job_fit_learning.profile_catalog")
    default_total = sum(category.base_weight for category in model.categories)
    if abs(default_total - TARGET_TOTAL) > SUM_TOLERANCE:
        logger.warning(
            "Default weights in %s sum to %.2f, expected 100", path, default_total
        )
    for profile in model.profiles:
        total = sum(profile.weights.values())
        if abs(total - TARGET_TOTAL) > SUM_TOLERANCE:
            logger.warning(
                "Profile %s weights in %s sum to %.2f, expected 100", profile.name, path, total
            )


def load_profile_catalog(*, path: Path, fs: FileSystem) -> ProfileCatalog:
    """Load and validate a profile catalogue from JSON.

    Weight sums that drift from 100 are logged but not rejected.
    """
    if not fs.exists(path):
        raise ProfileCatalogFileNotFoundError(str(path))

    payload = fs.read_text(path)
    try:
        model = _ProfileCatalogModel.model_validate_json(payload)
    except ValidationError as exc:
        raise ProfileCatalogValidationError(str(path), _format_validation_error(exc)) from exc

    _warn_on_weight_drift(model, path)

    return ProfileCatalog(
        schema_version=model.schema_version,
        revision=model.revision,
        default_profile=model.default_profile,
        primary_category=model.primary_category,
        seniority_category=model.seniority_category,
        remote_category=model.remote_category,
        categories=tuple(
            Category(
                key=category.key,
                name=category.name,
                base_weight=category.base_weight,
                required_keywords=category.required_keywords,
                preferred_keywords=category.preferred_keywords,
                description=category.description,
            )
            for category in model.categories
        ),
        profiles=tuple(
            Profile(
                name=profile.name,
                technical_key=profile.technical_key,
                description=profile.description,
                weights=MappingProxyType(dict(profile.weights)),
            )
            for profile in model.profiles
        ),
    )


def resolve_profile_catalog_path(configured: str) -> Path:
    """Return the configured catalogue path, or the bundled catalogue when unset."""
    text = configured.strip()
    return Path(text) if text else BUNDLED_PROFILE_CATALOG_PATH
