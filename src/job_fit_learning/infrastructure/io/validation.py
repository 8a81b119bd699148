"""Pydantic-based validation helpers for inbound IO payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from ...domain.jobs import JobPosting, coerce_category_scores
from ...exceptions import JobPayloadError


class IncomingDataError(ValueError):
    """Raised when inbound data fails validation."""


class _JobPayloadModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str | int | None = None
    title: str
    company: str
    description: str = ""
    category_scores: dict[str, object] = Field(default_factory=dict)
    profile: str | None = None


def validate_as[SchemaT](schema: type[SchemaT], payload: object) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_python(payload)
    except ValidationError as exc:
        message = f"Invalid payload for {schema}."
        raise IncomingDataError(message) from exc


def validate_json_as[SchemaT](schema: type[SchemaT], payload: str | bytes | bytearray) -> SchemaT:
    try:
        return TypeAdapter(schema).validate_json(payload)
    except ValidationError as exc:
        message = f"Invalid JSON payload for {schema}."
        raise IncomingDataError(message) from exc


def _first_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ("<root>",)))
    return f"{location}: {first.get('msg', 'invalid value')}"


def parse_job_payload(payload: object) -> JobPosting:
    """Validate a job posting mapping from JSON input.

    Raises:
        JobPayloadError: If required fields are missing or scores are invalid.
    """
    try:
        model = _JobPayloadModel.model_validate(payload)
    except ValidationError as exc:
        raise JobPayloadError(_first_error(exc)) from exc

    profile = (model.profile or "").strip() or None
    return JobPosting(
        id=None if model.id is None else str(model.id),
        title=model.title.strip(),
        company=model.company.strip(),
        description=model.description,
        category_scores=coerce_category_scores(model.category_scores),
        profile=profile,
    )


def parse_job_json(payload: str | bytes) -> JobPosting:
    """Parse a JSON document holding one job posting."""
    try:
        raw = validate_json_as(dict[str, object], payload)
    except IncomingDataError as exc:
        raise JobPayloadError("expected a JSON object") from exc
    return parse_job_payload(raw)

