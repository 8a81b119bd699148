"""Ollama-compatible rejection classifier client.

Usage example:
    from job_fit_learning.infrastructure.classifier import OllamaRejectionClassifier
    from job_fit_learning.infrastructure.clock import SystemClock
    from job_fit_learning.infrastructure.http import RequestsSession

    classifier = OllamaRejectionClassifier(
        session=RequestsSession(),
        base_url="http://localhost:11434",
        model="llama3.1",
        categories=("cloud-platform", "seniority"),
        clock=SystemClock(),
    )
    analysis = classifier.classify("Too junior for the team", job)
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable, Sequence
from typing import override

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..domain.jobs import JobPosting
from ..domain.rejections import (
    FILTER_KINDS,
    PATTERN_TYPES,
    FilterKind,
    FilterSuggestion,
    PatternType,
    RejectionAnalysis,
    RejectionPattern,
    WeightAdjustmentSuggestion,
)
from ..exceptions import ClassifierResponseError, ClassifierUnavailableError
from ..protocols import CircuitBreaker, Clock, HttpSession, RejectionClassifier, RetryPolicy
from .resilience import CircuitBreaker as CircuitBreakerImpl
from .resilience import RetryPolicy as RetryPolicyImpl

_PROMPT_TEMPLATE = """Analyze this job rejection reason and identify patterns to avoid similar jobs.

REJECTION REASON: "{reason}"
JOB: {title} at {company}
CATEGORY SCORES: {scores}

Pattern types: company, keyword, tech_stack, seniority, location, compensation.
Available categories: {categories}
Adjustment range: -{clamp:g} to +{clamp:g} percentage points.
"Too junior" or "not enough experience" increases seniority; "overqualified" decreases it.
A wrong tech stack decreases the weight of that technology's category.
Filter types: block_company, avoid_keyword, min_seniority.

Return only JSON in this shape:
{{"patterns": [{{"type": "seniority", "value": "too junior", "confidence": 0.9}}],
 "suggestedAdjustments": [{{"category": "seniority", "adjustment": 2, "reason": "..."}}],
 "filters": [{{"type": "avoid_keyword", "value": "junior"}}]}}"""


class _PatternModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    value: str
    confidence: float = 0.5


class _AdjustmentModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    category: str
    adjustment: float
    reason: str = ""


class _FilterModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    value: str


class _AnalysisModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    patterns: list[_PatternModel] = Field(default_factory=list)
    suggested_adjustments: list[_AdjustmentModel] = Field(
        default_factory=list, alias="suggestedAdjustments"
    )
    filters: list[_FilterModel] = Field(default_factory=list)


def build_prompt(
    reason_text: str, job: JobPosting, categories: Sequence[str], clamp: float
) -> str:
    scores = json.dumps(dict(job.category_scores)) if job.category_scores else "N/A"
    return _PROMPT_TEMPLATE.format(
        reason=reason_text,
        title=job.title,
        company=job.company,
        scores=scores,
        categories=", ".join(categories),
        clamp=clamp,
    )


def _known_pattern_type(value: str) -> PatternType | None:
    for pattern_type in PATTERN_TYPES:
        if pattern_type == value.strip().lower():
            return pattern_type
    return None


def _known_filter_kind(value: str) -> FilterKind | None:
    for kind in FILTER_KINDS:
        if kind == value.strip().lower():
            return kind
    return None


def _extract_json_object(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ClassifierResponseError("no JSON object in model output")
    return text[start : end + 1]


def parse_classifier_output(text: str) -> RejectionAnalysis:
    """Parse the model's JSON text into a ``RejectionAnalysis``.

    Patterns and filters with unrecognised types are dropped. Confidences are
    clamped into ``[0, 1]``.

    Raises:
        ClassifierResponseError: If no valid JSON object can be read.
    """
    try:
        model = _AnalysisModel.model_validate_json(_extract_json_object(text))
    except ValidationError as exc:
        raise ClassifierResponseError(str(exc.errors()[0].get("msg", "invalid payload"))) from exc

    patterns: list[RejectionPattern] = []
    for item in model.patterns:
        pattern_type = _known_pattern_type(item.type)
        if pattern_type is None or not item.value.strip():
            continue
        patterns.append(
            RejectionPattern(
                pattern_type=pattern_type,
                value=item.value.strip(),
                confidence=max(0.0, min(1.0, item.confidence)),
            )
        )
    adjustments = tuple(
        WeightAdjustmentSuggestion(
            category=item.category.strip(),
            adjustment=item.adjustment,
            reason=item.reason or "Suggested by rejection classifier",
        )
        for item in model.suggested_adjustments
        if item.category.strip()
    )
    filters: list[FilterSuggestion] = []
    for item in model.filters:
        kind = _known_filter_kind(item.type)
        if kind is not None and item.value.strip():
            filters.append(FilterSuggestion(kind=kind, value=item.value.strip()))
    return RejectionAnalysis(
        patterns=tuple(patterns), suggested_adjustments=adjustments, filters=tuple(filters)
    )


class OllamaRejectionClassifier(RejectionClassifier):
    """Rejection classifier backed by an Ollama-compatible ``/api/generate`` endpoint.

    Provides bounded failure behaviour:
    - The health probe (``/api/tags``) is cached for ``health_ttl_seconds``
    - Transport and parse failures retry with exponential backoff
    - Repeated failures open the circuit breaker and skip calls
    """

    def __init__(
        self,
        *,
        session: HttpSession,
        base_url: str,
        model: str,
        categories: Sequence[str],
        clock: Clock,
        timeout_seconds: float = 30.0,
        adjustment_clamp: float = 5.0,
        temperature: float = 0.1,
        health_ttl_seconds: float = 30.0,
        retry_policy: RetryPolicy | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.categories = tuple(categories)
        self.clock = clock
        self.timeout_seconds = timeout_seconds
        self.adjustment_clamp = adjustment_clamp
        self.temperature = temperature
        self.health_ttl_seconds = health_ttl_seconds
        self.retry_policy = retry_policy or RetryPolicyImpl()
        self.circuit_breaker = circuit_breaker or CircuitBreakerImpl()
        self._sleep = sleep
        self._health: tuple[float, bool] | None = None

    def is_available(self) -> bool:
        """Return whether the classifier answered its health probe recently."""
        now = self.clock.monotonic()
        if self._health is not None:
            checked_at, healthy = self._health
            if now - checked_at < self.health_ttl_seconds:
                return healthy
        try:
            self.session.get_json(f"{self.base_url}/api/tags", timeout_seconds=5.0)
            healthy = True
        except Exception:
            healthy = False
        self._health = (now, healthy)
        return healthy

    @override
    def classify(self, reason_text: str, job: JobPosting) -> RejectionAnalysis:
        """Classify a rejection.

        Raises:
            ClassifierUnavailableError: If the service is unhealthy or unreachable.
            ClassifierResponseError: If the model output cannot be parsed after retries.
            CircuitBreakerOpen: If recent failures opened the circuit.
        """
        if not self.is_available():
            raise ClassifierUnavailableError(self.base_url, "health check failed")

        prompt = build_prompt(reason_text, job, self.categories, self.adjustment_clamp)
        self.circuit_breaker.check()
        attempt = 0
        while True:
            try:
                analysis = parse_classifier_output(self._generate(prompt))
            except self.retry_policy.retry_exceptions as exc:
                if attempt < self.retry_policy.max_retries:
                    self._sleep(self.retry_policy.compute_backoff(attempt))
                    attempt += 1
                    continue
                self.circuit_breaker.record_failure()
                if isinstance(exc, ClassifierResponseError):
                    raise
                raise ClassifierUnavailableError(self.base_url, str(exc)) from exc
            except Exception:
                self.circuit_breaker.record_failure()
                raise
            self.circuit_breaker.record_success()
            return analysis

    def _generate(self, prompt: str) -> str:
        payload = self.session.post_json(
            f"{self.base_url}/api/generate",
            {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "options": {"temperature": self.temperature},
            },
            timeout_seconds=self.timeout_seconds,
        )
        text = payload.get("response")
        if not isinstance(text, str):
            raise ClassifierResponseError("missing 'response' text")
        return text
