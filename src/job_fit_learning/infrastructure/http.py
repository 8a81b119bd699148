"""HTTP session implementations for infrastructure.

Usage example:
    from job_fit_learning.infrastructure.http import RequestsSession

    session = RequestsSession()
    tags = session.get_json("http://localhost:11434/api/tags", timeout_seconds=5.0)
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import override

import requests

from ..protocols import HttpSession
from .io.validation import IncomingDataError, validate_as


def _response_details(response: requests.Response) -> str:
    """Return a compact status/body summary for error reporting."""
    body = " ".join(response.text.split())
    if len(body) > 300:
        body = body[:300] + "..."
    return f"status={response.status_code}, body={body}"


def _json_object(response: requests.Response) -> dict[str, object]:
    try:
        return validate_as(dict[str, object], response.json())
    except (ValueError, IncomingDataError) as exc:
        raise requests.HTTPError(
            f"Expected a JSON object ({_response_details(response)})", response=response
        ) from exc


class RequestsSession(HttpSession):
    """Requests-backed session for JSON APIs."""

    def __init__(self, *, session: requests.Session | None = None) -> None:
        self._session = session or requests.Session()

    @override
    def get_json(self, url: str, *, timeout_seconds: float) -> dict[str, object]:
        response = self._session.get(url, timeout=timeout_seconds)
        response.raise_for_status()
        return _json_object(response)

    @override
    def post_json(
        self,
        url: str,
        payload: Mapping[str, object],
        *,
        timeout_seconds: float,
    ) -> dict[str, object]:
        response = self._session.post(url, json=dict(payload), timeout=timeout_seconds)
        response.raise_for_status()
        return _json_object(response)
