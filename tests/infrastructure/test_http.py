"""Tests for HTTP infrastructure components."""

from unittest.mock import MagicMock

import pytest
import requests

from job_fit_learning.infrastructure import RequestsSession


def _mock_session(payload: object = None, *, status_code: int = 200) -> MagicMock:
    mock_session = MagicMock(spec=requests.Session)
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.json.return_value = payload
    mock_response.text = repr(payload)
    mock_session.get.return_value = mock_response
    mock_session.post.return_value = mock_response
    return mock_session


class TestRequestsSession:
    """Tests for RequestsSession JSON helpers."""

    def test_get_json_passes_timeout(self) -> None:
        mock_session = _mock_session({"models": []})
        session = RequestsSession(session=mock_session)

        assert session.get_json("http://ollama/api/tags", timeout_seconds=5.0) == {"models": []}
        mock_session.get.assert_called_once_with("http://ollama/api/tags", timeout=5.0)

    def test_post_json_sends_json_body(self) -> None:
        mock_session = _mock_session({"response": "{}"})
        session = RequestsSession(session=mock_session)

        result = session.post_json(
            "http://ollama/api/generate", {"model": "llama3.1"}, timeout_seconds=30.0
        )

        assert result == {"response": "{}"}
        mock_session.post.assert_called_once_with(
            "http://ollama/api/generate", json={"model": "llama3.1"}, timeout=30.0
        )

    def test_http_errors_propagate(self) -> None:
        mock_session = _mock_session({}, status_code=500)
        mock_session.get.return_value.raise_for_status.side_effect = requests.HTTPError("500")
        session = RequestsSession(session=mock_session)

        with pytest.raises(requests.HTTPError):
            session.get_json("http://ollama/api/tags", timeout_seconds=5.0)

    def test_non_object_payload_raises_http_error(self) -> None:
        mock_session = _mock_session([1, 2])
        session = RequestsSession(session=mock_session)

        with pytest.raises(requests.HTTPError, match="Expected a JSON object"):
            session.get_json("http://ollama/api/tags", timeout_seconds=5.0)

    def test_undecodable_body_raises_http_error(self) -> None:
        mock_session = _mock_session()
        mock_session.get.return_value.json.side_effect = ValueError("Expecting value")
        mock_session.get.return_value.text = "<html>gateway timeout</html>"
        session = RequestsSession(session=mock_session)

        with pytest.raises(requests.HTTPError, match="gateway timeout"):
            session.get_json("http://ollama/api/tags", timeout_seconds=5.0)
