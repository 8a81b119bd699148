"""Test that network access is properly blocked in tests."""

import socket

import pytest

from job_fit_learning.infrastructure import RequestsSession
from tests.support.errors import NetworkIsolationError


class TestNetworkBlocking:
    """Verify that the network blocking fixture works."""

    def test_socket_connect_is_blocked(self) -> None:
        """Attempting to connect a socket should raise NetworkIsolationError."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            with pytest.raises(NetworkIsolationError) as exc_info:
                sock.connect(("localhost", 11434))
            assert "Tests must not make network connections" in str(exc_info.value)
        finally:
            sock.close()

    def test_requests_session_cannot_reach_classifier(self) -> None:
        """The real HTTP adapter fails fast instead of calling a local model server."""
        session = RequestsSession()

        with pytest.raises(NetworkIsolationError) as exc_info:
            session.get_json("http://localhost:11434/api/tags", timeout_seconds=1)
        assert "Tests must not make network connections" in str(exc_info.value)
