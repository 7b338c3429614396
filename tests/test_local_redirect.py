"""Unit tests for the local redirect listener."""

import sys
import os
from unittest.mock import Mock

from fastapi.testclient import TestClient

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../src"))

from ide_login.auth.local_redirect import CALLBACK_PATH, LocalRedirectReceiver


class TestLocalRedirectReceiver:
    """Tests for the redirect route and code hand-off."""

    def setup_method(self):
        self.receiver = LocalRedirectReceiver("localhost", 8765)
        self.client = TestClient(self.receiver.app)

    def test_redirect_uri(self):
        assert self.receiver.redirect_uri == "http://localhost:8765/oauth2callback"

    def test_free_port_is_chosen(self):
        receiver = LocalRedirectReceiver("localhost", 0)

        assert receiver.port > 0
        assert receiver.redirect_uri.endswith(f":{receiver.port}{CALLBACK_PATH}")

    def test_code_received(self):
        response = self.client.get(CALLBACK_PATH, params={"code": "abc", "scope": "x"})

        assert response.status_code == 200
        assert "Sign-in Successful" in response.text
        assert self.receiver.wait_for_code(0) == "abc"
        assert self.receiver.error is None

    def test_error_received(self):
        response = self.client.get(CALLBACK_PATH, params={"error": "access_denied"})

        assert response.status_code == 400
        assert "access_denied" in response.text
        assert self.receiver.wait_for_code(0) is None
        assert self.receiver.error == "access_denied"

    def test_request_without_code_keeps_waiting(self):
        response = self.client.get(CALLBACK_PATH)

        assert response.status_code == 400
        assert self.receiver.wait_for_code(0) is None

        self.client.get(CALLBACK_PATH, params={"code": "late"})
        assert self.receiver.wait_for_code(0) == "late"

    def test_error_is_escaped(self):
        response = self.client.get(CALLBACK_PATH, params={"error": "<script>"})

        assert "<script>" not in response.text

    def test_stop_when_not_running(self):
        with self.receiver:
            pass

        assert not self.receiver.is_running

    def test_stop_signals_server_that_never_came_up(self):
        server = Mock(should_exit=False)
        thread = Mock()
        thread.is_alive.return_value = True
        self.receiver.server = server
        self.receiver.server_thread = thread

        self.receiver.stop()

        assert server.should_exit is True
        thread.join.assert_called_once_with(timeout=3.0)
        assert not self.receiver.is_running
