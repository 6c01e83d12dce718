"""Tests for the /ws UI channel."""

import uuid
from unittest.mock import patch

from fastapi.testclient import TestClient

from taskmanager.domain.errors import ConfigurationError
from taskmanager.main import app


def _email():
    return f"user-{uuid.uuid4().hex[:8]}@example.com"


def _receive_until(websocket, predicate, limit=20):
    for _ in range(limit):
        message = websocket.receive_json()
        if predicate(message):
            return message
    raise AssertionError("expected message not received")


def _tasks_ready(message):
    return message["type"] == "view" and message["view"] == "tasks" and message["loading"] is False


def test_new_tab_starts_on_sign_in():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        message = websocket.receive_json()
        assert message == {"type": "view", "view": "sign_in", "app_name": "Task Manager"}


def test_sign_up_add_and_sign_out_flow():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "sign_up", "email": _email(), "password": "secret1"})
        view = _receive_until(websocket, _tasks_ready)
        assert view["tasks"] == []

        websocket.send_json({"type": "add_task", "title": "Buy milk"})
        toast = _receive_until(websocket, lambda m: m["type"] == "toast")
        assert toast["message"] == "Task added successfully!"
        assert toast["level"] == "success"
        assert toast["position"] == "top-right"

        view = _receive_until(websocket, lambda m: _tasks_ready(m) and m["tasks"])
        assert view["tasks"][0]["title"] == "Buy milk"
        assert view["tasks"][0]["is_complete"] is False

        websocket.send_json({"type": "sign_out"})
        view = _receive_until(websocket, lambda m: m["type"] == "view" and m["view"] == "sign_in")
        assert view["app_name"] == "Task Manager"


def test_bad_credentials_toast():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "sign_in", "email": _email(), "password": "whatever"})
        toast = websocket.receive_json()
        assert toast["type"] == "toast"
        assert toast["level"] == "error"
        assert toast["message"] == "Invalid login credentials"


def test_unknown_message_type_returns_error():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "bogus"})
        message = websocket.receive_json()
        assert message["type"] == "error"
        assert message["error_type"] == "validation"
        assert "Unknown message type" in message["message"]


def test_invalid_json_is_rejected_without_closing():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_text("not json")
        assert websocket.receive_json()["error_type"] == "validation"
        websocket.send_json([1, 2, 3])
        assert websocket.receive_json()["error_type"] == "validation"
        websocket.send_json({"type": "bogus"})
        assert websocket.receive_json()["type"] == "error"


def test_binary_frame_is_rejected_without_closing():
    client = TestClient(app)
    with client.websocket_connect("/ws") as websocket:
        websocket.receive_json()
        websocket.send_bytes(b'{"type": "refresh"}')
        error = websocket.receive_json()
        assert error["error_type"] == "validation"
        assert error["message"] == "Messages must be JSON objects"
        websocket.send_json({"type": "bogus"})
        assert websocket.receive_json()["type"] == "error"


def test_missing_backend_configuration_is_reported():
    with patch("taskmanager.main.app_factory") as mock_factory:
        mock_factory.create_shell.side_effect = ConfigurationError(
            "Supabase is not configured.", code="SUPABASE_NOT_CONFIGURED"
        )
        client = TestClient(app)
        with client.websocket_connect("/ws") as websocket:
            message = websocket.receive_json()
            assert message == {
                "type": "error",
                "message": "Supabase is not configured.",
                "error_type": "configuration",
            }
