"""Tests for health, config and static routes plus security headers."""

from fastapi.testclient import TestClient

from taskmanager.core.security_headers_middleware import _inject_ws_origins
from taskmanager.main import app
from taskmanager.version import VERSION


def test_heartbeat():
    client = TestClient(app)
    resp = client.get("/api/heartbeat")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_health_endpoint():
    client = TestClient(app)
    resp = client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["service"] == "taskmanager"
    assert data["version"] == VERSION
    assert "timestamp" in data


def test_config_endpoint_exposes_no_credentials():
    client = TestClient(app)
    resp = client.get("/api/config")
    assert resp.status_code == 200
    data = resp.json()
    assert data["app_name"] == "Task Manager"
    assert data["toast_position"] == "top-right"
    assert data["toast_success_duration_ms"] == 2000
    assert data["toast_error_duration_ms"] == 4000
    assert "supabase_anon_key" not in data


def test_index_and_assets_are_served():
    client = TestClient(app)
    index = client.get("/")
    assert index.status_code == 200
    assert "Task Manager" in index.text
    assert "/static/app.js" in index.text

    script = client.get("/static/app.js")
    assert script.status_code == 200


def test_security_headers_present():
    client = TestClient(app)
    resp = client.get("/api/heartbeat")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert resp.headers["Referrer-Policy"] == "no-referrer"
    csp = resp.headers["Content-Security-Policy"]
    assert "script-src 'self'" in csp
    assert "ws://testserver" in csp
    assert "wss://testserver" in csp


def test_inject_ws_origins():
    assert _inject_ws_origins("default-src 'self'; connect-src 'self'", "ws://h") == (
        "default-src 'self'; connect-src 'self' ws://h"
    )
    assert _inject_ws_origins("default-src 'self'", "ws://h") == "default-src 'self'; connect-src ws://h"
