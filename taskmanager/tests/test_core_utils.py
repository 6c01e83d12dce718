"""Tests for logging helpers and metrics logging."""

import logging
from unittest.mock import MagicMock, patch

from taskmanager.core.log_sanitizer import redact_url, sanitize_for_logging
from taskmanager.core.metrics_logger import log_metric


class TestSanitizeForLogging:
    def test_strips_newlines_and_control_characters(self):
        assert sanitize_for_logging("Hello\nWorld\r\n") == "HelloWorld"
        assert sanitize_for_logging("Test\x1b[31mRed") == "Test[31mRed"
        assert sanitize_for_logging("a b c") == "abc"

    def test_non_strings(self):
        assert sanitize_for_logging(None) == ""
        assert sanitize_for_logging(123) == "123"


class TestRedactUrl:
    def test_masks_apikey_and_token(self):
        url = "wss://x.supabase.co/realtime/v1/websocket?apikey=secret&access_token=tok&vsn=1.0.0"

        redacted = redact_url(url)

        assert "secret" not in redacted
        assert "tok" not in redacted
        assert "apikey=***" in redacted
        assert "vsn=1.0.0" in redacted


def _patch_config(enabled: bool):
    mock_cm = MagicMock()
    mock_cm.app_settings.feature_metrics_logging_enabled = enabled
    return patch("taskmanager.modules.config.config_manager", mock_cm)


class TestLogMetric:
    def test_logs_when_enabled(self, caplog):
        with _patch_config(True):
            with caplog.at_level(logging.INFO, logger="taskmanager.core.metrics_logger"):
                log_metric("task_add", "user@example.com", outcome="success")
        assert "[METRIC] [user@example.com] task_add outcome=success" in caplog.text

    def test_suppressed_when_disabled(self, caplog):
        with _patch_config(False):
            with caplog.at_level(logging.INFO, logger="taskmanager.core.metrics_logger"):
                log_metric("task_add", "user@example.com", outcome="success")
        assert "[METRIC]" not in caplog.text

    def test_none_user_email_logs_unknown(self, caplog):
        with _patch_config(True):
            with caplog.at_level(logging.INFO, logger="taskmanager.core.metrics_logger"):
                log_metric("task_list", None, count=0)
        assert "[unknown]" in caplog.text
        assert "count=0" in caplog.text
