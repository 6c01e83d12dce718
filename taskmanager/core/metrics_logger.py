"""
Metrics logging utility for tracking user activities without capturing sensitive data.

This module provides a centralized way to log user activity metrics that:
- Use the [METRIC] prefix for easy filtering
- Include the user identifier for tracking
- Only log metadata (counts, outcomes)
- NEVER log sensitive data like task titles, passwords or tokens

Usage:
    from taskmanager.core.metrics_logger import log_metric

    log_metric("task_add", user_email, outcome="success")
    log_metric("task_list", user_email, outcome="success", count=12)
    log_metric("sign_in", user_email, outcome="error")
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


def log_metric(
    event_type: str,
    user_email: Optional[str] = None,
    **kwargs: Any
) -> None:
    """
    Log a metric event for user activity tracking.

    This function respects the FEATURE_METRICS_LOGGING_ENABLED setting.
    When disabled, no metrics are logged.

    Args:
        event_type: Type of event (e.g., "task_add", "task_delete", "sign_out")
        user_email: User's email address (will be sanitized)
        **kwargs: Additional metadata to log (only non-sensitive data)
    """
    # Import here to avoid circular dependencies
    from taskmanager.core.log_sanitizer import sanitize_for_logging
    from taskmanager.modules.config import config_manager

    if not config_manager.app_settings.feature_metrics_logging_enabled:
        return

    sanitized_user = sanitize_for_logging(user_email) if user_email else "unknown"

    parts = [f"[METRIC] [{sanitized_user}] {event_type}"]

    if kwargs:
        metadata_parts = [
            f"{key}={sanitize_for_logging(value)}"
            for key, value in kwargs.items()
        ]
        parts.append(" ".join(metadata_parts))

    logger.info(" ".join(parts))
