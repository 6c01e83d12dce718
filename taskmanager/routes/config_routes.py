"""Configuration API routes."""

import logging
from typing import Any, Dict

from fastapi import APIRouter

from taskmanager.modules.config import config_manager
from taskmanager.version import VERSION

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["config"])


@router.get("/config")
async def get_config() -> Dict[str, Any]:
    """Public settings the browser client needs before it connects.

    Never includes backend credentials; the client only talks to this server.
    """
    app_settings = config_manager.app_settings
    return {
        "app_name": app_settings.app_name,
        "version": VERSION,
        "toast_position": app_settings.toast_position,
        "toast_success_duration_ms": app_settings.toast_success_duration_ms,
        "toast_error_duration_ms": app_settings.toast_error_duration_ms,
        "mock_backend": app_settings.use_mock_backend,
    }
