"""
Centralized configuration management using Pydantic models.

This module provides a unified configuration system that:
- Uses pydantic-settings for type validation and environment variable loading
- Supports both .env files and direct environment variables
- Accepts the VITE_* names used by browser builds of the same project
- Provides proper error handling with logging tracebacks
"""

import logging
from typing import Dict, Literal, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class AppSettings(BaseSettings):
    """Main application settings loaded from environment variables."""

    # Application settings
    app_name: str = "Task Manager"
    port: int = 8000
    debug_mode: bool = False
    # Logging settings
    log_level: str = "INFO"  # Override default logging level (DEBUG, INFO, WARNING, ERROR)
    app_log_dir: Optional[str] = Field(default=None, validation_alias="APP_LOG_DIR")
    feature_metrics_logging_enabled: bool = Field(
        False,
        description="Enable metrics logging for task operations (counts and outcomes only)",
        validation_alias=AliasChoices("FEATURE_METRICS_LOGGING_ENABLED"),
    )

    # Hosted backend (Supabase project)
    supabase_url: str = Field(
        default="",
        description="Project URL, e.g. https://abcd.supabase.co",
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
    )
    supabase_anon_key: str = Field(
        default="",
        description="Public anon API key; row access is enforced by row-level security",
        validation_alias=AliasChoices("SUPABASE_ANON_KEY", "VITE_SUPABASE_ANON_KEY"),
    )
    supabase_schema: str = Field(default="public", validation_alias="SUPABASE_SCHEMA")
    tasks_table: str = Field(default="tasks", validation_alias="TASKS_TABLE")
    # None waits indefinitely, the same as the browser client
    supabase_request_timeout: Optional[float] = Field(default=None, validation_alias="SUPABASE_REQUEST_TIMEOUT")
    realtime_heartbeat_interval: float = Field(default=25.0, validation_alias="REALTIME_HEARTBEAT_INTERVAL")
    realtime_reconnect_interval: float = Field(default=5.0, validation_alias="REALTIME_RECONNECT_INTERVAL")

    # In-process backend for local development without a Supabase project
    use_mock_backend: bool = Field(default=False, validation_alias="USE_MOCK_BACKEND")

    # Notification surface
    toast_position: Literal[
        "top-left", "top-center", "top-right", "bottom-left", "bottom-center", "bottom-right"
    ] = Field(default="top-right", validation_alias="TOAST_POSITION")
    toast_success_duration_ms: int = Field(default=2000, validation_alias="TOAST_SUCCESS_DURATION_MS")
    toast_error_duration_ms: int = Field(default=4000, validation_alias="TOAST_ERROR_DURATION_MS")

    # Security headers toggles (HSTS intentionally omitted)
    security_csp_enabled: bool = Field(default=True, validation_alias="SECURITY_CSP_ENABLED")
    security_csp_value: str | None = Field(
        default="default-src 'self'; img-src 'self' data:; script-src 'self'; style-src 'self' 'unsafe-inline'; connect-src 'self'; frame-ancestors 'self'",
        validation_alias="SECURITY_CSP_VALUE",
    )
    security_xfo_enabled: bool = Field(default=True, validation_alias="SECURITY_XFO_ENABLED")
    security_xfo_value: str = Field(default="SAMEORIGIN", validation_alias="SECURITY_XFO_VALUE")
    security_nosniff_enabled: bool = Field(default=True, validation_alias="SECURITY_NOSNIFF_ENABLED")
    security_referrer_policy_enabled: bool = Field(default=True, validation_alias="SECURITY_REFERRER_POLICY_ENABLED")
    security_referrer_policy_value: str = Field(default="no-referrer", validation_alias="SECURITY_REFERRER_POLICY_VALUE")

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "env_prefix": "",
    }


class ConfigManager:
    """Centralized configuration manager with proper error handling."""

    def __init__(self) -> None:
        self._app_settings: Optional[AppSettings] = None

    @property
    def app_settings(self) -> AppSettings:
        """Get application settings (cached)."""
        if self._app_settings is None:
            try:
                self._app_settings = AppSettings()
                logger.info("Application settings loaded successfully")
            except Exception as e:
                logger.error(f"Failed to load application settings: {e}", exc_info=True)
                raise
        return self._app_settings

    def reload_configs(self) -> None:
        """Drop cached settings so the next access re-reads the environment."""
        self._app_settings = None
        logger.info("Configuration cache cleared, will reload on next access")

    def validate_config(self) -> Dict[str, bool]:
        """Validate all configurations and return status."""
        status = {}

        try:
            settings = self.app_settings
            status["app_settings"] = True
        except Exception as e:
            logger.error(f"App settings validation failed: {e}", exc_info=True)
            status["app_settings"] = False
            status["backend"] = False
            return status

        status["backend"] = settings.use_mock_backend or settings.supabase_configured
        if not status["backend"]:
            logger.warning(
                "Supabase is not configured. Set SUPABASE_URL and SUPABASE_ANON_KEY, "
                "or USE_MOCK_BACKEND=true for local development."
            )
        return status


# Global configuration manager instance
config_manager = ConfigManager()
