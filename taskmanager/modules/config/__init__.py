"""Configuration module for the task manager.

Settings come from environment variables and an optional .env file,
validated by pydantic-settings and cached by ConfigManager.
"""

from .config_manager import (
    AppSettings,
    ConfigManager,
    config_manager,
)

__all__ = [
    "AppSettings",
    "ConfigManager",
    "config_manager",
]
