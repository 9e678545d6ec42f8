"""Unified configuration management for Ops Copilot.

Single source of truth for configuration: environment variables, .env files
and defaults, validated by pydantic-settings.
"""

from ops_copilot.config.env_loader import Environment, get_environment, load_env_files
from ops_copilot.config.settings import AppConfig, get_settings, load_app_config, reset_settings

__all__ = [
    "AppConfig",
    "Environment",
    "get_environment",
    "get_settings",
    "load_app_config",
    "load_env_files",
    "reset_settings",
]
