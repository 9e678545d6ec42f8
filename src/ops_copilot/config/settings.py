"""Application configuration settings.

This module provides the AppConfig class and settings singleton.
"""

from pathlib import Path

import structlog
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ops_copilot.config.env_loader import Environment, get_environment, load_env_files
from ops_copilot.config.validators import (
    resolve_path,
    validate_base_url,
    validate_log_format,
    validate_log_level,
)

log = structlog.get_logger(__name__)


class AppConfig(BaseSettings):
    """Unified application configuration.

    Values come from ``COPILOT_``-prefixed environment variables (after the
    .env files have been loaded) and fall back to the defaults below.
    """

    model_config = SettingsConfigDict(
        # .env files are loaded by env_loader so environment-specific files
        # can be layered; pydantic-settings only reads os.environ.
        env_prefix="COPILOT_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Environment = Field(
        default_factory=get_environment, description="Current environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    # Application
    project_name: str = Field(default="Ops Copilot", description="Project name")
    version: str = Field(default="0.1.0", description="Application version")

    # Telemetry
    log_dir: Path = Field(default=Path("telemetry/logs"), description="Log directory path")
    log_to_file: bool = Field(default=False, description="Write JSON-lines log file")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="console", description="Log format (json or console)")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        return validate_log_level(v)

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        return validate_log_format(v)

    @field_validator("log_dir", mode="before")
    @classmethod
    def resolve_log_dir(cls, v: Path | str) -> Path:
        """Resolve relative paths to absolute."""
        return resolve_path(v)

    # Reasoning service (OpenAI-compatible chat completions)
    reasoning_base_url: str = Field(
        default="https://api.openai.com/v1", description="Base URL for the reasoning service"
    )
    reasoning_api_key: SecretStr | None = Field(
        default=None, description="API key; the reasoning service is disabled when unset"
    )
    reasoning_model: str = Field(default="gpt-4o-mini", description="Model identifier")
    reasoning_timeout_seconds: float = Field(default=30.0, gt=0, description="Request timeout")
    reasoning_max_retries: int = Field(default=1, ge=0, description="Maximum retry attempts")
    reasoning_max_tokens: int = Field(default=1024, ge=1, description="Max completion tokens")
    reasoning_temperature: float = Field(default=0.3, ge=0, le=2, description="Temperature")

    @field_validator("reasoning_base_url")
    @classmethod
    def validate_reasoning_base_url(cls, v: str) -> str:
        """Validate the reasoning service URL."""
        return validate_base_url(v)

    # Conversation
    chat_history_turns: int = Field(
        default=10, ge=0, description="Prior turns forwarded to the reasoning service"
    )
    snapshot_max_tasks: int = Field(default=30, ge=0, description="Tasks in context snapshot")
    snapshot_max_projects: int = Field(default=20, ge=0, description="Projects in snapshot")
    snapshot_max_team: int = Field(default=20, ge=0, description="Team members in snapshot")
    snapshot_max_customers: int = Field(default=10, ge=0, description="Customers in snapshot")
    stream_chunk_delay_ms: int = Field(
        default=0, ge=0, description="Pause between streamed chunks (0 = none)"
    )
    audit_response_max_chars: int = Field(
        default=500, ge=1, description="Truncation length for audited responses"
    )

    # Tools
    tool_timeout_seconds: float = Field(default=10.0, gt=0, description="Per-tool timeout")

    # Store
    seed_data_path: Path | None = Field(
        default=None, description="YAML file used to seed the in-memory store"
    )

    @field_validator("seed_data_path", mode="before")
    @classmethod
    def resolve_seed_path(cls, v: Path | str | None) -> Path | None:
        """Resolve the seed data path when one is configured."""
        if v in (None, ""):
            return None
        return resolve_path(v)

    # Service Configuration
    service_host: str = Field(default="127.0.0.1", description="Service host address")
    service_port: int = Field(default=8787, description="Service port number")

    @property
    def reasoning_enabled(self) -> bool:
        """Whether a reasoning-service credential is configured."""
        return self.reasoning_api_key is not None and bool(
            self.reasoning_api_key.get_secret_value()
        )


_settings: AppConfig | None = None


def load_app_config() -> AppConfig:
    """Load and validate application configuration.

    Loads .env files in priority order, then builds and validates AppConfig
    from the environment.

    Returns:
        Validated AppConfig instance.

    Raises:
        ValidationError: If configuration validation fails.
    """
    log.info("loading_app_config", environment=get_environment().value)

    load_env_files()

    try:
        config = AppConfig()
        log.info(
            "app_config_loaded",
            environment=config.environment.value,
            debug=config.debug,
            log_level=config.log_level,
            reasoning_enabled=config.reasoning_enabled,
        )
        return config
    except Exception as e:
        log.error("app_config_load_failed", error=str(e), error_type=type(e).__name__)
        raise


def get_settings() -> AppConfig:
    """Get the application settings singleton.

    Returns:
        AppConfig instance (singleton pattern).
    """
    global _settings
    if _settings is None:
        _settings = load_app_config()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
