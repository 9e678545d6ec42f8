"""Environment variable file loader with priority-based loading."""

import os
from enum import Enum
from pathlib import Path

import structlog
from dotenv import load_dotenv

from ops_copilot.config.validators import PROJECT_ROOT

log = structlog.get_logger(__name__)


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


def get_environment() -> Environment:
    """Detect current environment from the APP_ENV environment variable.

    Returns:
        Environment enum value. "prod"/"production", "stage"/"staging" and
        "test" are recognised; anything else is development.

    Note: environment detection must happen before settings are loaded, so
    this is the one place that reads os.environ directly.
    """
    app_env = os.getenv("APP_ENV", "").lower()

    if app_env in ("production", "prod"):
        return Environment.PRODUCTION
    if app_env in ("staging", "stage"):
        return Environment.STAGING
    if app_env == "test":
        return Environment.TEST
    return Environment.DEVELOPMENT


def load_env_files(project_root: Path | None = None) -> list[str]:
    """Load .env files in priority order.

    Priority order (highest to lowest):
    1. `.env.{environment}.local`
    2. `.env.{environment}`
    3. `.env.local`
    4. `.env`

    Explicit environment variables always win over file values.

    Args:
        project_root: Directory holding the .env files. Defaults to the
            project root.

    Returns:
        Names of the files that were loaded, in load order.
    """
    root = project_root or PROJECT_ROOT
    env_name = get_environment().value

    # Highest priority first: load_dotenv(override=False) keeps the first value seen.
    candidates = [
        root / f".env.{env_name}.local",
        root / f".env.{env_name}",
        root / ".env.local",
        root / ".env",
    ]

    loaded_files = []
    for env_file in candidates:
        if env_file.exists():
            load_dotenv(env_file, override=False)
            loaded_files.append(env_file.name)

    if loaded_files:
        log.info("env_files_loaded", files=loaded_files, environment=env_name)
    return loaded_files
