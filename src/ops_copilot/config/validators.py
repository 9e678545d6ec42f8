"""Custom Pydantic validators for configuration."""

from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent


def validate_log_level(value: str) -> str:
    """Validate log level is one of the standard levels.

    Args:
        value: Log level string.

    Returns:
        Validated log level.

    Raises:
        ValueError: If log level is not valid.
    """
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise ValueError(f"log_level must be one of {valid_levels}, got {value}")
    return value.upper()


def validate_log_format(value: str) -> str:
    """Validate log format is 'json' or 'console'.

    Raises:
        ValueError: If log format is not valid.
    """
    valid_formats = {"json", "console"}
    if value.lower() not in valid_formats:
        raise ValueError(f"log_format must be one of {valid_formats}, got {value}")
    return value.lower()


def validate_base_url(value: str) -> str:
    """Validate an HTTP base URL and strip any trailing slash.

    Args:
        value: URL string.

    Returns:
        URL without trailing slash.

    Raises:
        ValueError: If the URL does not use http or https.
    """
    if not value.startswith(("http://", "https://")):
        raise ValueError(f"base URL must start with http:// or https://, got {value}")
    return value.rstrip("/")


def resolve_path(value: Path | str) -> Path:
    """Resolve relative paths against the project root.

    Args:
        value: Path value (can be string or Path).

    Returns:
        Resolved absolute Path.
    """
    path = Path(value)
    if not path.is_absolute():
        path = PROJECT_ROOT / path
    return path.resolve()
