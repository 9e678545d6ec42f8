"""Structured logging configuration using structlog.

Console output is pretty-printed (or JSON when ``log_format`` is ``json``);
an optional rotating JSON-lines file keeps the full event stream for audit
and debugging. Timestamps are UTC and every event carries the short
component name of the module that emitted it.
"""

import logging
import logging.handlers
import pathlib
import sys
from datetime import datetime, timezone
from typing import Any

import structlog

_LOG_FILE_NAME = "current.jsonl"
_LOG_FILE_MAX_BYTES = 20 * 1024 * 1024


def _logging_options() -> tuple[str, str, pathlib.Path | None]:
    """Resolve level, format and file directory for logging.

    Returns:
        Tuple of (log level, log format, log directory or None when file
        logging is disabled).
    """
    # Bootstrap values avoid a circular import while settings are loading.
    from ops_copilot.config.bootstrap import (  # noqa: PLC0415
        get_bootstrap_log_format,
        get_bootstrap_log_level,
    )

    level = get_bootstrap_log_level()
    log_format = get_bootstrap_log_format()
    try:
        from ops_copilot.config.settings import get_settings  # noqa: PLC0415

        settings = get_settings()
        log_dir = pathlib.Path(settings.log_dir) if settings.log_to_file else None
        return settings.log_level, settings.log_format, log_dir
    except Exception:
        return level, log_format, None


def _add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add a UTC timestamp to foreign (non-structlog) log records."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def _add_component(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the component name (last segment of the logger name).

    Args:
        logger: The logger instance.
        method_name: The log method name (info, error, etc.).
        event_dict: The event dictionary.

    Returns:
        Event dictionary with component added.
    """
    logger_name = event_dict.get("logger") or getattr(logger, "name", "") or ""
    event_dict["component"] = logger_name.rsplit(".", 1)[-1] if logger_name else "unknown"
    return event_dict


def _foreign_pre_chain() -> list[Any]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_timestamp,
        _add_component,
    ]


def _configure_file_handler(log_dir: pathlib.Path) -> logging.handlers.RotatingFileHandler:
    """Configure rotating file handler for JSON logs.

    Args:
        log_dir: Directory for log files.

    Returns:
        Configured RotatingFileHandler.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=str(log_dir / _LOG_FILE_NAME),
        maxBytes=_LOG_FILE_MAX_BYTES,
        backupCount=5,
        encoding="utf-8",
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def _configure_console_handler(log_format: str) -> logging.StreamHandler[Any]:
    """Configure the stderr handler.

    Args:
        log_format: ``json`` for machine-readable lines, ``console`` for
            pretty-printed output.

    Returns:
        Configured StreamHandler.
    """
    handler = logging.StreamHandler(sys.stderr)
    if log_format == "json":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=_foreign_pre_chain(),
        )
    )
    return handler


def configure_logging() -> None:
    """Configure structlog and the stdlib root logger.

    Call once at application startup; ``get_logger`` calls it lazily when
    nothing has been configured yet.
    """
    log_level, log_format, log_dir = _logging_options()

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    console_handler = _configure_console_handler(log_format)
    console_handler.setLevel(getattr(logging, log_level, logging.INFO))
    root_logger.addHandler(console_handler)

    # The audit file keeps INFO+ regardless of the console level.
    if log_dir is not None:
        file_handler = _configure_file_handler(log_dir)
        file_handler.setLevel(logging.INFO)
        root_logger.addHandler(file_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            _add_component,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:  # Returns structlog.stdlib.BoundLogger
    """Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Configured structlog logger instance.

    Example:
        >>> from ops_copilot.telemetry import get_logger
        >>> log = get_logger(__name__)
        >>> log.info("command_received", trace_id="abc", input_length=12)
    """
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name)
