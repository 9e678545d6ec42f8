"""Telemetry module for structured logging and trace correlation.

This module provides:
- TraceContext for request correlation
- Structured logging via structlog
- Semantic event constants
"""

from ops_copilot.telemetry.events import (
    ACTIVITY_LOGGED,
    ADVANCED_CLASSIFICATION_FAILED,
    AUDIT_WRITE_FAILED,
    CHAT_RECEIVED,
    COMMAND_COMPLETED,
    COMMAND_RECEIVED,
    EVENT_PUBLISH_FAILED,
    EVENT_PUBLISHED,
    EXCHANGE_COMPLETED,
    EXCHANGE_FAILED,
    EXCHANGE_STARTED,
    FALLBACK_USED,
    INTENT_CLASSIFIED,
    MODEL_CALL_COMPLETED,
    MODEL_CALL_ERROR,
    MODEL_CALL_STARTED,
    ORCHESTRATOR_FATAL_ERROR,
    REPLY_READY,
    SEED_DATA_LOADED,
    STATE_TRANSITION,
    STREAM_CANCELLED,
    STREAM_COMPLETED,
    STREAM_STARTED,
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    UNKNOWN_STATE,
)
from ops_copilot.telemetry.logger import configure_logging, get_logger
from ops_copilot.telemetry.trace import TraceContext

__all__ = [
    "TraceContext",
    "get_logger",
    "configure_logging",
    # Event constants
    "ACTIVITY_LOGGED",
    "ADVANCED_CLASSIFICATION_FAILED",
    "AUDIT_WRITE_FAILED",
    "CHAT_RECEIVED",
    "COMMAND_COMPLETED",
    "COMMAND_RECEIVED",
    "EVENT_PUBLISHED",
    "EVENT_PUBLISH_FAILED",
    "EXCHANGE_COMPLETED",
    "EXCHANGE_FAILED",
    "EXCHANGE_STARTED",
    "FALLBACK_USED",
    "INTENT_CLASSIFIED",
    "MODEL_CALL_COMPLETED",
    "MODEL_CALL_ERROR",
    "MODEL_CALL_STARTED",
    "ORCHESTRATOR_FATAL_ERROR",
    "REPLY_READY",
    "SEED_DATA_LOADED",
    "STATE_TRANSITION",
    "STREAM_CANCELLED",
    "STREAM_COMPLETED",
    "STREAM_STARTED",
    "TOOL_CALL_COMPLETED",
    "TOOL_CALL_FAILED",
    "TOOL_CALL_STARTED",
    "UNKNOWN_STATE",
]
