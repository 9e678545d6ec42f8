"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying and analysis.
"""

# Request events
COMMAND_RECEIVED = "command_received"
COMMAND_COMPLETED = "command_completed"
CHAT_RECEIVED = "chat_received"
REPLY_READY = "reply_ready"

# Intent classification events
INTENT_CLASSIFIED = "intent_classified"
ADVANCED_CLASSIFICATION_FAILED = "advanced_classification_failed"

# Conversation orchestrator events
EXCHANGE_STARTED = "exchange_started"
EXCHANGE_COMPLETED = "exchange_completed"
EXCHANGE_FAILED = "exchange_failed"
STATE_TRANSITION = "state_transition"
UNKNOWN_STATE = "unknown_state"
FALLBACK_USED = "fallback_used"
ORCHESTRATOR_FATAL_ERROR = "orchestrator_fatal_error"

# Streaming events
STREAM_STARTED = "stream_started"
STREAM_COMPLETED = "stream_completed"
STREAM_CANCELLED = "stream_cancelled"

# LLM Client events
MODEL_CALL_STARTED = "model_call_started"
MODEL_CALL_COMPLETED = "model_call_completed"
MODEL_CALL_ERROR = "model_call_error"

# Tool execution events
TOOL_CALL_STARTED = "tool_call_started"
TOOL_CALL_COMPLETED = "tool_call_completed"
TOOL_CALL_FAILED = "tool_call_failed"

# Store events
ACTIVITY_LOGGED = "activity_logged"
AUDIT_WRITE_FAILED = "audit_write_failed"
EVENT_PUBLISHED = "event_published"
EVENT_PUBLISH_FAILED = "event_publish_failed"
SEED_DATA_LOADED = "seed_data_loaded"
