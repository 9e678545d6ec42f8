"""Conversation orchestration: context snapshot, tool-calling exchange and streaming."""

from ops_copilot.orchestrator.context import build_snapshot, format_snapshot
from ops_copilot.orchestrator.conversation import (
    ConversationOrchestrator,
    ReasoningUnavailableError,
)
from ops_copilot.orchestrator.fallback import DEFAULT_REPLY, FallbackResponder, TopicRule
from ops_copilot.orchestrator.streaming import (
    END_OF_STREAM,
    StreamChunk,
    collect_text,
    encode_sse,
    sse_events,
    split_into_chunks,
)
from ops_copilot.orchestrator.types import (
    ChatTurn,
    ContextSnapshot,
    ConversationContext,
    ConversationOutcome,
    ConversationState,
    ExchangeState,
)

__all__ = [
    "ConversationOrchestrator",
    "ReasoningUnavailableError",
    "FallbackResponder",
    "TopicRule",
    "DEFAULT_REPLY",
    "build_snapshot",
    "format_snapshot",
    "StreamChunk",
    "END_OF_STREAM",
    "split_into_chunks",
    "encode_sse",
    "sse_events",
    "collect_text",
    "ChatTurn",
    "ContextSnapshot",
    "ConversationContext",
    "ConversationOutcome",
    "ConversationState",
    "ExchangeState",
]
