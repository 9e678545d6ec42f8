"""Client for the remote reasoning service (OpenAI-compatible chat completions)."""

from ops_copilot.llm_client.client import ReasoningClient
from ops_copilot.llm_client.types import (
    LLMClientError,
    LLMConnectionError,
    LLMInvalidResponse,
    LLMRateLimit,
    LLMResponse,
    LLMServerError,
    LLMTimeout,
    ToolCall,
)

__all__ = [
    "ReasoningClient",
    "LLMResponse",
    "ToolCall",
    "LLMClientError",
    "LLMTimeout",
    "LLMConnectionError",
    "LLMRateLimit",
    "LLMServerError",
    "LLMInvalidResponse",
]
