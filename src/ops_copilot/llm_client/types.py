"""Type definitions for the reasoning-service client.

This module defines the core types used by the ReasoningClient:
- LLMResponse: Normalized response structure
- ToolCall: Tool call structure for function calling
- Error classes: Hierarchy of client errors
"""

from typing import Any

from typing_extensions import TypedDict


class ToolCall(TypedDict):
    """Tool call structure for function calling.

    Attributes:
        id: Unique identifier for the tool call.
        name: Name of the tool to call.
        arguments: JSON string containing tool arguments.
    """

    id: str
    name: str
    arguments: str  # JSON string


class LLMResponse(TypedDict):
    """Response structure from reasoning-service calls.

    Attributes:
        role: Response role (typically "assistant").
        content: Natural language content from the model.
        tool_calls: Tool calls if the model requested tool execution.
        finish_reason: Why generation stopped, when reported.
        usage: Token usage information (prompt_tokens, completion_tokens, ...).
        raw: Raw response from the backend for debugging.
    """

    role: str  # "assistant"
    content: str
    tool_calls: list[ToolCall]
    finish_reason: str | None
    usage: dict[str, Any]
    raw: dict[str, Any]


# Error hierarchy


class LLMClientError(Exception):
    """Base exception for all reasoning-service client errors."""

    pass


class LLMTimeout(LLMClientError):
    """Raised when a request times out."""

    pass


class LLMConnectionError(LLMClientError):
    """Raised when the connection to the reasoning service fails."""

    pass


class LLMRateLimit(LLMClientError):
    """Raised when the reasoning service returns a rate limit error."""

    pass


class LLMServerError(LLMClientError):
    """Raised when the reasoning service returns an error (5xx)."""

    pass


class LLMInvalidResponse(LLMClientError):
    """Raised when the reasoning service returns an unexpected response format."""

    pass
