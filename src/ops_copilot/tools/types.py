"""Type definitions for the tool execution layer.

This module defines the Pydantic models for tool definitions, parameters,
calls and results used by both direct command dispatch and the
conversational tool loop.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class Channel(str, Enum):
    """How a tool invocation was triggered; recorded on every audit entry."""

    COMMAND = "ai_command"
    CHAT = "ai_chat"


class ToolErrorKind(str, Enum):
    """Why a tool call failed."""

    UNKNOWN_TOOL = "unknown_tool"
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND = "not_found"
    PERSISTENCE_FAILURE = "persistence_failure"
    TIMEOUT = "timeout"


class ToolParameter(BaseModel):
    """Parameter definition for a tool."""

    name: str = Field(..., description="Parameter name")
    type: Literal["string", "number", "integer", "boolean", "object", "array"] = Field(
        ..., description="Parameter type"
    )
    description: str = Field(..., description="Parameter description for the reasoning service")
    required: bool = Field(False, description="Whether parameter is required")
    enum: list[str] | None = Field(None, description="Allowed values for string parameters")
    default: Any | None = Field(None, description="Default value if not required")
    # Full JSON Schema for complex types (array items, object properties, etc.)
    json_schema: dict[str, Any] | None = Field(
        None, description="Full JSON Schema for complex nested types"
    )


class ToolDefinition(BaseModel):
    """OpenAI-style tool definition for function calling."""

    name: str = Field(..., description="Tool name (e.g., 'create_entity')")
    description: str = Field(..., description="Clear description for the reasoning service")
    parameters: list[ToolParameter] = Field(default_factory=list, description="Tool parameters")
    mutates: bool = Field(False, description="Whether the tool changes records")
    timeout_seconds: float | None = Field(
        None, gt=0, description="Execution timeout; None uses the layer default"
    )


class ToolCall(BaseModel):
    """One requested tool invocation."""

    id: str = Field(..., description="Call identifier, echoed on the result")
    name: str = Field(..., description="Tool name")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")


class ToolResult(BaseModel):
    """Outcome of exactly one ToolCall."""

    tool_call_id: str = Field(..., description="Identifier of the originating call")
    tool_name: str = Field(..., description="Name of the executed tool")
    success: bool = Field(..., description="Whether tool execution succeeded")
    output: dict[str, Any] = Field(default_factory=dict, description="Plain-data payload")
    error_kind: ToolErrorKind | None = Field(None, description="Failure category")
    error: str | None = Field(None, description="Error message safe to show the caller")
    latency_ms: float = Field(0.0, ge=0, description="Execution latency in milliseconds")

    def to_model_payload(self) -> dict[str, Any]:
        """Compact JSON-ready form sent back to the reasoning service."""
        if self.success:
            return {"tool": self.tool_name, "success": True, "result": self.output}
        return {
            "tool": self.tool_name,
            "success": False,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "error": self.error,
        }


class ToolContext(BaseModel):
    """Per-invocation facts passed to every executor."""

    channel: Channel
    trace_id: str
    actor: str = "copilot"
