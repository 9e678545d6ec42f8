"""Core types for the conversation orchestrator.

This module defines the data structures used throughout an exchange:
- ConversationState: State machine states
- ChatTurn, ContextSnapshot, ConversationContext: Caller-supplied context
- ExchangeState: Mutable state container passed through step functions
- ExchangeStep: Individual step metadata
- ConversationOutcome: Final result of a non-streamed exchange
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field
from typing_extensions import TypedDict

from ops_copilot.intent.types import ParsedIntent
from ops_copilot.store.types import utcnow
from ops_copilot.tools.types import ToolCall, ToolResult


class ConversationState(str, Enum):
    """State machine states for one exchange."""

    IDLE = "idle"
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    AWAITING_FOLLOWUP = "awaiting_followup"
    STREAMING = "streaming"
    DONE = "done"
    ERROR = "error"


class ChatTurn(BaseModel):
    """One prior message of the conversation."""

    role: Literal["user", "assistant"]
    content: str


class ContextSnapshot(BaseModel):
    """Bounded point-in-time view of the store, embedded in the system prompt.

    Records are slimmed to the fields the prompt shows.
    """

    tasks: list[dict[str, Any]] = Field(default_factory=list)
    projects: list[dict[str, Any]] = Field(default_factory=list)
    team: list[dict[str, Any]] = Field(default_factory=list)
    customers: list[dict[str, Any]] = Field(default_factory=list)
    metrics: dict[str, float] = Field(default_factory=dict)
    generated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_empty(self) -> bool:
        """Whether the snapshot holds no records and no metrics."""
        return not (self.tasks or self.projects or self.team or self.customers or self.metrics)


class ConversationContext(BaseModel):
    """Caller-supplied history plus an optional pre-built snapshot."""

    history: list[ChatTurn] = Field(default_factory=list)
    snapshot: ContextSnapshot | None = None


class ExchangeStep(TypedDict):
    """Step metadata for observability.

    Fields:
        type: Step type ("model_call", "tool_call", "fallback", ...).
        description: Human-readable description of what this step did.
        metadata: Additional structured data (tool name, error type, ...).
    """

    type: str
    description: str
    metadata: dict[str, Any]


@dataclass
class PendingToolCall:
    """A tool call proposed by the reasoning service.

    ``parse_error`` is set when the arguments were not a JSON object; the
    call still gets exactly one (failed) result.
    """

    call: ToolCall
    parse_error: str | None = None


@dataclass
class ExchangeState:
    """Mutable state container passed through the step functions.

    Attributes:
        trace_id: Trace identifier for telemetry.
        message: The user's message.
        context: Caller-supplied history and snapshot.
        intent: Rule classification of the message (always computed).
        state: Current state in the state machine.
        system_prompt: Prompt built in the idle step.
        snapshot: Snapshot used for the prompt and the fallback.
        messages: Chat-completions transcript (without the system prompt).
        pending_calls: Tool calls proposed by the last model reply.
        tool_results: Results of every executed call, in call order.
        final_reply: Text to stream back.
        used_fallback: Whether final_reply came from the fallback responder.
        error: What sent the exchange into the error state, if anything.
        steps: ExchangeStep records for observability.
    """

    trace_id: str
    message: str
    context: ConversationContext
    intent: ParsedIntent
    state: ConversationState = ConversationState.IDLE
    system_prompt: str = ""
    snapshot: ContextSnapshot = field(default_factory=ContextSnapshot)
    messages: list[dict[str, Any]] = field(default_factory=list)
    pending_calls: list[PendingToolCall] = field(default_factory=list)
    tool_results: list[ToolResult] = field(default_factory=list)
    final_reply: str | None = None
    used_fallback: bool = False
    error: Exception | None = None
    steps: list[ExchangeStep] = field(default_factory=list)

    @property
    def tools_used(self) -> list[str]:
        """Names of executed tools, in call order."""
        return [result.tool_name for result in self.tool_results]


class ConversationOutcome(BaseModel):
    """Result of a non-streamed exchange."""

    reply: str
    intent: ParsedIntent
    tools_used: list[str] = Field(default_factory=list)
    tool_results: list[ToolResult] = Field(default_factory=list)
    used_fallback: bool = False
    trace_id: str
    steps: list[dict[str, Any]] = Field(default_factory=list)
