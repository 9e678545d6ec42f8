"""Prompts for the conversational tool loop.

The system prompt embeds the context snapshot as plain text and lists the
available tools; tool results are fed back as one synthetic user turn.
"""

import json
from datetime import date

from ops_copilot.orchestrator.context import format_snapshot
from ops_copilot.orchestrator.types import ContextSnapshot
from ops_copilot.tools.registry import ToolRegistry
from ops_copilot.tools.types import ToolCall, ToolResult

# ============================================================================
# System prompt
# ============================================================================

SYSTEM_PROMPT_TEMPLATE = """You are the operations copilot for a small business. \
You help the team track projects, tasks, customers, pipeline and company metrics.

Today is {today}.

**Current business context:**
{snapshot}

**Tools you can call:**
{tools}

**Guidelines:**
- Answer from the context above when it already contains what the user asked for.
- Call a tool when the user asks you to change records or needs data the context lacks.
- Use record ids exactly as shown in square brackets.
- Quote numbers from the context or tool results; never invent figures.
- Keep answers short and concrete. Plain text, no markdown tables."""

TOOL_RESULTS_PREFIX = "Tool results (JSON, one entry per call, in call order):"

FOLLOWUP_INSTRUCTION = (
    "Using these results, answer my previous message. Do not request more tools; "
    "if something failed, say so plainly."
)


def build_system_prompt(
    snapshot: ContextSnapshot, registry: ToolRegistry, today: date | None = None
) -> str:
    """Render the system prompt for one exchange.

    Args:
        snapshot: Bounded context snapshot.
        registry: Tool registry whose catalogue is listed.
        today: Date shown to the model; defaults to today.

    Returns:
        System prompt text.
    """
    return SYSTEM_PROMPT_TEMPLATE.format(
        today=(today or date.today()).isoformat(),
        snapshot=format_snapshot(snapshot),
        tools=registry.describe() or "(none)",
    )


def format_tool_call_turn(content: str, calls: list[ToolCall]) -> str:
    """Plain-text rendering of an assistant turn that requested tools.

    The follow-up request carries no tool schema, so the turn is replayed as
    text rather than as structured ``tool_calls``.
    """
    requested = "\n".join(
        f"- {call.name}({json.dumps(call.arguments, sort_keys=True)})" for call in calls
    )
    prefix = f"{content.strip()}\n\n" if content.strip() else ""
    return f"{prefix}Calling tools:\n{requested}"


def format_tool_results(results: list[ToolResult]) -> str:
    """Serialize tool results into the synthetic user turn."""
    payload = [result.to_model_payload() for result in results]
    return f"{TOOL_RESULTS_PREFIX}\n{json.dumps(payload, default=str)}\n\n{FOLLOWUP_INSTRUCTION}"
