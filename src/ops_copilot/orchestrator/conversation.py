"""Conversation Orchestrator: bounded tool-calling exchange with the reasoning service.

The exchange is an explicit state machine driven by step functions:

    idle -> awaiting_model -> executing_tools -> awaiting_followup -> streaming -> done

``error`` is reachable from every state and hands over to the Fallback
Responder, so every exchange ends with non-empty text. The loop is one hop:
the follow-up call carries no tools.
"""

import asyncio
import json
from collections.abc import AsyncIterator, Awaitable, Callable

from ops_copilot.capabilities import Capabilities
from ops_copilot.intent import classify_with_rule
from ops_copilot.llm_client import LLMClientError, LLMInvalidResponse, LLMResponse
from ops_copilot.orchestrator.context import build_snapshot
from ops_copilot.orchestrator.fallback import FallbackResponder
from ops_copilot.orchestrator.prompts import (
    build_system_prompt,
    format_tool_call_turn,
    format_tool_results,
)
from ops_copilot.orchestrator.streaming import StreamChunk, split_into_chunks
from ops_copilot.orchestrator.types import (
    ConversationContext,
    ConversationOutcome,
    ConversationState,
    ContextSnapshot,
    ExchangeState,
    PendingToolCall,
)
from ops_copilot.store.events import CHAT_COMPLETED_TOPIC, publish_quietly
from ops_copilot.store.types import Activity
from ops_copilot.telemetry import (
    AUDIT_WRITE_FAILED,
    CHAT_RECEIVED,
    EXCHANGE_COMPLETED,
    EXCHANGE_FAILED,
    EXCHANGE_STARTED,
    FALLBACK_USED,
    INTENT_CLASSIFIED,
    ORCHESTRATOR_FATAL_ERROR,
    REPLY_READY,
    STATE_TRANSITION,
    STREAM_CANCELLED,
    STREAM_COMPLETED,
    STREAM_STARTED,
    UNKNOWN_STATE,
    TraceContext,
    get_logger,
)
from ops_copilot.tools.executor import ToolExecutionLayer
from ops_copilot.tools.types import Channel, ToolCall, ToolErrorKind, ToolResult

log = get_logger(__name__)

# States after which the reply text is fixed.
_REPLY_READY_STATES = frozenset({ConversationState.STREAMING, ConversationState.DONE})

StepFunction = Callable[[ExchangeState, TraceContext], Awaitable[ConversationState]]


class ReasoningUnavailableError(Exception):
    """No reasoning-service credential is configured."""

    pass


def _parse_tool_calls(response: LLMResponse) -> list[PendingToolCall]:
    """Convert wire tool calls to ToolCall models, keeping unparsable ones."""
    pending = []
    for index, raw in enumerate(response["tool_calls"]):
        call_id = raw["id"] or f"call-{index}"
        try:
            arguments = json.loads(raw["arguments"] or "{}")
        except json.JSONDecodeError as e:
            pending.append(
                PendingToolCall(
                    call=ToolCall(id=call_id, name=raw["name"]),
                    parse_error=f"Invalid arguments JSON: {e.msg}",
                )
            )
            continue
        if not isinstance(arguments, dict):
            pending.append(
                PendingToolCall(
                    call=ToolCall(id=call_id, name=raw["name"]),
                    parse_error="Tool arguments must be a JSON object",
                )
            )
            continue
        call = ToolCall(id=call_id, name=raw["name"], arguments=arguments)
        pending.append(PendingToolCall(call=call))
    return pending


def _tool_outcome_note(results: list[ToolResult]) -> str:
    """One line per executed tool, appended to fallback replies after tools ran."""
    lines = []
    for result in results:
        outcome = "done" if result.success else f"failed ({result.error or 'unknown error'})"
        lines.append(f"- {result.tool_name}: {outcome}")
    return "Actions taken before the assistant became unavailable:\n" + "\n".join(lines)


class ConversationOrchestrator:
    """Runs conversational exchanges against the reasoning service."""

    def __init__(
        self, capabilities: Capabilities, fallback: FallbackResponder | None = None
    ) -> None:
        """Initialize the orchestrator.

        Args:
            capabilities: Store, reasoning client, publisher, registry and settings.
            fallback: Fallback responder; a default one is created when omitted.
        """
        self.capabilities = capabilities
        self.settings = capabilities.settings
        self.fallback = fallback or FallbackResponder()
        self.executor = ToolExecutionLayer(
            capabilities.registry,
            default_timeout_seconds=capabilities.settings.tool_timeout_seconds,
        )
        self._step_functions: dict[ConversationState, StepFunction] = {
            ConversationState.IDLE: self.step_idle,
            ConversationState.AWAITING_MODEL: self.step_awaiting_model,
            ConversationState.EXECUTING_TOOLS: self.step_executing_tools,
            ConversationState.AWAITING_FOLLOWUP: self.step_awaiting_followup,
            ConversationState.ERROR: self.step_error,
        }

    # Public entry points

    async def run(
        self,
        message: str,
        context: ConversationContext | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> ConversationOutcome:
        """Run one exchange and return the whole reply.

        Args:
            message: The user's message.
            context: Prior turns and an optional pre-built snapshot.
            trace_ctx: Trace context; a new trace is started when omitted.

        Returns:
            ConversationOutcome with a non-empty reply.
        """
        trace_ctx = trace_ctx or TraceContext.new_trace()
        exchange = self._start(message, context, trace_ctx)
        delivered = False
        try:
            await self.drive(exchange, trace_ctx)
            exchange.state = ConversationState.DONE
            delivered = True
        finally:
            await self._finish(exchange, delivered, trace_ctx)
        return self._outcome(exchange)

    async def stream(
        self,
        message: str,
        context: ConversationContext | None = None,
        trace_ctx: TraceContext | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Run one exchange and yield the reply in word-sized chunks.

        The reasoning-service calls happen inside the generator, so closing
        or cancelling the stream also cancels any pending call. The exchange
        is audited exactly once, with ``delivered=False`` when the consumer
        stops before the end marker.

        Yields:
            Content chunks in order, then the end-of-stream marker.
        """
        trace_ctx = trace_ctx or TraceContext.new_trace()
        exchange = self._start(message, context, trace_ctx)
        delivered = False
        chunk_count = 0
        log.info(STREAM_STARTED, trace_id=trace_ctx.trace_id)
        try:
            await self.drive(exchange, trace_ctx)
            delay = self.settings.stream_chunk_delay_ms / 1000
            for piece in split_into_chunks(exchange.final_reply or ""):
                yield StreamChunk(content=piece)
                chunk_count += 1
                if delay:
                    await asyncio.sleep(delay)
            yield StreamChunk.end()
            exchange.state = ConversationState.DONE
            delivered = True
            log.info(STREAM_COMPLETED, chunks=chunk_count, trace_id=trace_ctx.trace_id)
        finally:
            if not delivered:
                log.info(
                    STREAM_CANCELLED,
                    state=exchange.state.value,
                    chunks_sent=chunk_count,
                    trace_id=trace_ctx.trace_id,
                )
            await self._finish(exchange, delivered, trace_ctx)

    # State machine

    async def drive(self, exchange: ExchangeState, trace_ctx: TraceContext) -> ExchangeState:
        """Iterate step functions until the reply text is fixed.

        Args:
            exchange: Fresh exchange state.
            trace_ctx: Trace context.

        Returns:
            The same exchange, in the streaming state with ``final_reply`` set.
        """
        state = exchange.state
        while state not in _REPLY_READY_STATES:
            log.debug(STATE_TRANSITION, from_state=state.value, trace_id=trace_ctx.trace_id)
            exchange.state = state

            step_func = self._step_functions.get(state)
            if step_func is None:
                log.error(UNKNOWN_STATE, state=state.value, trace_id=trace_ctx.trace_id)
                exchange.error = ValueError(f"Unknown state: {state}")
                state = ConversationState.ERROR
                continue

            try:
                state = await step_func(exchange, trace_ctx)
            except Exception as e:
                log.error(
                    ORCHESTRATOR_FATAL_ERROR,
                    state=state.value,
                    error_type=type(e).__name__,
                    trace_id=trace_ctx.trace_id,
                    exc_info=True,
                )
                exchange.error = e
                if state == ConversationState.ERROR:
                    # The fallback itself failed; use its fixed default text.
                    exchange.final_reply = self.fallback.respond("")
                    exchange.used_fallback = True
                    state = ConversationState.STREAMING
                else:
                    state = ConversationState.ERROR

        exchange.state = state
        log.info(
            REPLY_READY,
            reply_length=len(exchange.final_reply or ""),
            used_fallback=exchange.used_fallback,
            tools_used=exchange.tools_used,
            trace_id=trace_ctx.trace_id,
        )
        return exchange

    async def step_idle(
        self, exchange: ExchangeState, trace_ctx: TraceContext
    ) -> ConversationState:
        """Build the snapshot, system prompt and transcript."""
        if exchange.context.snapshot is not None:
            exchange.snapshot = exchange.context.snapshot
        else:
            exchange.snapshot = await self._load_snapshot(trace_ctx)

        exchange.system_prompt = build_system_prompt(exchange.snapshot, self.capabilities.registry)

        turns = self.settings.chat_history_turns
        history = exchange.context.history[-turns:] if turns else []
        exchange.messages = [{"role": turn.role, "content": turn.content} for turn in history]
        exchange.messages.append({"role": "user", "content": exchange.message})

        if self.capabilities.reasoning_client is None:
            exchange.error = ReasoningUnavailableError("No reasoning service configured")
            return ConversationState.ERROR
        return ConversationState.AWAITING_MODEL

    async def step_awaiting_model(
        self, exchange: ExchangeState, trace_ctx: TraceContext
    ) -> ConversationState:
        """First model call, with the tool catalogue."""
        response = await self._call_model(
            exchange,
            trace_ctx,
            tools=self.capabilities.registry.get_tool_definitions_for_llm(),
        )
        if response is None:
            return ConversationState.ERROR

        if response["tool_calls"]:
            exchange.pending_calls = _parse_tool_calls(response)
            exchange.messages.append(
                {
                    "role": "assistant",
                    "content": format_tool_call_turn(
                        response["content"], [p.call for p in exchange.pending_calls]
                    ),
                }
            )
            exchange.steps.append(
                {
                    "type": "model_call",
                    "description": f"Model requested {len(exchange.pending_calls)} tool call(s)",
                    "metadata": {"tools": [p.call.name for p in exchange.pending_calls]},
                }
            )
            return ConversationState.EXECUTING_TOOLS

        if response["content"].strip():
            exchange.final_reply = response["content"]
            exchange.steps.append(
                {"type": "model_call", "description": "Model answered directly", "metadata": {}}
            )
            return ConversationState.STREAMING

        exchange.error = LLMInvalidResponse("Reply had neither text nor tool calls")
        return ConversationState.ERROR

    async def step_executing_tools(
        self, exchange: ExchangeState, trace_ctx: TraceContext
    ) -> ConversationState:
        """Execute every proposed call, strictly in order, then append the results turn."""
        results: list[ToolResult] = []
        for pending in exchange.pending_calls:
            if pending.parse_error is not None:
                result = ToolResult(
                    tool_call_id=pending.call.id,
                    tool_name=pending.call.name,
                    success=False,
                    error_kind=ToolErrorKind.VALIDATION_FAILED,
                    error=pending.parse_error,
                )
            else:
                result = await self.executor.execute_tool(pending.call, trace_ctx, Channel.CHAT)
            results.append(result)
            exchange.steps.append(
                {
                    "type": "tool_call",
                    "description": f"{result.tool_name}: {'ok' if result.success else 'failed'}",
                    "metadata": {
                        "tool_name": result.tool_name,
                        "tool_call_id": result.tool_call_id,
                        "success": result.success,
                        "error_kind": result.error_kind.value if result.error_kind else None,
                        "latency_ms": result.latency_ms,
                    },
                }
            )

        exchange.tool_results.extend(results)
        exchange.pending_calls = []
        exchange.messages.append({"role": "user", "content": format_tool_results(results)})
        return ConversationState.AWAITING_FOLLOWUP

    async def step_awaiting_followup(
        self, exchange: ExchangeState, trace_ctx: TraceContext
    ) -> ConversationState:
        """Second model call, without tools; any tool calls in the reply are ignored."""
        response = await self._call_model(exchange, trace_ctx, tools=None)
        if response is None:
            return ConversationState.ERROR

        if response["tool_calls"]:
            log.warning(
                "followup_tool_calls_ignored",
                count=len(response["tool_calls"]),
                trace_id=trace_ctx.trace_id,
            )
        if not response["content"].strip():
            exchange.error = LLMInvalidResponse("Follow-up reply had no text")
            return ConversationState.ERROR

        exchange.final_reply = response["content"]
        return ConversationState.STREAMING

    async def step_error(
        self, exchange: ExchangeState, trace_ctx: TraceContext
    ) -> ConversationState:
        """Replace the reply with fallback text built from the snapshot."""
        reply = self.fallback.respond(exchange.message, exchange.snapshot)
        if exchange.tool_results:
            reply = f"{reply}\n\n{_tool_outcome_note(exchange.tool_results)}"
        exchange.final_reply = reply
        exchange.used_fallback = True
        exchange.steps.append(
            {
                "type": "fallback",
                "description": "Fallback responder used",
                "metadata": {
                    "topic": self.fallback.topic(exchange.message),
                    "error_type": type(exchange.error).__name__ if exchange.error else None,
                },
            }
        )
        log.warning(
            FALLBACK_USED,
            topic=self.fallback.topic(exchange.message),
            error_type=type(exchange.error).__name__ if exchange.error else None,
            error=str(exchange.error)[:200] if exchange.error else None,
            tools_executed=len(exchange.tool_results),
            trace_id=trace_ctx.trace_id,
        )
        return ConversationState.STREAMING

    # Helpers

    def _start(
        self, message: str, context: ConversationContext | None, trace_ctx: TraceContext
    ) -> ExchangeState:
        intent, rule_name = classify_with_rule(message)
        log.info(CHAT_RECEIVED, message_length=len(message), trace_id=trace_ctx.trace_id)
        log.info(
            INTENT_CLASSIFIED,
            action=intent.action.value,
            rule=rule_name,
            source="rules",
            trace_id=trace_ctx.trace_id,
        )
        log.info(
            EXCHANGE_STARTED,
            history_turns=len(context.history) if context else 0,
            reasoning_enabled=self.capabilities.reasoning_enabled,
            trace_id=trace_ctx.trace_id,
        )
        return ExchangeState(
            trace_id=trace_ctx.trace_id,
            message=message,
            context=context or ConversationContext(),
            intent=intent,
        )

    async def _load_snapshot(self, trace_ctx: TraceContext) -> ContextSnapshot:
        try:
            return await build_snapshot(self.capabilities.store, self.settings, trace_ctx)
        except Exception as e:
            # An unreadable store still gets an answer, from an empty snapshot.
            log.warning(
                "context_snapshot_failed",
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
            )
            return ContextSnapshot()

    async def _call_model(
        self,
        exchange: ExchangeState,
        trace_ctx: TraceContext,
        tools: list[dict] | None,
    ) -> LLMResponse | None:
        client = self.capabilities.reasoning_client
        if client is None:
            exchange.error = ReasoningUnavailableError("No reasoning service configured")
            return None
        try:
            return await client.respond(
                messages=exchange.messages,
                tools=tools,
                system_prompt=exchange.system_prompt,
                trace_ctx=trace_ctx,
            )
        except LLMClientError as e:
            exchange.error = e
            return None

    async def _finish(
        self, exchange: ExchangeState, delivered: bool, trace_ctx: TraceContext
    ) -> None:
        """Audit and publish the exchange; called exactly once per exchange."""
        reply = exchange.final_reply or ""
        max_chars = self.settings.audit_response_max_chars
        activity = Activity(
            action=Channel.CHAT.value,
            details={
                "input": exchange.message,
                "intent": exchange.intent.action.value,
                "tools_used": exchange.tools_used,
                "response": reply[:max_chars],
                "delivered": delivered,
                "used_fallback": exchange.used_fallback,
                "trace_id": trace_ctx.trace_id,
            },
        )
        try:
            await self.capabilities.store.log_activity(activity)
        except Exception as e:
            log.error(
                AUDIT_WRITE_FAILED,
                channel=Channel.CHAT.value,
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
            )

        await publish_quietly(
            self.capabilities.publisher,
            CHAT_COMPLETED_TOPIC,
            {
                "tools_used": exchange.tools_used,
                "used_fallback": exchange.used_fallback,
                "delivered": delivered,
                "trace_id": trace_ctx.trace_id,
            },
            trace_ctx,
        )

        event = EXCHANGE_COMPLETED if delivered else EXCHANGE_FAILED
        log.info(
            event,
            state=exchange.state.value,
            delivered=delivered,
            used_fallback=exchange.used_fallback,
            tools_used=exchange.tools_used,
            steps=len(exchange.steps),
            trace_id=trace_ctx.trace_id,
        )

    @staticmethod
    def _outcome(exchange: ExchangeState) -> ConversationOutcome:
        return ConversationOutcome(
            reply=exchange.final_reply or "",
            intent=exchange.intent,
            tools_used=exchange.tools_used,
            tool_results=exchange.tool_results,
            used_fallback=exchange.used_fallback,
            trace_id=exchange.trace_id,
            steps=[dict(step) for step in exchange.steps],
        )
