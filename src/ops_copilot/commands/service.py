"""Direct-command entry point: classify, dispatch, audit, publish."""

from ops_copilot.capabilities import Capabilities
from ops_copilot.commands.advanced import AdvancedClassifier
from ops_copilot.commands.dispatcher import CommandDispatcher
from ops_copilot.commands.types import CommandResult
from ops_copilot.intent import classify_with_rule
from ops_copilot.intent.types import IntentAction, ParsedIntent
from ops_copilot.store.events import COMMAND_COMPLETED_TOPIC, publish_quietly
from ops_copilot.store.types import Activity
from ops_copilot.telemetry import (
    AUDIT_WRITE_FAILED,
    COMMAND_COMPLETED,
    COMMAND_RECEIVED,
    INTENT_CLASSIFIED,
    TraceContext,
    get_logger,
)
from ops_copilot.tools.executor import ToolExecutionLayer
from ops_copilot.tools.types import Channel

log = get_logger(__name__)

_MUTATING_ACTIONS = frozenset({IntentAction.CREATE, IntentAction.UPDATE, IntentAction.DELETE})


class CommandService:
    """Handles one direct command end to end."""

    def __init__(self, capabilities: Capabilities) -> None:
        """Initialize the service.

        Args:
            capabilities: Store, reasoning client, publisher, registry and settings.
        """
        self.capabilities = capabilities
        self.executor = ToolExecutionLayer(
            capabilities.registry,
            default_timeout_seconds=capabilities.settings.tool_timeout_seconds,
        )
        self.dispatcher = CommandDispatcher(self.executor, capabilities.publisher)
        self.advanced = (
            AdvancedClassifier(capabilities.reasoning_client)
            if capabilities.reasoning_client is not None
            else None
        )

    async def classify(
        self, input_text: str, use_advanced: bool, trace_ctx: TraceContext
    ) -> ParsedIntent:
        """Rule classification, or reasoning-service classification when asked and available."""
        if use_advanced and self.advanced is not None:
            intent = await self.advanced.classify(input_text, trace_ctx)
            if intent is not None:
                log.info(
                    INTENT_CLASSIFIED,
                    action=intent.action.value,
                    entity_type=intent.entity_type,
                    source="reasoning_service",
                    trace_id=trace_ctx.trace_id,
                )
                return intent

        intent, rule_name = classify_with_rule(input_text)
        log.info(
            INTENT_CLASSIFIED,
            action=intent.action.value,
            entity_type=intent.entity_type,
            rule=rule_name,
            source="rules",
            trace_id=trace_ctx.trace_id,
        )
        return intent

    async def handle(
        self,
        input_text: str,
        use_advanced: bool = False,
        trace_ctx: TraceContext | None = None,
    ) -> CommandResult:
        """Classify and execute a command, then audit and publish it.

        Args:
            input_text: Free-text command.
            use_advanced: Ask the reasoning service to classify when configured.
            trace_ctx: Trace context; a new trace is started when omitted.

        Returns:
            CommandResult with a non-empty message.
        """
        trace_ctx = trace_ctx or TraceContext.new_trace()
        log.info(
            COMMAND_RECEIVED,
            input_length=len(input_text),
            use_advanced=use_advanced,
            trace_id=trace_ctx.trace_id,
        )

        intent = await self.classify(input_text, use_advanced, trace_ctx)
        result = await self.dispatcher.dispatch(intent, input_text, trace_ctx)

        mutated = result.success and intent.action in _MUTATING_ACTIONS
        entities_affected = result.entities_affected if mutated else []
        await self._audit(input_text, intent, result, entities_affected, trace_ctx)
        await publish_quietly(
            self.capabilities.publisher,
            COMMAND_COMPLETED_TOPIC,
            {
                "input": input_text,
                "action": intent.action.value,
                "success": result.success,
                "entities_affected": entities_affected,
                "trace_id": trace_ctx.trace_id,
            },
            trace_ctx,
        )

        log.info(
            COMMAND_COMPLETED,
            action=intent.action.value,
            success=result.success,
            entities_affected=len(entities_affected),
            trace_id=trace_ctx.trace_id,
        )
        return result

    async def _audit(
        self,
        input_text: str,
        intent: ParsedIntent,
        result: CommandResult,
        entities_affected: list[str],
        trace_ctx: TraceContext,
    ) -> None:
        activity = Activity(
            action=Channel.COMMAND.value,
            details={
                "input": input_text,
                "intent": intent.model_dump(mode="json"),
                "entities_affected": entities_affected,
                "response": result.message,
                "success": result.success,
                "trace_id": trace_ctx.trace_id,
            },
        )
        try:
            await self.capabilities.store.log_activity(activity)
        except Exception as e:
            # Audit failures never change the command result.
            log.error(
                AUDIT_WRITE_FAILED,
                channel=Channel.COMMAND.value,
                error=str(e),
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
            )
