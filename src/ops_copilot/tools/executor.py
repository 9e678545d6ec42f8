"""Tool execution layer with argument validation, error mapping and telemetry.

``ToolExecutionLayer.execute_tool`` never raises: every failure becomes a
``ToolResult`` with ``success=False`` and an ``error_kind``.
"""

import asyncio
import functools
import inspect
import time
from typing import Any

from pydantic import ValidationError

from ops_copilot.security import sanitize_error_message
from ops_copilot.store.base import RecordNotFoundError
from ops_copilot.telemetry import (
    TOOL_CALL_COMPLETED,
    TOOL_CALL_FAILED,
    TOOL_CALL_STARTED,
    TraceContext,
    get_logger,
)
from ops_copilot.tools.registry import ToolRegistry
from ops_copilot.tools.types import (
    Channel,
    ToolCall,
    ToolContext,
    ToolDefinition,
    ToolErrorKind,
    ToolResult,
)

log = get_logger(__name__)

DEFAULT_TOOL_TIMEOUT_SECONDS = 10.0


class ToolArgumentError(ValueError):
    """Raised by executors when arguments are present but unusable.

    Any ValueError raised by an executor is reported as a validation failure;
    this subclass just names the intent.
    """

    pass


def _missing_required(tool_def: ToolDefinition, arguments: dict[str, Any]) -> list[str]:
    return [
        param.name
        for param in tool_def.parameters
        if param.required and arguments.get(param.name) in (None, "")
    ]


def _invalid_enums(tool_def: ToolDefinition, arguments: dict[str, Any]) -> list[str]:
    problems = []
    for param in tool_def.parameters:
        value = arguments.get(param.name)
        if param.enum and value is not None and str(value).lower() not in param.enum:
            problems.append(f"{param.name} must be one of {', '.join(param.enum)}")
    return problems


def _summarize_validation_error(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        location = ".".join(str(loc) for loc in err["loc"]) or "value"
        parts.append(f"{location}: {err['msg']}")
    return "; ".join(parts)


class ToolExecutionLayer:
    """Runs registered tools on behalf of the dispatcher and the orchestrator."""

    def __init__(
        self,
        registry: ToolRegistry,
        default_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize tool execution layer.

        Args:
            registry: Tool registry containing registered tools.
            default_timeout_seconds: Timeout for tools that do not set one.
        """
        self.registry = registry
        self.default_timeout_seconds = default_timeout_seconds

    async def execute_tool(
        self,
        call: ToolCall,
        trace_ctx: TraceContext,
        channel: Channel,
    ) -> ToolResult:
        """Execute one tool call.

        Args:
            call: The requested invocation.
            trace_ctx: Trace context for telemetry.
            channel: Whether the call came from a direct command or a chat
                exchange; forwarded to the executor for audit tagging.

        Returns:
            ToolResult for this call; never raises.
        """
        tool_entry = self.registry.get_tool(call.name)
        if not tool_entry:
            log.warning(
                TOOL_CALL_FAILED,
                tool_name=call.name,
                error_kind=ToolErrorKind.UNKNOWN_TOOL.value,
                trace_id=trace_ctx.trace_id,
            )
            return self._failure(
                call,
                ToolErrorKind.UNKNOWN_TOOL,
                f"Unknown tool '{call.name}'. "
                f"Available: {', '.join(self.registry.list_tool_names())}",
            )

        tool_def, executor = tool_entry

        # Drop arguments the tool does not declare (reasoning services invent some).
        valid_param_names = {param.name for param in tool_def.parameters}
        arguments = {k: v for k, v in call.arguments.items() if k in valid_param_names}
        invalid_params = set(call.arguments) - valid_param_names
        if invalid_params:
            log.warning(
                "tool_call_invalid_parameters_filtered",
                tool_name=call.name,
                invalid_parameters=sorted(invalid_params),
                trace_id=trace_ctx.trace_id,
            )

        missing = _missing_required(tool_def, arguments)
        problems = [f"missing required parameter '{name}'" for name in missing]
        problems.extend(_invalid_enums(tool_def, arguments))
        if problems:
            log.warning(
                TOOL_CALL_FAILED,
                tool_name=call.name,
                error_kind=ToolErrorKind.VALIDATION_FAILED.value,
                problems=problems,
                trace_id=trace_ctx.trace_id,
            )
            return self._failure(call, ToolErrorKind.VALIDATION_FAILED, "; ".join(problems))

        _, span_id = trace_ctx.new_span()
        log.info(
            TOOL_CALL_STARTED,
            tool_name=call.name,
            tool_call_id=call.id,
            channel=channel.value,
            arguments=arguments,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )

        tool_ctx = ToolContext(channel=channel, trace_id=trace_ctx.trace_id)
        timeout = tool_def.timeout_seconds or self.default_timeout_seconds
        start_time = time.monotonic()

        try:
            output = await asyncio.wait_for(self._invoke(executor, tool_ctx, arguments), timeout)
        except RecordNotFoundError as e:
            return self._logged_failure(
                call, ToolErrorKind.NOT_FOUND, f'Entity "{e.entity_id}" not found', start_time,
                trace_ctx, span_id,
            )
        except ValidationError as e:
            return self._logged_failure(
                call, ToolErrorKind.VALIDATION_FAILED, _summarize_validation_error(e),
                start_time, trace_ctx, span_id,
            )
        except ValueError as e:
            return self._logged_failure(
                call, ToolErrorKind.VALIDATION_FAILED, str(e), start_time, trace_ctx, span_id
            )
        except asyncio.TimeoutError:
            return self._logged_failure(
                call, ToolErrorKind.TIMEOUT, f"Tool '{call.name}' timed out after {timeout}s",
                start_time, trace_ctx, span_id,
            )
        except Exception as e:
            log.error(
                "tool_executor_exception",
                tool_name=call.name,
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
                exc_info=True,
            )
            return self._logged_failure(
                call, ToolErrorKind.PERSISTENCE_FAILURE, sanitize_error_message(e), start_time,
                trace_ctx, span_id,
            )

        latency_ms = (time.monotonic() - start_time) * 1000
        log.info(
            TOOL_CALL_COMPLETED,
            tool_name=call.name,
            tool_call_id=call.id,
            success=True,
            latency_ms=latency_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        return ToolResult(
            tool_call_id=call.id,
            tool_name=call.name,
            success=True,
            output=output if isinstance(output, dict) else {"result": output},
            latency_ms=latency_ms,
        )

    async def execute_all(
        self,
        calls: list[ToolCall],
        trace_ctx: TraceContext,
        channel: Channel,
    ) -> list[ToolResult]:
        """Execute calls one at a time, in the given order.

        Returns:
            One result per call, in call order.
        """
        results = []
        for call in calls:
            results.append(await self.execute_tool(call, trace_ctx, channel))
        return results

    @staticmethod
    async def _invoke(executor: Any, tool_ctx: ToolContext, arguments: dict[str, Any]) -> Any:
        if inspect.iscoroutinefunction(executor):
            return await executor(tool_ctx, **arguments)
        # Sync executor - run in thread pool to avoid blocking
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None, functools.partial(executor, tool_ctx, **arguments)
        )

    @staticmethod
    def _failure(call: ToolCall, kind: ToolErrorKind, message: str) -> ToolResult:
        return ToolResult(
            tool_call_id=call.id,
            tool_name=call.name,
            success=False,
            error_kind=kind,
            error=message,
        )

    @staticmethod
    def _logged_failure(
        call: ToolCall,
        kind: ToolErrorKind,
        message: str,
        start_time: float,
        trace_ctx: TraceContext,
        span_id: str,
    ) -> ToolResult:
        latency_ms = (time.monotonic() - start_time) * 1000
        log.warning(
            TOOL_CALL_FAILED,
            tool_name=call.name,
            tool_call_id=call.id,
            error_kind=kind.value,
            error=message,
            latency_ms=latency_ms,
            trace_id=trace_ctx.trace_id,
            span_id=span_id,
        )
        return ToolResult(
            tool_call_id=call.id,
            tool_name=call.name,
            success=False,
            error_kind=kind,
            error=message,
            latency_ms=latency_ms,
        )
