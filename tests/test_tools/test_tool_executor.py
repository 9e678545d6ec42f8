"""Tests for ToolExecutionLayer."""

import asyncio

import pytest

from ops_copilot.store import PersistenceError, RecordNotFoundError
from ops_copilot.telemetry import TraceContext
from ops_copilot.tools import (
    Channel,
    ToolArgumentError,
    ToolCall,
    ToolContext,
    ToolDefinition,
    ToolErrorKind,
    ToolExecutionLayer,
    ToolParameter,
    ToolRegistry,
)


def _definition(name: str, timeout_seconds: float | None = None) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description=f"{name} tool",
        parameters=[
            ToolParameter(name="path", type="string", description="Path", required=True),
            ToolParameter(name="mode", type="string", description="Mode", enum=["fast", "slow"]),
        ],
        timeout_seconds=timeout_seconds,
    )


@pytest.fixture
def seen_contexts() -> list[ToolContext]:
    """Contexts received by the recording tool."""
    return []


@pytest.fixture
def registry(seen_contexts: list[ToolContext]) -> ToolRegistry:
    """Registry with one tool per outcome."""
    reg = ToolRegistry()

    async def record(ctx: ToolContext, path: str, mode: str | None = None) -> dict:
        seen_contexts.append(ctx)
        return {"path": path, "mode": mode}

    def sync_tool(ctx: ToolContext, path: str, mode: str | None = None) -> str:
        return f"read {path}"

    async def missing(ctx: ToolContext, path: str, mode: str | None = None) -> dict:
        raise RecordNotFoundError(path)

    async def bad_argument(ctx: ToolContext, path: str, mode: str | None = None) -> dict:
        raise ToolArgumentError("path must be absolute")

    async def broken(ctx: ToolContext, path: str, mode: str | None = None) -> dict:
        raise PersistenceError("connection to 10.0.0.5:5432 refused")

    async def slow(ctx: ToolContext, path: str, mode: str | None = None) -> dict:
        await asyncio.sleep(1)
        return {}

    reg.register(_definition("record"), record)
    reg.register(_definition("sync_tool"), sync_tool)
    reg.register(_definition("missing"), missing)
    reg.register(_definition("bad_argument"), bad_argument)
    reg.register(_definition("broken"), broken)
    reg.register(_definition("slow", timeout_seconds=0.01), slow)
    return reg


@pytest.fixture
def execution_layer(registry: ToolRegistry) -> ToolExecutionLayer:
    """Execution layer over the test registry."""
    return ToolExecutionLayer(registry)


def _call(name: str, **arguments) -> ToolCall:
    return ToolCall(id=f"call-{name}", name=name, arguments=arguments)


@pytest.mark.asyncio
async def test_execute_tool_success(
    execution_layer: ToolExecutionLayer,
    trace_ctx: TraceContext,
    seen_contexts: list[ToolContext],
) -> None:
    """Test a successful call echoes the call id and forwards the channel."""
    result = await execution_layer.execute_tool(
        _call("record", path="/a", mode="FAST"), trace_ctx, Channel.CHAT
    )

    assert result.success is True
    assert result.tool_call_id == "call-record"
    assert result.output == {"path": "/a", "mode": "FAST"}
    assert result.latency_ms >= 0
    assert seen_contexts[0].channel == Channel.CHAT
    assert seen_contexts[0].trace_id == trace_ctx.trace_id


@pytest.mark.asyncio
async def test_sync_executor_output_is_wrapped(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test sync executors run and non-dict output is wrapped."""
    result = await execution_layer.execute_tool(
        _call("sync_tool", path="/a"), trace_ctx, Channel.COMMAND
    )

    assert result.success is True
    assert result.output == {"result": "read /a"}


@pytest.mark.asyncio
async def test_unknown_tool(execution_layer: ToolExecutionLayer, trace_ctx: TraceContext) -> None:
    """Test unknown tools fail without raising."""
    result = await execution_layer.execute_tool(_call("nope"), trace_ctx, Channel.CHAT)

    assert result.success is False
    assert result.error_kind == ToolErrorKind.UNKNOWN_TOOL
    assert "nope" in (result.error or "")


@pytest.mark.asyncio
async def test_missing_required_argument(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test missing required parameters are rejected before execution."""
    result = await execution_layer.execute_tool(_call("record"), trace_ctx, Channel.CHAT)

    assert result.error_kind == ToolErrorKind.VALIDATION_FAILED
    assert "path" in (result.error or "")


@pytest.mark.asyncio
async def test_invalid_enum_value(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test enum parameters reject values outside the allowed set."""
    result = await execution_layer.execute_tool(
        _call("record", path="/a", mode="sideways"), trace_ctx, Channel.CHAT
    )

    assert result.error_kind == ToolErrorKind.VALIDATION_FAILED
    assert "mode must be one of fast, slow" in (result.error or "")


@pytest.mark.asyncio
async def test_undeclared_arguments_are_dropped(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test arguments the tool does not declare are filtered out."""
    result = await execution_layer.execute_tool(
        _call("record", path="/a", invented=True), trace_ctx, Channel.CHAT
    )

    assert result.success is True
    assert result.output == {"path": "/a", "mode": None}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "tool_name,expected_kind",
    [
        ("missing", ToolErrorKind.NOT_FOUND),
        ("bad_argument", ToolErrorKind.VALIDATION_FAILED),
        ("broken", ToolErrorKind.PERSISTENCE_FAILURE),
        ("slow", ToolErrorKind.TIMEOUT),
    ],
)
async def test_executor_failures_are_mapped(
    execution_layer: ToolExecutionLayer,
    trace_ctx: TraceContext,
    tool_name: str,
    expected_kind: ToolErrorKind,
) -> None:
    """Test executor exceptions become typed failed results."""
    result = await execution_layer.execute_tool(
        _call(tool_name, path="abc123"), trace_ctx, Channel.COMMAND
    )

    assert result.success is False
    assert result.error_kind == expected_kind
    assert result.error


@pytest.mark.asyncio
async def test_not_found_message_names_the_id(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test not-found results carry the missing id."""
    result = await execution_layer.execute_tool(
        _call("missing", path="abc123"), trace_ctx, Channel.COMMAND
    )

    assert result.error == 'Entity "abc123" not found'


@pytest.mark.asyncio
async def test_persistence_failure_is_sanitized(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test internal details never reach the caller."""
    result = await execution_layer.execute_tool(
        _call("broken", path="/a"), trace_ctx, Channel.COMMAND
    )

    assert "10.0.0.5" not in (result.error or "")


@pytest.mark.asyncio
async def test_execute_all_preserves_order_and_count(
    execution_layer: ToolExecutionLayer, trace_ctx: TraceContext
) -> None:
    """Test one result per call, in call order, failures included."""
    calls = [
        _call("record", path="/1"),
        _call("nope"),
        _call("missing", path="x"),
        _call("sync_tool", path="/2"),
    ]

    results = await execution_layer.execute_all(calls, trace_ctx, Channel.CHAT)

    assert [r.tool_call_id for r in results] == [c.id for c in calls]
    assert [r.success for r in results] == [True, False, False, True]
