"""Tests for ToolRegistry."""

import pytest

from ops_copilot.store import InMemoryEntityStore
from ops_copilot.tools import ToolDefinition, ToolParameter, ToolRegistry, build_registry

BUSINESS_TOOLS = [
    "create_entity",
    "get_entity",
    "update_entity",
    "delete_entity",
    "search_entities",
    "list_entities",
    "create_metric",
    "get_metrics",
    "get_tasks_due",
    "get_team_workload",
]


def _echo_tool(name: str = "echo") -> ToolDefinition:
    return ToolDefinition(
        name=name,
        description="Echo a message",
        parameters=[
            ToolParameter(name="message", type="string", description="Text", required=True),
            ToolParameter(
                name="tone", type="string", description="Tone", enum=["calm", "loud"]
            ),
            ToolParameter(name="repeat", type="integer", description="Times", default=1),
        ],
    )


def test_registry_initialization() -> None:
    """Test ToolRegistry initializes empty."""
    registry = ToolRegistry()
    assert registry.list_tool_names() == []
    assert registry.list_tools() == []


def test_register_and_get_tool() -> None:
    """Test a registered tool can be looked up with its executor."""
    registry = ToolRegistry()

    def executor(ctx, message: str) -> dict:
        return {"message": message}

    tool_def = _echo_tool()
    registry.register(tool_def, executor)

    assert registry.get_tool("echo") == (tool_def, executor)
    assert registry.get_tool("missing") is None


def test_register_duplicate_tool_raises_error() -> None:
    """Test registering duplicate tool raises ValueError."""
    registry = ToolRegistry()
    registry.register(_echo_tool(), lambda ctx: {})

    with pytest.raises(ValueError, match="already registered"):
        registry.register(_echo_tool(), lambda ctx: {})


def test_tool_definitions_for_llm_format() -> None:
    """Test definitions are rendered in OpenAI function format."""
    registry = ToolRegistry()
    registry.register(_echo_tool(), lambda ctx, message: {})

    [definition] = registry.get_tool_definitions_for_llm()

    assert definition["type"] == "function"
    function = definition["function"]
    assert function["name"] == "echo"
    assert function["parameters"]["required"] == ["message"]
    assert function["parameters"]["properties"]["tone"]["enum"] == ["calm", "loud"]
    assert function["parameters"]["properties"]["repeat"]["default"] == 1
    assert function["parameters"]["additionalProperties"] is False


def test_json_schema_overrides_simple_type() -> None:
    """Test complex parameters publish their full JSON schema."""
    registry = ToolRegistry()
    schema = {"type": "array", "items": {"type": "string"}}
    registry.register(
        ToolDefinition(
            name="tagger",
            description="Tag things",
            parameters=[
                ToolParameter(name="tags", type="array", description="Tags", json_schema=schema)
            ],
        ),
        lambda ctx, tags: {},
    )

    [definition] = registry.get_tool_definitions_for_llm()

    assert definition["function"]["parameters"]["properties"]["tags"] == schema


def test_build_registry_registers_catalogue_in_order() -> None:
    """Test the business catalogue is registered in a stable order."""
    registry = build_registry(InMemoryEntityStore())

    assert registry.list_tool_names() == BUSINESS_TOOLS
    mutating = {t.name for t in registry.list_tools() if t.mutates}
    assert mutating == {"create_entity", "update_entity", "delete_entity", "create_metric"}


def test_describe_lists_every_tool() -> None:
    """Test the plain-text description has one line per tool."""
    registry = build_registry(InMemoryEntityStore())

    lines = registry.describe().splitlines()

    assert len(lines) == len(BUSINESS_TOOLS)
    assert lines[0].startswith("- create_entity: ")
