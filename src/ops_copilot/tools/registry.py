"""Tool registry for tool discovery and registration.

The registry maps tool names to their definitions and executor callables.
It is the only action surface available to both the command dispatcher and
the reasoning service.
"""

from collections.abc import Callable
from typing import Any

from ops_copilot.telemetry import get_logger
from ops_copilot.tools.types import ToolDefinition

log = get_logger(__name__)


class ToolRegistry:
    """Central registry of available tools."""

    def __init__(self) -> None:
        """Initialize empty tool registry."""
        self._tools: dict[str, tuple[ToolDefinition, Callable[..., Any]]] = {}

    def register(self, tool_def: ToolDefinition, executor: Callable[..., Any]) -> None:
        """Register a tool with its definition and executor function.

        Args:
            tool_def: Tool definition with metadata.
            executor: Callable invoked as ``executor(ctx, **arguments)`` where
                ``ctx`` is a ToolContext. May be sync or async and must
                return a plain-data dict.

        Raises:
            ValueError: If tool name already registered.
        """
        if tool_def.name in self._tools:
            raise ValueError(f"Tool '{tool_def.name}' is already registered")

        self._tools[tool_def.name] = (tool_def, executor)
        log.debug("tool_registered", tool_name=tool_def.name, mutates=tool_def.mutates)

    def get_tool(self, name: str) -> tuple[ToolDefinition, Callable[..., Any]] | None:
        """Retrieve tool definition and executor.

        Args:
            name: Tool name to retrieve.

        Returns:
            Tuple of (ToolDefinition, executor) if found, None otherwise.
        """
        return self._tools.get(name)

    def list_tools(self) -> list[ToolDefinition]:
        """List all registered tool definitions, in registration order."""
        return [tool_def for tool_def, _ in self._tools.values()]

    def list_tool_names(self) -> list[str]:
        """List names of all registered tools."""
        return list(self._tools.keys())

    def get_tool_definitions_for_llm(self) -> list[dict[str, Any]]:
        """Get tool definitions in OpenAI function calling format.

        Returns:
            List of ``{"type": "function", "function": {...}}`` entries.
        """
        result = []
        for tool_def in self.list_tools():
            properties: dict[str, Any] = {}
            for param in tool_def.parameters:
                if param.json_schema:
                    properties[param.name] = param.json_schema
                    continue
                schema: dict[str, Any] = {"type": param.type, "description": param.description}
                if param.enum:
                    schema["enum"] = param.enum
                if param.default is not None:
                    schema["default"] = param.default
                properties[param.name] = schema

            result.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool_def.name,
                        "description": tool_def.description,
                        "parameters": {
                            "type": "object",
                            "properties": properties,
                            "required": [
                                param.name for param in tool_def.parameters if param.required
                            ],
                            "additionalProperties": False,
                        },
                    },
                }
            )
        return result

    def describe(self) -> str:
        """One line per tool (name and description) for plain-text prompts."""
        return "\n".join(f"- {t.name}: {t.description}" for t in self.list_tools())
