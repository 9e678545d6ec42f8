"""Tool registry, execution layer and the business tool catalogue.

This module provides:
- Tool registry for tool discovery and registration
- Tool execution layer with argument validation, error mapping and telemetry
- Business tools over the record store (entities, metrics, team)
"""

from ops_copilot.store.base import EntityStore
from ops_copilot.tools.entities import (
    EntityTools,
    create_entity_tool,
    delete_entity_tool,
    get_entity_tool,
    list_entities_tool,
    search_entities_tool,
    update_entity_tool,
)
from ops_copilot.tools.executor import ToolArgumentError, ToolExecutionLayer
from ops_copilot.tools.metrics import MetricTools, create_metric_tool, get_metrics_tool
from ops_copilot.tools.registry import ToolRegistry
from ops_copilot.tools.team import TeamTools, get_tasks_due_tool, get_team_workload_tool
from ops_copilot.tools.types import (
    Channel,
    ToolCall,
    ToolContext,
    ToolDefinition,
    ToolErrorKind,
    ToolParameter,
    ToolResult,
)

__all__ = [
    # Core exports
    "ToolRegistry",
    "ToolExecutionLayer",
    "ToolArgumentError",
    "ToolDefinition",
    "ToolParameter",
    "ToolCall",
    "ToolResult",
    "ToolContext",
    "ToolErrorKind",
    "Channel",
    # Registration functions
    "register_business_tools",
    "build_registry",
]


def register_business_tools(registry: ToolRegistry, store: EntityStore) -> None:
    """Register the business tool catalogue, bound to ``store``.

    Args:
        registry: Tool registry to register tools with.
        store: Record store every executor operates on.
    """
    entities = EntityTools(store)
    metrics = MetricTools(store)
    team = TeamTools(store)

    registry.register(create_entity_tool, entities.create_entity)
    registry.register(get_entity_tool, entities.get_entity)
    registry.register(update_entity_tool, entities.update_entity)
    registry.register(delete_entity_tool, entities.delete_entity)
    registry.register(search_entities_tool, entities.search_entities)
    registry.register(list_entities_tool, entities.list_entities)
    registry.register(create_metric_tool, metrics.create_metric)
    registry.register(get_metrics_tool, metrics.get_metrics)
    registry.register(get_tasks_due_tool, team.get_tasks_due)
    registry.register(get_team_workload_tool, team.get_team_workload)


def build_registry(store: EntityStore) -> ToolRegistry:
    """Create a registry with the business tools registered against ``store``."""
    registry = ToolRegistry()
    register_business_tools(registry, store)
    return registry
