"""Task-due and team-workload tools."""

from datetime import date, timedelta
from typing import Any

from ops_copilot.store.base import EntityStore
from ops_copilot.store.types import Entity, EntityFilters, EntityType
from ops_copilot.tools.entities import entity_payload
from ops_copilot.tools.executor import ToolArgumentError
from ops_copilot.tools.types import ToolContext, ToolDefinition, ToolParameter

# Upper bound on records scanned when aggregating.
SCAN_LIMIT = 1000


def _is_overdue(task: Entity, today: date) -> bool:
    return task.due_date is not None and task.due_date < today


class TeamTools:
    """Task and workload executors bound to one store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def get_tasks_due(
        self, ctx: ToolContext, days: int = 7, owner: str | None = None
    ) -> dict[str, Any]:
        """Open tasks due within ``days`` days (overdue ones included), soonest first."""
        try:
            window = int(days)
        except (TypeError, ValueError):
            raise ToolArgumentError(f"days must be a whole number, got {days!r}") from None
        if window < 0:
            raise ToolArgumentError("days must not be negative")

        today = date.today()
        tasks = await self.store.list_entities(
            EntityFilters(
                type=EntityType.TASK,
                owner=owner,
                due_on_or_before=today + timedelta(days=window),
                limit=SCAN_LIMIT,
            )
        )
        open_tasks = sorted((t for t in tasks if t.is_open), key=lambda t: t.due_date)
        return {
            "days": window,
            "owner": owner,
            "count": len(open_tasks),
            "overdue": sum(1 for t in open_tasks if _is_overdue(t, today)),
            "tasks": [entity_payload(t) for t in open_tasks],
        }

    async def get_team_workload(self, ctx: ToolContext) -> dict[str, Any]:
        """Open and overdue task counts per team member."""
        today = date.today()
        members = await self.store.list_entities(
            EntityFilters(type=EntityType.TEAM_MEMBER, limit=SCAN_LIMIT)
        )
        tasks = await self.store.list_entities(
            EntityFilters(type=EntityType.TASK, limit=SCAN_LIMIT)
        )
        open_tasks = [t for t in tasks if t.is_open]

        by_owner: dict[str, list[Entity]] = {}
        for task in open_tasks:
            by_owner.setdefault((task.owner or "").lower(), []).append(task)

        workload = []
        for member in sorted(members, key=lambda m: m.title.lower()):
            assigned = by_owner.get(member.title.lower(), [])
            workload.append(
                {
                    "id": member.id,
                    "name": member.title,
                    "role": member.metadata.get("role") or member.category,
                    "open_tasks": len(assigned),
                    "overdue_tasks": sum(1 for t in assigned if _is_overdue(t, today)),
                    "utilization": member.metadata.get("utilization"),
                }
            )

        return {
            "members": workload,
            "total_open_tasks": len(open_tasks),
            "unassigned_tasks": len(by_owner.get("", [])),
        }


get_tasks_due_tool = ToolDefinition(
    name="get_tasks_due",
    description="List open tasks due within the next N days, including overdue ones",
    parameters=[
        ToolParameter(
            name="days", type="integer", description="Window in days (default: 7)", default=7
        ),
        ToolParameter(name="owner", type="string", description="Only tasks for this assignee"),
    ],
)

get_team_workload_tool = ToolDefinition(
    name="get_team_workload",
    description="Show open and overdue task counts per team member",
    parameters=[],
)
