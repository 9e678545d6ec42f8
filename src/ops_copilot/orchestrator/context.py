"""Context snapshot: a bounded, plain-text view of the store for the prompt."""

from typing import Any

from ops_copilot.commands.dispatcher import format_value
from ops_copilot.config import AppConfig
from ops_copilot.orchestrator.types import ContextSnapshot
from ops_copilot.store.base import EntityStore
from ops_copilot.store.types import Entity, EntityFilters, EntityType
from ops_copilot.telemetry import TraceContext, get_logger

log = get_logger(__name__)

_SNAPSHOT_FIELDS = ("id", "title", "status", "priority", "owner", "category", "due_date")


def _slim(entity: Entity) -> dict[str, Any]:
    record = entity.model_dump(mode="json", include=set(_SNAPSHOT_FIELDS))
    for key in ("role", "utilization", "value", "stage"):
        if key in entity.metadata:
            record[key] = entity.metadata[key]
    return record


async def build_snapshot(
    store: EntityStore, settings: AppConfig, trace_ctx: TraceContext | None = None
) -> ContextSnapshot:
    """Read a bounded snapshot from the store.

    Only open tasks and projects are included, most recently updated first.

    Args:
        store: Record store.
        settings: Provides the per-section limits.
        trace_ctx: Trace context for logging.

    Returns:
        ContextSnapshot with at most the configured number of records per section.
    """

    async def _section(
        entity_type: EntityType, limit: int, open_only: bool
    ) -> list[dict[str, Any]]:
        if limit == 0:
            return []
        # Over-fetch so closed records do not crowd out open ones.
        fetched = await store.list_entities(
            EntityFilters(type=entity_type, limit=min(limit * 4, 1000))
        )
        kept = [e for e in fetched if e.is_open] if open_only else fetched
        return [_slim(e) for e in kept[:limit]]

    snapshot = ContextSnapshot(
        tasks=await _section(EntityType.TASK, settings.snapshot_max_tasks, open_only=True),
        projects=await _section(EntityType.PROJECT, settings.snapshot_max_projects, open_only=True),
        team=await _section(EntityType.TEAM_MEMBER, settings.snapshot_max_team, open_only=False),
        customers=await _section(
            EntityType.CUSTOMER, settings.snapshot_max_customers, open_only=False
        ),
        metrics=await store.latest_metrics(),
    )
    log.debug(
        "context_snapshot_built",
        tasks=len(snapshot.tasks),
        projects=len(snapshot.projects),
        team=len(snapshot.team),
        customers=len(snapshot.customers),
        metrics=len(snapshot.metrics),
        **(trace_ctx.log_fields() if trace_ctx else {}),
    )
    return snapshot


def _describe(record: dict[str, Any]) -> str:
    details = [
        f"{key}: {record[key]}"
        for key in ("status", "priority", "owner", "due_date", "category", "role", "utilization")
        if record.get(key) not in (None, "")
    ]
    suffix = f" ({', '.join(details)})" if details else ""
    return f"- [{record.get('id')}] {record.get('title')}{suffix}"


def format_snapshot(snapshot: ContextSnapshot) -> str:
    """Render a snapshot as plain text sections for the system prompt."""
    if snapshot.is_empty:
        return "No business records are available yet."

    sections = []
    if snapshot.metrics:
        lines = [f"- {key}: {format_value(value)}" for key, value in snapshot.metrics.items()]
        sections.append("Latest metrics:\n" + "\n".join(lines))
    for heading, records in (
        ("Open tasks", snapshot.tasks),
        ("Active projects", snapshot.projects),
        ("Team", snapshot.team),
        ("Customers", snapshot.customers),
    ):
        if records:
            sections.append(f"{heading}:\n" + "\n".join(_describe(r) for r in records))
    return "\n\n".join(sections)
