"""KPI metric tools."""

from typing import Any

from ops_copilot.store.base import EntityStore
from ops_copilot.store.types import Activity, Metric, MetricCategory
from ops_copilot.tools.executor import ToolArgumentError
from ops_copilot.tools.types import ToolContext, ToolDefinition, ToolParameter

METRIC_CATEGORY_VALUES = [c.value for c in MetricCategory]


def parse_metric_category(value: str | None) -> MetricCategory | None:
    """Resolve a category string, raising ToolArgumentError for unknown categories."""
    if not value:
        return None
    try:
        return MetricCategory(value.lower())
    except ValueError:
        raise ToolArgumentError(f"Unknown metric category '{value}'") from None


class MetricTools:
    """Metric executors bound to one store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def create_metric(
        self,
        ctx: ToolContext,
        key: str,
        value: float,
        category: str,
        unit: str | None = None,
        period: str | None = None,
    ) -> dict[str, Any]:
        """Record one metric observation."""
        metric = Metric(
            key=key.strip().lower(),
            value=float(value),
            category=parse_metric_category(category),
            unit=unit,
            period=period,
        )
        stored = await self.store.record_metric(metric)
        await self.store.log_activity(
            Activity(
                action="metric_recorded",
                actor=ctx.actor,
                details={
                    "via": ctx.channel.value,
                    "trace_id": ctx.trace_id,
                    "key": stored.key,
                    "value": stored.value,
                    "category": stored.category.value,
                },
            )
        )
        return {"metric": stored.model_dump(mode="json")}

    async def get_metrics(self, ctx: ToolContext, category: str | None = None) -> dict[str, Any]:
        """Latest value per metric key, optionally for one category."""
        resolved = parse_metric_category(category)
        latest = await self.store.latest_metrics(resolved)
        return {"category": resolved.value if resolved else None, "metrics": latest}


create_metric_tool = ToolDefinition(
    name="create_metric",
    description="Record a KPI observation such as MRR, burn or pipeline value",
    parameters=[
        ToolParameter(
            name="key", type="string", description="Metric key, e.g. 'mrr'", required=True
        ),
        ToolParameter(name="value", type="number", description="Observed value", required=True),
        ToolParameter(
            name="category",
            type="string",
            description="Metric category",
            required=True,
            enum=METRIC_CATEGORY_VALUES,
        ),
        ToolParameter(name="unit", type="string", description="Unit, e.g. 'usd' or 'months'"),
        ToolParameter(name="period", type="string", description="Reporting period, e.g. 'month'"),
    ],
    mutates=True,
)

get_metrics_tool = ToolDefinition(
    name="get_metrics",
    description="Get the latest value of each KPI metric, optionally for one category",
    parameters=[
        ToolParameter(
            name="category",
            type="string",
            description="Metric category (omit for all)",
            enum=METRIC_CATEGORY_VALUES,
        ),
    ],
)
