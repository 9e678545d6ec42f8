"""Command Dispatcher: executes a ParsedIntent through the tool layer.

Every action maps to one or more tool calls issued on the ``ai_command``
channel, so direct commands and conversational tool calls share the same
validation, error mapping and audit trail.
"""

import uuid
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

from ops_copilot.commands.types import CommandResult, VisualizationSpec
from ops_copilot.intent.types import IntentAction, ParsedIntent
from ops_copilot.security import sanitize_error_message
from ops_copilot.store.events import SYNC_REQUESTED_TOPIC, EventPublisher, publish_quietly
from ops_copilot.store.types import EntityType, MetricCategory
from ops_copilot.telemetry import TraceContext, get_logger
from ops_copilot.tools.executor import ToolExecutionLayer
from ops_copilot.tools.types import Channel, ToolCall, ToolErrorKind, ToolResult

log = get_logger(__name__)

UNKNOWN_COMMAND_MESSAGE = 'I didn\'t understand that command. Try: "Create project: My Project"'
COMMAND_SUGGESTIONS = [
    'Try: "Create project: My Project"',
    'Try: "Show all tasks"',
    'Try: "Search customer revenue"',
    'Try: "Show metrics"',
]
CREATE_HELP_MESSAGE = 'Could not determine what to create. Try: "Create project: My Project Name"'
CREATE_SUGGESTIONS = [
    'Try: "Create project: My Project Name"',
    'Try: "Add task: Review contract"',
]
UPDATE_HELP_MESSAGE = 'Could not determine what to update. Try: "Mark task <id> as done"'
DELETE_HELP_MESSAGE = 'Could not determine what to delete. Try: "Delete task <id>"'
NO_METRICS_MESSAGE = "No metrics found"
STORE_UNAVAILABLE_MESSAGE = (
    "Could not complete that command because the record store is unavailable."
)

# update_entity parameters; anything else an intent carries goes into metadata.
_UPDATE_FIELDS = frozenset(
    {
        "title",
        "description",
        "status",
        "priority",
        "category",
        "owner",
        "due_date",
        "parent_id",
        "tags",
    }
)
_CREATE_OPTIONAL_FIELDS = tuple(sorted(_UPDATE_FIELDS - {"title"}))
_TABLE_COLUMNS = ["title", "type", "status", "priority", "owner", "due_date"]
_SCAN_LIMIT = 1000
_METRIC_CATEGORIES = frozenset(c.value for c in MetricCategory)
_FORECAST_PERIODS = 3


class StoreUnavailableError(Exception):
    """A tool call failed because the record store could not be reached."""

    pass


def format_value(value: float) -> str:
    """Render a metric value without a trailing ``.0``."""
    number = float(value)
    if number.is_integer():
        return str(int(number))
    return str(round(number, 2))


def format_metrics(metrics: dict[str, float]) -> str:
    """``k: v, k: v`` in insertion order."""
    return ", ".join(f"{key}: {format_value(value)}" for key, value in metrics.items())


def _failed(intent: ParsedIntent, message: str, **fields: Any) -> CommandResult:
    return CommandResult(intent=intent, success=False, message=message, **fields)


def _type_label(entity_type: str) -> str:
    return entity_type.replace("_", " ")


def _canonical_type(entity_type: str | None) -> str | None:
    resolved = EntityType.from_str(entity_type) if entity_type else None
    return resolved.value if resolved else entity_type


def _plural_label(entity_type: str | None) -> str:
    resolved = EntityType.from_str(entity_type) if entity_type else None
    return resolved.plural if resolved else "items"


def _headline(label: str) -> str:
    return label[:1].upper() + label[1:]


def _table(title: str, entities: list[dict[str, Any]]) -> VisualizationSpec:
    rows = [{column: entity.get(column) for column in _TABLE_COLUMNS} for entity in entities]
    return VisualizationSpec(
        type="table", title=title, data=rows, config={"columns": _TABLE_COLUMNS}
    )


def _compliance_bucket(entity: dict[str, Any], today: date) -> str:
    override = (entity.get("metadata") or {}).get("compliance_status")
    if override in ("compliant", "pending", "at_risk"):
        return override
    status = entity.get("status")
    if status in ("completed", "archived"):
        return "compliant"
    if status == "blocked":
        return "at_risk"
    due = entity.get("due_date")
    if due and date.fromisoformat(due) < today:
        return "at_risk"
    return "pending"


class CommandDispatcher:
    """Turns a ParsedIntent into tool calls and a human-readable CommandResult."""

    def __init__(self, executor: ToolExecutionLayer, publisher: EventPublisher) -> None:
        """Initialize the dispatcher.

        Args:
            executor: Tool execution layer over the business tool registry.
            publisher: Event publisher used for sync requests.
        """
        self.executor = executor
        self.publisher = publisher
        self._handlers: dict[
            IntentAction, Callable[[ParsedIntent, TraceContext], Awaitable[CommandResult]]
        ] = {
            IntentAction.CREATE: self._handle_create,
            IntentAction.LIST: self._handle_list,
            IntentAction.SEARCH: self._handle_search,
            IntentAction.UPDATE: self._handle_update,
            IntentAction.DELETE: self._handle_delete,
            IntentAction.METRICS: self._handle_metrics,
            IntentAction.REPORT: self._handle_report,
            IntentAction.COMPLIANCE: self._handle_compliance,
            IntentAction.SYNC: self._handle_sync,
            IntentAction.FORECAST: self._handle_forecast,
            IntentAction.UNKNOWN: self._handle_unknown,
        }

    async def dispatch(
        self, intent: ParsedIntent, input_text: str, trace_ctx: TraceContext
    ) -> CommandResult:
        """Execute an intent.

        Args:
            intent: Classified intent.
            input_text: The caller's original text (for logging).
            trace_ctx: Trace context for the command.

        Returns:
            CommandResult; never raises.
        """
        handler = self._handlers.get(intent.action, self._handle_unknown)
        try:
            return await handler(intent, trace_ctx)
        except StoreUnavailableError as e:
            log.warning(
                "command_store_unavailable",
                action=intent.action.value,
                error=str(e),
                trace_id=trace_ctx.trace_id,
            )
            return _failed(intent, STORE_UNAVAILABLE_MESSAGE)
        except Exception as e:
            log.error(
                "command_dispatch_failed",
                action=intent.action.value,
                input_length=len(input_text),
                error_type=type(e).__name__,
                trace_id=trace_ctx.trace_id,
                exc_info=True,
            )
            return _failed(intent, sanitize_error_message(e))

    async def _call(
        self, tool_name: str, arguments: dict[str, Any], trace_ctx: TraceContext
    ) -> ToolResult:
        call = ToolCall(
            id=f"cmd-{uuid.uuid4().hex[:8]}",
            name=tool_name,
            arguments={k: v for k, v in arguments.items() if v is not None},
        )
        result = await self.executor.execute_tool(call, trace_ctx, Channel.COMMAND)
        if result.error_kind in (
            ToolErrorKind.PERSISTENCE_FAILURE,
            ToolErrorKind.TIMEOUT,
            ToolErrorKind.UNKNOWN_TOOL,
        ):
            raise StoreUnavailableError(result.error or result.error_kind.value)
        return result

    # Handlers

    async def _handle_create(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        data = intent.data or {}
        title = data.get("title")
        if not intent.entity_type or not title or EntityType.from_str(intent.entity_type) is None:
            return _failed(intent, CREATE_HELP_MESSAGE, suggestions=list(CREATE_SUGGESTIONS))

        label = _type_label(_canonical_type(intent.entity_type) or "")
        arguments: dict[str, Any] = {"type": _canonical_type(intent.entity_type), "title": title}
        for key in _CREATE_OPTIONAL_FIELDS:
            if key in data:
                arguments[key] = data[key]
        if intent.category and "category" not in arguments:
            arguments["category"] = intent.category

        result = await self._call("create_entity", arguments, trace_ctx)
        if not result.success:
            return _failed(intent, f"Could not create {label}: {result.error}")

        entity = result.output["entity"]
        return CommandResult(
            intent=intent,
            action="create_entity",
            entities=[entity],
            message=f'Created {label}: "{entity["title"]}"',
        )

    async def _handle_list(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        filters = intent.filters or {}

        if "due_within_days" in filters:
            days = filters["due_within_days"]
            result = await self._call(
                "get_tasks_due", {"days": days, "owner": filters.get("owner")}, trace_ctx
            )
            if not result.success:
                return _failed(intent, f"Could not list tasks: {result.error}")
            tasks = result.output["tasks"]
            window = "due today" if days == 0 else f"due in the next {days} days"
            return CommandResult(
                intent=intent,
                action="get_tasks_due",
                entities=tasks,
                message=f"Found {len(tasks)} tasks {window}",
                data={"days": days, "overdue": result.output["overdue"]},
                visualization=_table("Tasks due", tasks),
            )

        plural = _plural_label(intent.entity_type)
        result = await self._call(
            "list_entities",
            {
                "type": _canonical_type(intent.entity_type),
                "status": filters.get("status"),
                "owner": filters.get("owner"),
                "category": filters.get("category"),
                "source": filters.get("source"),
            },
            trace_ctx,
        )
        if not result.success:
            return _failed(intent, f"Could not list {plural}: {result.error}")

        entities = result.output["entities"]
        return CommandResult(
            intent=intent,
            action="list_entities",
            entities=entities,
            message=f"Found {len(entities)} {plural}",
            visualization=_table(_headline(plural), entities),
        )

    async def _handle_search(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        query = (intent.query or "").strip()
        if not query:
            return _failed(intent, "Please provide a search query")

        result = await self._call(
            "search_entities",
            {"query": query, "type": _canonical_type(intent.entity_type)},
            trace_ctx,
        )
        if not result.success:
            return _failed(intent, f"Search failed: {result.error}")

        entities = result.output["entities"]
        return CommandResult(
            intent=intent,
            action="search_entities",
            entities=entities,
            message=f'Found {len(entities)} results for "{query}"',
            visualization=_table(f"Results for {query}", entities) if entities else None,
        )

    async def _handle_update(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        data = dict(intent.data or {})
        entity_id = data.pop("id", None)
        if not entity_id:
            return _failed(intent, UPDATE_HELP_MESSAGE)
        if not data:
            return _failed(
                intent,
                "Please specify what to change. "
                f'Try: "Update task {entity_id} status to completed"',
            )

        arguments: dict[str, Any] = {"id": entity_id}
        extras = {}
        for key, value in data.items():
            if key in _UPDATE_FIELDS:
                arguments[key] = value
            else:
                extras[key] = value
        if extras:
            arguments["metadata"] = extras

        result = await self._call("update_entity", arguments, trace_ctx)
        if result.error_kind == ToolErrorKind.NOT_FOUND:
            return _failed(intent, f'Entity "{entity_id}" not found.')
        if not result.success:
            return _failed(intent, f'Could not update "{entity_id}": {result.error}')

        entity = result.output["entity"]
        return CommandResult(
            intent=intent,
            action="update_entity",
            entities=[entity],
            message=f'Updated {_type_label(entity["type"])}: "{entity["title"]}"',
            data={"changes": result.output["changes"]},
        )

    async def _handle_delete(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        entity_id = (intent.data or {}).get("id")
        if not entity_id:
            return _failed(intent, DELETE_HELP_MESSAGE)

        result = await self._call("delete_entity", {"id": entity_id}, trace_ctx)
        if result.error_kind == ToolErrorKind.NOT_FOUND:
            return _failed(intent, f'Entity "{entity_id}" not found.')
        if not result.success:
            return _failed(intent, f'Could not delete "{entity_id}": {result.error}')

        entity = result.output["entity"]
        return CommandResult(
            intent=intent,
            action="delete_entity",
            entities=[entity],
            message=f'Deleted {_type_label(entity["type"])}: "{entity["title"]}"',
        )

    async def _latest_metrics(
        self, category: str | None, trace_ctx: TraceContext
    ) -> dict[str, float]:
        known = category if category in _METRIC_CATEGORIES else None
        result = await self._call("get_metrics", {"category": known}, trace_ctx)
        return result.output.get("metrics", {}) if result.success else {}

    async def _handle_metrics(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        metrics = await self._latest_metrics(intent.category, trace_ctx)
        if not metrics:
            return CommandResult(
                intent=intent, action="get_metrics", metrics={}, message=NO_METRICS_MESSAGE
            )

        return CommandResult(
            intent=intent,
            action="get_metrics",
            metrics=metrics,
            message=f"Current metrics: {format_metrics(metrics)}",
            data={"category": intent.category, "period": intent.period},
            visualization=VisualizationSpec(
                type="kpi_cards",
                title=f"{(intent.category or 'key').capitalize()} metrics",
                data=[{"label": k, "value": v} for k, v in metrics.items()],
            ),
        )

    async def _handle_report(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        if intent.entity_type == "team_member" and intent.category == "workload":
            return await self._team_workload_report(intent, trace_ctx)
        if intent.entity_type == "compliance":
            return await self._handle_compliance(intent, trace_ctx)
        if intent.entity_type:
            return await self._status_report(intent, trace_ctx)

        metrics = await self._latest_metrics(intent.category, trace_ctx)
        title = f"{(intent.category or 'metrics').capitalize()} report"
        if not metrics:
            return CommandResult(
                intent=intent, action="get_metrics", metrics={}, message=NO_METRICS_MESSAGE
            )
        return CommandResult(
            intent=intent,
            action="get_metrics",
            metrics=metrics,
            message=f"{title}: {format_metrics(metrics)}",
            visualization=VisualizationSpec(
                type="chart",
                chart_type="bar",
                title=title,
                data=[{"label": k, "value": v} for k, v in metrics.items()],
            ),
        )

    async def _status_report(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        plural = _plural_label(intent.entity_type)
        result = await self._call(
            "list_entities",
            {"type": _canonical_type(intent.entity_type), "limit": _SCAN_LIMIT},
            trace_ctx,
        )
        if not result.success:
            return _failed(intent, f"Could not build report: {result.error}")

        entities = result.output["entities"]
        if not entities:
            return CommandResult(
                intent=intent, action="list_entities", entities=[], message=f"No {plural} found"
            )

        counts = Counter(e["status"] for e in entities)
        breakdown = ", ".join(f"{status}: {n}" for status, n in sorted(counts.items()))
        return CommandResult(
            intent=intent,
            action="list_entities",
            entities=entities,
            message=f"{_headline(plural)} report: {len(entities)} total ({breakdown})",
            data={"status_counts": dict(counts), "period": intent.period},
            visualization=VisualizationSpec(
                type="chart",
                chart_type="pie",
                title=f"{_headline(plural)} by status",
                data=[{"label": s, "value": n} for s, n in sorted(counts.items())],
            ),
        )

    async def _team_workload_report(
        self, intent: ParsedIntent, trace_ctx: TraceContext
    ) -> CommandResult:
        result = await self._call("get_team_workload", {}, trace_ctx)
        members = result.output.get("members", []) if result.success else []
        if not members:
            return CommandResult(
                intent=intent, action="get_team_workload", message="No team members found"
            )

        summary = ", ".join(
            f"{m['name']}: {m['open_tasks']} open"
            + (f" ({m['overdue_tasks']} overdue)" if m["overdue_tasks"] else "")
            for m in members
        )
        return CommandResult(
            intent=intent,
            action="get_team_workload",
            message=f"Team workload: {summary}",
            data=result.output,
            visualization=VisualizationSpec(
                type="chart",
                chart_type="bar",
                title="Team workload",
                data=[
                    {"label": m["name"], "open": m["open_tasks"], "overdue": m["overdue_tasks"]}
                    for m in members
                ],
            ),
        )

    async def _handle_compliance(
        self, intent: ParsedIntent, trace_ctx: TraceContext
    ) -> CommandResult:
        framework = intent.category
        label = framework.upper() if framework else "Compliance"
        result = await self._call(
            "list_entities",
            {"type": "compliance", "category": framework, "limit": _SCAN_LIMIT},
            trace_ctx,
        )
        if not result.success:
            return _failed(intent, f"Could not check compliance: {result.error}")

        items = result.output["entities"]
        if not items:
            scope = f" for {label}" if framework else ""
            return CommandResult(
                intent=intent,
                action="list_entities",
                entities=[],
                message=f"No compliance items tracked{scope}",
            )

        today = date.today()
        counts = {"compliant": 0, "pending": 0, "at_risk": 0}
        for item in items:
            counts[_compliance_bucket(item, today)] += 1

        heading = f"{label} compliance" if framework else "Compliance"
        return CommandResult(
            intent=intent,
            action="list_entities",
            entities=items,
            message=(
                f"{heading}: {counts['compliant']} compliant, {counts['pending']} pending, "
                f"{counts['at_risk']} at risk"
            ),
            data={"framework": framework, **counts},
            visualization=_table(f"{heading} items", items),
        )

    async def _handle_sync(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        source = (intent.filters or {}).get("source")
        published = await publish_quietly(
            self.publisher,
            SYNC_REQUESTED_TOPIC,
            {
                "source": source,
                "entity_type": intent.entity_type,
                "via": Channel.COMMAND.value,
                "trace_id": trace_ctx.trace_id,
            },
            trace_ctx,
        )
        if not published:
            return _failed(intent, "Could not request a sync right now. Please try again.")

        result = await self._call(
            "list_entities",
            {"type": _canonical_type(intent.entity_type), "source": source, "limit": _SCAN_LIMIT},
            trace_ctx,
        )
        held = result.output.get("count", 0) if result.success else 0
        plural = _plural_label(intent.entity_type)

        if intent.entity_type == "document" and not source:
            message = f"Document indexing requested. {held} documents currently indexed."
        else:
            origin = source.capitalize() if source else "all sources"
            message = f"Sync requested for {origin} {plural}. {held} {plural} currently held."
        return CommandResult(
            intent=intent,
            action="sync_requested",
            message=message,
            data={"source": source, "entity_type": intent.entity_type, "held": held},
        )

    async def _handle_forecast(
        self, intent: ParsedIntent, trace_ctx: TraceContext
    ) -> CommandResult:
        metrics = await self._latest_metrics("finance", trace_ctx)
        mrr = metrics.get("mrr")
        if mrr is None:
            return _failed(intent, "Not enough finance data to forecast. Record MRR first.")

        period = intent.period or "month"
        growth = metrics.get("mrr_growth_pct", 0.0)
        projection = [
            round(mrr * (1 + growth / 100) ** step, 2) for step in range(1, _FORECAST_PERIODS + 1)
        ]

        burn = metrics.get("burn")
        cash = metrics.get("cash_balance", metrics.get("cash"))
        runway = round(cash / burn, 1) if cash is not None and burn else metrics.get("runway")

        message = (
            f"MRR forecast: {format_value(mrr)} now, {format_value(projection[-1])} in "
            f"{_FORECAST_PERIODS} {period}s ({format_value(growth)}% growth per {period})."
        )
        if runway is not None:
            message += f" Runway: {format_value(runway)} months at current burn."

        series = [{"period": "now", "mrr": mrr}] + [
            {"period": f"+{step} {period}", "mrr": value}
            for step, value in enumerate(projection, start=1)
        ]
        return CommandResult(
            intent=intent,
            action="forecast",
            metrics=metrics,
            message=message,
            data={"projection": projection, "growth_pct": growth, "runway_months": runway},
            visualization=VisualizationSpec(
                type="chart", chart_type="line", title="MRR forecast", data=series
            ),
        )

    async def _handle_unknown(self, intent: ParsedIntent, trace_ctx: TraceContext) -> CommandResult:
        return _failed(intent, UNKNOWN_COMMAND_MESSAGE, suggestions=list(COMMAND_SUGGESTIONS))
