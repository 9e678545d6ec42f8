"""Fallback Responder: rule-based prose answers from the context snapshot.

Used when no reasoning service is configured or an exchange ends in the
error state. Pure: reads only the message and the snapshot, performs no I/O
and always returns non-empty text.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

from ops_copilot.commands.dispatcher import format_value
from ops_copilot.orchestrator.types import ContextSnapshot

DEFAULT_REPLY = (
    "I can't reach the assistant service right now. You can still run commands such as "
    '"Show all tasks" or "Show metrics".'
)

_LIST_LIMIT = 3

Responder = Callable[[ContextSnapshot, date], str]


@dataclass(frozen=True)
class TopicRule:
    """Named message pattern and the responder used when it matches."""

    name: str
    pattern: re.Pattern[str]
    respond: Responder


def _metric(snapshot: ContextSnapshot, *keys: str) -> tuple[str, float] | None:
    for key in keys:
        if key in snapshot.metrics:
            return key, snapshot.metrics[key]
    return None


def _titles(records: list[dict[str, Any]]) -> str:
    return ", ".join(str(r.get("title")) for r in records[:_LIST_LIMIT])


def _overdue(tasks: list[dict[str, Any]], today: date) -> list[dict[str, Any]]:
    return [t for t in tasks if t.get("due_date") and date.fromisoformat(t["due_date"]) < today]


def _summary(snapshot: ContextSnapshot, today: date) -> str:
    parts = []
    if snapshot.tasks:
        parts.append(f"{len(snapshot.tasks)} open tasks")
    if snapshot.projects:
        parts.append(f"{len(snapshot.projects)} active projects")
    if snapshot.customers:
        parts.append(f"{len(snapshot.customers)} customers")
    mrr = _metric(snapshot, "mrr")
    if mrr:
        parts.append(f"MRR of {format_value(mrr[1])}")
    return ", ".join(parts)


def _greeting(snapshot: ContextSnapshot, today: date) -> str:
    summary = _summary(snapshot, today)
    reply = "Hello! I can help with projects, tasks, customers and company metrics."
    if summary:
        reply += f" Right now you have {summary}."
    return reply


def _revenue(snapshot: ContextSnapshot, today: date) -> str:
    mrr = _metric(snapshot, "mrr")
    arr = _metric(snapshot, "arr")
    revenue = _metric(snapshot, "revenue")
    if not (mrr or arr or revenue):
        return "I don't have revenue figures yet. Record MRR as a finance metric to track it."
    parts = []
    if mrr:
        parts.append(f"Current MRR is {format_value(mrr[1])}")
    if arr:
        parts.append(f"ARR is {format_value(arr[1])}")
    elif mrr:
        parts.append(f"which annualizes to about {format_value(mrr[1] * 12)}")
    if revenue:
        parts.append(f"recorded revenue is {format_value(revenue[1])}")
    growth = _metric(snapshot, "mrr_growth_pct")
    if growth:
        parts.append(f"MRR growth is {format_value(growth[1])}% per month")
    return "; ".join(parts) + "."


def _burn(snapshot: ContextSnapshot, today: date) -> str:
    burn = _metric(snapshot, "burn", "burn_rate")
    cash = _metric(snapshot, "cash_balance", "cash")
    runway = _metric(snapshot, "runway", "runway_months")
    if not (burn or cash or runway):
        return (
            "I don't have burn or cash figures yet. "
            "Record burn and cash balance as finance metrics."
        )
    parts = []
    if burn:
        parts.append(f"Monthly burn is {format_value(burn[1])}")
    if cash:
        parts.append(f"cash on hand is {format_value(cash[1])}")
    if cash and burn and burn[1] > 0:
        parts.append(f"giving about {format_value(round(cash[1] / burn[1], 1))} months of runway")
    elif runway:
        parts.append(f"runway is {format_value(runway[1])} months")
    return "; ".join(parts) + "."


def _pipeline(snapshot: ContextSnapshot, today: date) -> str:
    sales = {
        k: v
        for k, v in snapshot.metrics.items()
        if any(word in k for word in ("pipeline", "deal", "win", "booking", "quota"))
    }
    if not sales:
        return "I don't have pipeline figures yet. Sync opportunities from your CRM to see them."
    return "Sales pipeline: " + ", ".join(
        f"{k.replace('_', ' ')} {format_value(v)}" for k, v in sales.items()
    ) + "."


def _tasks(snapshot: ContextSnapshot, today: date) -> str:
    if not snapshot.tasks:
        return "There are no open tasks right now."
    reply = f"You have {len(snapshot.tasks)} open tasks"
    overdue = _overdue(snapshot.tasks, today)
    if overdue:
        reply += f", {len(overdue)} overdue ({_titles(overdue)})"
    dated = sorted((t for t in snapshot.tasks if t.get("due_date")), key=lambda t: t["due_date"])
    upcoming = [t for t in dated if t not in overdue]
    if upcoming:
        reply += f". Next up: {_titles(upcoming)}"
    return reply + "."


def _projects(snapshot: ContextSnapshot, today: date) -> str:
    if not snapshot.projects:
        return 'There are no active projects. Try: "Create project: My Project".'
    count = len(snapshot.projects)
    return f"There are {count} active projects, including {_titles(snapshot.projects)}."


def _team(snapshot: ContextSnapshot, today: date) -> str:
    if not snapshot.team:
        return "No team members are recorded yet."
    open_by_owner: dict[str, int] = {}
    for task in snapshot.tasks:
        owner = (task.get("owner") or "").lower()
        open_by_owner[owner] = open_by_owner.get(owner, 0) + 1
    members = []
    for member in snapshot.team[:5]:
        name = str(member.get("title"))
        detail = f"{open_by_owner.get(name.lower(), 0)} open tasks"
        if member.get("role"):
            detail = f"{member['role']}, {detail}"
        members.append(f"{name} ({detail})")
    return f"The team has {len(snapshot.team)} members: " + "; ".join(members) + "."


def _customers(snapshot: ContextSnapshot, today: date) -> str:
    if not snapshot.customers:
        return "No customers are recorded yet."
    count = len(snapshot.customers)
    return f"You have {count} customers on record, including {_titles(snapshot.customers)}."


def _help(snapshot: ContextSnapshot, today: date) -> str:
    return (
        "I can create, update and find projects, tasks and customers, report on metrics, "
        'team workload and compliance. Try: "Create project: My Project", "Show all tasks", '
        '"Show weekly MRR vs burn" or "GST compliance status".'
    )


def _default(snapshot: ContextSnapshot, today: date) -> str:
    summary = _summary(snapshot, today)
    if not summary:
        return DEFAULT_REPLY
    return f"I can't reach the assistant service right now. Here's where things stand: {summary}."


def _rule(name: str, pattern: str, respond: Responder) -> TopicRule:
    return TopicRule(name=name, pattern=re.compile(pattern, re.IGNORECASE), respond=respond)


# Order matters: first matching topic wins.
TOPIC_RULES: tuple[TopicRule, ...] = (
    _rule("greeting", r"^\s*(?:hi|hello|hey|good\s+(?:morning|afternoon|evening))\b", _greeting),
    _rule("revenue", r"\b(?:mrr|arr|revenue|income|recurring)\b", _revenue),
    _rule("burn", r"\b(?:burn|runway|cash|spend(?:ing)?)\b", _burn),
    _rule("pipeline", r"\b(?:pipeline|deals?|opportunit(?:y|ies)|sales|win\s+rate)\b", _pipeline),
    _rule("tasks", r"\b(?:tasks?|to-?dos?|due|overdue|deadlines?)\b", _tasks),
    _rule("projects", r"\bprojects?\b", _projects),
    _rule("team", r"\b(?:team|who|workload|utili[sz]ation|staff)\b", _team),
    _rule("customers", r"\b(?:customers?|clients?|accounts?)\b", _customers),
    _rule("help", r"\b(?:help|what\s+can\s+you\s+do|commands?)\b", _help),
)


class FallbackResponder:
    """Deterministic topic-based responder."""

    def __init__(self, rules: tuple[TopicRule, ...] = TOPIC_RULES) -> None:
        self.rules = rules

    def match(self, message: str) -> TopicRule | None:
        """First rule whose pattern matches ``message``."""
        for rule in self.rules:
            if rule.pattern.search(message):
                return rule
        return None

    def topic(self, message: str) -> str:
        """Name of the matching topic, or ``"default"``."""
        rule = self.match(message)
        return rule.name if rule else "default"

    def respond(
        self, message: str, snapshot: ContextSnapshot | None = None, today: date | None = None
    ) -> str:
        """Answer ``message`` from ``snapshot`` alone.

        Args:
            message: The user's message.
            snapshot: Context snapshot; an empty one is used when omitted.
            today: Reference date for overdue checks; defaults to today.

        Returns:
            Non-empty reply text.
        """
        snapshot = snapshot or ContextSnapshot()
        today = today or date.today()
        rule = self.match(message)
        respond = rule.respond if rule else _default
        reply = respond(snapshot, today).strip()
        return reply or DEFAULT_REPLY
