"""Ordered rule cascade used by the intent classifier.

Each rule pairs a compiled pattern (the predicate) with an extractor that
turns the match into a ParsedIntent. Rules are evaluated top to bottom and
the first match wins, so specific phrasings must precede the general rules
that would otherwise swallow them ("create SaaS project: X" before
"create project: X", "create compliance report" before "create <type>").
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from ops_copilot.intent.types import IntentAction, ParsedIntent
from ops_copilot.intent.vocabulary import (
    FRAMEWORK_WORDS,
    INTEGRATION_SOURCES,
    PERIOD_WORDS,
    PROJECT_CATEGORY_WORDS,
    STATUS_WORDS,
    TYPE_WORDS,
    clean_title,
    normalize_entity_type,
    normalize_field,
    normalize_framework,
    normalize_source,
    normalize_status,
    resolve_metric_category,
    resolve_period,
)

Extractor = Callable[[re.Match[str], str], ParsedIntent]

# A type word or connective on its own is never an id ("delete task", "mark task as done").
_ID = (
    r"(?:id\s+|#)?"
    rf"(?!(?:{TYPE_WORDS}|entity|record|item|as|to)(?![\w-]))(?P<id>[\w-]+)"
)
_TYPED_ID = rf"(?:(?P<type>{TYPE_WORDS})\s+|(?:entity|record|item)\s+)?{_ID}"


@dataclass(frozen=True)
class IntentRule:
    """One entry of the cascade.

    Attributes:
        name: Stable rule name, used in logs and tests.
        pattern: Case-insensitive pattern matched against the normalized text.
        extract: Builds the ParsedIntent from the match and the normalized text.
    """

    name: str
    pattern: re.Pattern[str]
    extract: Extractor

    def match(self, text: str) -> re.Match[str] | None:
        """Return the match if this rule applies to ``text``."""
        return self.pattern.search(text)


def _rule(name: str, pattern: str, extract: Extractor) -> IntentRule:
    return IntentRule(name=name, pattern=re.compile(pattern, re.IGNORECASE), extract=extract)


def _typed(match: re.Match[str]) -> str | None:
    word = match.groupdict().get("type")
    return normalize_entity_type(word) if word else None


# Extractors


def _create_categorized_project(match: re.Match[str], text: str) -> ParsedIntent:
    category = match.group("category").lower()
    if category == "service":
        category = "services"
    data: dict[str, str] = {"category": category}
    title = clean_title(match.group("title"))
    if title:
        data["title"] = title
    return ParsedIntent(
        action=IntentAction.CREATE, entity_type="project", data=data, category=category
    )


def _report(match: re.Match[str], text: str) -> ParsedIntent:
    subject = (match.group("subject") or match.group("short_subject") or "").lower()
    period = resolve_period(subject)
    words = [w for w in subject.split() if not re.fullmatch(PERIOD_WORDS, w)]

    if "compliance" in words:
        framework = " ".join(words[: words.index("compliance")])
        return ParsedIntent(
            action=IntentAction.REPORT,
            entity_type="compliance",
            category=normalize_framework(framework),
            period=period,
        )

    remainder = " ".join(words)
    if remainder and re.fullmatch(TYPE_WORDS, remainder, re.IGNORECASE):
        return ParsedIntent(
            action=IntentAction.REPORT,
            entity_type=normalize_entity_type(remainder),
            period=period,
        )

    return ParsedIntent(
        action=IntentAction.REPORT,
        category=resolve_metric_category(remainder) or (remainder or None),
        period=period,
    )


def _team_workload(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(action=IntentAction.REPORT, entity_type="team_member", category="workload")


def _create_entity(match: re.Match[str], text: str) -> ParsedIntent:
    title = clean_title(match.group("title"))
    return ParsedIntent(
        action=IntentAction.CREATE,
        entity_type=_typed(match),
        data={"title": title} if title else {},
    )


def _create_unspecified(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(action=IntentAction.CREATE, query=text.lower())


def _delete_entity(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(
        action=IntentAction.DELETE, entity_type=_typed(match), data={"id": match.group("id")}
    )


def _delete_unspecified(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(action=IntentAction.DELETE, query=text.lower())


def _mark_status(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(
        action=IntentAction.UPDATE,
        entity_type=_typed(match),
        data={"id": match.group("id"), "status": normalize_status(match.group("status"))},
    )


def _complete_entity(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(
        action=IntentAction.UPDATE,
        entity_type=_typed(match),
        data={"id": match.group("id"), "status": "completed"},
    )


def _update_field(match: re.Match[str], text: str) -> ParsedIntent:
    field = normalize_field(match.group("field"))
    value: str = clean_title(match.group("value")) or ""
    if field == "status":
        value = normalize_status(value)
    elif field in ("priority", "category"):
        value = value.lower()
    return ParsedIntent(
        action=IntentAction.UPDATE,
        entity_type=_typed(match),
        data={"id": match.group("id"), field: value},
    )


def _update_unspecified(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(action=IntentAction.UPDATE, query=text.lower())


_DUE_WINDOWS = {"today": 0, "tomorrow": 1, "this week": 7, "next week": 14, "this month": 30}


def _tasks_due(match: re.Match[str], text: str) -> ParsedIntent:
    days_text = match.group("days")
    if days_text:
        days = int(days_text)
    else:
        days = _DUE_WINDOWS[" ".join(match.group("when").lower().split())]
    filters: dict[str, object] = {"due_within_days": days}
    owner = clean_title(match.group("owner"))
    if owner:
        filters["owner"] = owner
    return ParsedIntent(action=IntentAction.LIST, entity_type="task", filters=filters)


def _compliance(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(
        action=IntentAction.COMPLIANCE,
        entity_type="compliance",
        category=normalize_framework(match.group("framework")),
    )


def _forecast(match: re.Match[str], text: str) -> ParsedIntent:
    subject = (match.group("subject") or "").strip()
    return ParsedIntent(
        action=IntentAction.FORECAST,
        query=subject.lower() or None,
        category=resolve_metric_category(subject) or "finance",
        period=resolve_period(subject),
    )


def _list_entities(match: re.Match[str], text: str) -> ParsedIntent:
    filters: dict[str, str] = {}
    if match.group("status"):
        filters["status"] = normalize_status(match.group("status"))
    if match.group("category"):
        filters["category"] = match.group("category").lower()
    owner = clean_title(match.group("owner"))
    if owner:
        filters["owner"] = owner
    return ParsedIntent(
        action=IntentAction.LIST, entity_type=_typed(match), filters=filters or None
    )


def _metrics(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(
        action=IntentAction.METRICS,
        category=resolve_metric_category(match.group("subject")),
        period=resolve_period(text),
    )


def _search(match: re.Match[str], text: str) -> ParsedIntent:
    query = clean_title(match.group("query"))
    return ParsedIntent(action=IntentAction.SEARCH, query=query.lower() if query else None)


def _sync_documents(match: re.Match[str], text: str) -> ParsedIntent:
    return ParsedIntent(action=IntentAction.SYNC, entity_type="document")


def _sync_source(match: re.Match[str], text: str) -> ParsedIntent:
    source = normalize_source(match.group("source") or match.group("source_after"))
    what = match.group("what")
    entity_type = normalize_entity_type(what) if what else None
    if source is None and entity_type in ("opportunity", "deal", "customer"):
        source = "salesforce"
    if entity_type is None and source == "salesforce":
        entity_type = "opportunity"
    return ParsedIntent(
        action=IntentAction.SYNC,
        entity_type=entity_type,
        filters={"source": source} if source else None,
    )


_METRIC_SUBJECTS = (
    r"mrr|arr|burn|runway|cash|revenue|metrics|kpis?|pipeline|sales|marketing|finance|"
    r"financials|team\s+metrics|utili[sz]ation|headcount|cac|win\s+rate"
)
_SHOW = r"(?:show|list|get|view|display)\s+(?:me\s+)?"
_ASK = (
    r"(?:show|get|view|display|what'?s|what\s+is|what\s+are|how\s+is|how\s+are|how's)"
    r"\s+(?:me\s+)?"
)

RULES: tuple[IntentRule, ...] = (
    _rule(
        "create_categorized_project",
        rf"^(?:create|add|new)\s+(?:a\s+|an\s+|new\s+)?(?P<category>{PROJECT_CATEGORY_WORDS})"
        r"\s+project\b\s*:?\s*(?P<title>.*)$",
        _create_categorized_project,
    ),
    _rule(
        "report",
        r"^(?:(?:generate|build|prepare|run)\s+(?:an?\s+|the\s+)?"
        r"(?P<subject>(?:[\w&-]+\s+){0,3}?)"
        r"|(?:create|make)\s+(?:an?\s+|the\s+)?(?P<short_subject>(?:[\w&-]+\s+){0,2}?))"
        r"report\b",
        _report,
    ),
    _rule(
        "team_workload",
        rf"^{_ASK}(?:the\s+|my\s+|our\s+)?team(?:'s)?\s+"
        r"(?:workload|utili[sz]ation|capacity|load)\b",
        _team_workload,
    ),
    _rule(
        "create_entity",
        rf"^(?:create|add|new)\s+(?:a\s+|an\s+|new\s+)?(?P<type>{TYPE_WORDS})\b"
        r"\s*:?\s*(?P<title>.*)$",
        _create_entity,
    ),
    _rule("create_unspecified", r"^(?:create|add|new)\b", _create_unspecified),
    _rule(
        "delete_entity",
        rf"^(?:delete|remove)\s+(?:the\s+)?{_TYPED_ID}$",
        _delete_entity,
    ),
    _rule("delete_unspecified", r"^(?:delete|remove)\b", _delete_unspecified),
    _rule(
        "mark_status",
        rf"^(?:mark|set)\s+{_TYPED_ID}\s+(?:as\s+|to\s+)?(?P<status>{STATUS_WORDS})$",
        _mark_status,
    ),
    _rule(
        "complete_entity",
        rf"^(?:complete|finish|close)\s+{_TYPED_ID}$",
        _complete_entity,
    ),
    _rule(
        "update_field",
        rf"^(?:update|change|edit)\s+{_TYPED_ID}\s+(?:set\s+)?"
        r"(?P<field>[a-z_][a-z_ ]*?)\s*(?:=|:|\bto\b)\s*(?P<value>.+)$",
        _update_field,
    ),
    _rule(
        "update_unspecified",
        r"^(?:update|change|edit|mark|set|complete|finish|close)\b",
        _update_unspecified,
    ),
    _rule(
        "tasks_due",
        rf"^(?:{_SHOW}|{_ASK})(?:my\s+|the\s+|all\s+)?(?:open\s+)?(?:tasks?\s+)?"
        r"(?:that\s+are\s+|are\s+)?due\s+"
        r"(?P<when>today|tomorrow|this\s+week|next\s+week|this\s+month|in\s+(?P<days>\d+)\s+days?)"
        r"(?:\s+for\s+(?P<owner>.+))?$",
        _tasks_due,
    ),
    _rule(
        "compliance",
        rf"^(?:(?:show|check|get|view|what'?s|what\s+is|how\s+is|how's)\s+)?"
        rf"(?:the\s+|our\s+|my\s+)?(?:(?P<framework>{FRAMEWORK_WORDS})\s+)?compliance"
        r"(?:\s+(?:status|summary|overview|check|posture))?$",
        _compliance,
    ),
    _rule(
        "forecast",
        r"^(?:forecast|predict|project)\b\s*(?:the\s+|our\s+)?(?P<subject>.*)$",
        _forecast,
    ),
    _rule(
        "forecast_question",
        r"^what\s+will\s+(?:our\s+|the\s+)?(?P<subject>.+?)\s+be\b",
        _forecast,
    ),
    _rule(
        "list_entities",
        rf"^{_SHOW}(?:all\s+|my\s+|the\s+|our\s+)?(?:(?P<status>{STATUS_WORDS})\s+)?"
        rf"(?:(?P<category>{PROJECT_CATEGORY_WORDS})\s+)?(?P<type>{TYPE_WORDS})"
        r"(?:\s+(?:for|owned\s+by|assigned\s+to)\s+(?P<owner>.+)|\b.*)$",
        _list_entities,
    ),
    _rule(
        "metrics_query",
        rf"^{_ASK}(?:(?:the|our|my|current|latest)\s+)*(?:(?:{PERIOD_WORDS})\s+)?"
        rf"(?P<subject>(?:{_METRIC_SUBJECTS})\b.*)$",
        _metrics,
    ),
    _rule(
        "period_metrics",
        rf"\b(?:{PERIOD_WORDS})\s+"
        r"(?P<subject>(?:mrr|arr|burn|revenue|metrics|kpis?|pipeline)\b.*)$",
        _metrics,
    ),
    _rule(
        "search",
        r"^(?:search|find|look\s+for|look\s+up|lookup)\b(?:\s+(?:for\s+)?(?P<query>.+))?$",
        _search,
    ),
    _rule(
        "sync_documents",
        r"^(?:index|reindex|sync)\s+(?:all\s+|the\s+)?(?:docs?|documents?)\b",
        _sync_documents,
    ),
    _rule(
        "sync_source",
        rf"^(?:pull|sync|fetch|import|refresh)\s+(?:in\s+)?(?:the\s+)?(?:latest\s+|new\s+)?"
        rf"(?:(?P<source>{INTEGRATION_SOURCES})\b\s*)?"
        r"(?P<what>opportunities|opportunity|opps?|deals?|leads?|customers?|accounts?)?"
        rf"(?:\s+from\s+(?P<source_after>{INTEGRATION_SOURCES}))?"
        r"(?<=\w)\s*$",
        _sync_source,
    ),
    # Bare phrases matched anywhere; last so any anchored phrasing wins first.
    _rule(
        "finance_phrase",
        r"\b(?P<subject>finance\s+summary|burn(?:\s+rate)?)\b",
        _metrics,
    ),
    _rule("utilization_phrase", r"\b(?:team\s+)?utili[sz]ation\b", _team_workload),
)
