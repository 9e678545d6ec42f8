"""Word lists and normalizers shared by the intent rules.

Keyword cascades here are ordered: the first group that matches wins, which
is how overlapping phrases such as "burn and pipeline" are resolved.
"""

import re

# Singular and plural nouns that name a record type, as a regex alternation.
# Longer alternatives come first so "team members" beats "team".
TYPE_WORDS = (
    r"team\s+members?|marketing\s+campaigns?|opportunities|opportunity|opps?|"
    r"projects?|tasks?|customers?|clients?|accounts?|documents?|docs?|notes?|events?|"
    r"compliance|leads?|deals?|investors?|okrs?|services?|startups?|campaigns?|r&d|rnd"
)

_IRREGULAR_TYPES = {
    "opportunities": "opportunity",
    "opps": "opportunity",
    "opp": "opportunity",
    "clients": "customer",
    "client": "customer",
    "accounts": "customer",
    "account": "customer",
    "docs": "document",
    "doc": "document",
    "campaign": "marketing_campaign",
    "campaigns": "marketing_campaign",
    "marketing campaigns": "marketing_campaign",
    "r&d": "rnd",
    "compliance": "compliance",
}

STATUS_WORDS = r"active|open|completed?|done|finished|archived|blocked|pending|draft"

_STATUS_ALIASES = {
    "open": "active",
    "complete": "completed",
    "done": "completed",
    "finished": "completed",
}

PROJECT_CATEGORY_WORDS = r"saas|services?|internal|poc|maintenance|integration|innovation"

FRAMEWORK_WORDS = r"gst|roc|soc\s?2|gdpr|iso\s?27001|hipaa|pci"

INTEGRATION_SOURCES = r"salesforce|sfdc|hubspot|stripe|quickbooks"

_SOURCE_ALIASES = {"sfdc": "salesforce"}

_FIELD_ALIASES = {
    "due": "due_date",
    "due date": "due_date",
    "deadline": "due_date",
    "assignee": "owner",
    "assigned to": "owner",
    "name": "title",
    "state": "status",
    "parent": "parent_id",
}

_PERIODS = {
    "daily": "day",
    "weekly": "week",
    "monthly": "month",
    "quarterly": "quarter",
    "yearly": "year",
    "annual": "year",
}
PERIOD_WORDS = "|".join(_PERIODS)
_PERIOD_RE = re.compile(rf"\b({PERIOD_WORDS})\b", re.IGNORECASE)

# Order matters: first category with a matching keyword wins.
_METRIC_CATEGORY_KEYWORDS: tuple[tuple[str, str], ...] = (
    ("finance", r"finance|financials?|mrr|arr|burn|runway|cash|revenue|profit|expenses?"),
    ("sales", r"sales|pipeline|deals?|win\s+rate|bookings|quota"),
    ("marketing", r"marketing|leads?|mqls?|cac|campaigns?|traffic"),
    ("team", r"team|utili[sz]ation|headcount|hiring|capacity"),
)
_METRIC_CATEGORY_PATTERNS = tuple(
    (category, re.compile(rf"\b(?:{words})\b", re.IGNORECASE))
    for category, words in _METRIC_CATEGORY_KEYWORDS
)


def normalize_entity_type(word: str) -> str:
    """Map a type noun to its singular record type.

    Trailing "s" is stripped except for the explicit irregular forms.

    Args:
        word: Noun as written, e.g. "Opportunities" or "team members".

    Returns:
        Singular type string, e.g. "opportunity" or "team_member".
    """
    key = " ".join(word.lower().split())
    if key in _IRREGULAR_TYPES:
        return _IRREGULAR_TYPES[key]
    if key.endswith("s") and not key.endswith("ss"):
        key = key[:-1]
    return key.replace(" ", "_")


def normalize_status(word: str) -> str:
    """Map a status word ("done", "open", ...) to a record status value."""
    key = word.lower()
    return _STATUS_ALIASES.get(key, key)


def normalize_field(words: str) -> str:
    """Map a field phrase ("due date", "assignee") to a record field name."""
    key = " ".join(words.lower().split())
    return _FIELD_ALIASES.get(key, key.replace(" ", "_"))


def normalize_source(word: str | None) -> str | None:
    """Canonical integration name ("sfdc" becomes "salesforce")."""
    if not word:
        return None
    key = word.lower()
    return _SOURCE_ALIASES.get(key, key)


def normalize_framework(word: str | None) -> str | None:
    """Compact compliance framework name ("SOC 2" becomes "soc2")."""
    if not word:
        return None
    return "".join(word.lower().split())


def resolve_metric_category(text: str) -> str | None:
    """Resolve a metric category from keywords in ``text``.

    Args:
        text: Any fragment of the command.

    Returns:
        "finance", "sales", "marketing" or "team"; None when no keyword
        matches, leaving the choice to the dispatcher.
    """
    for category, pattern in _METRIC_CATEGORY_PATTERNS:
        if pattern.search(text):
            return category
    return None


def resolve_period(text: str) -> str | None:
    """First period word in ``text`` as a period name ("weekly" -> "week")."""
    match = _PERIOD_RE.search(text)
    return _PERIODS[match.group(1).lower()] if match else None


def clean_title(raw: str | None) -> str | None:
    """Strip whitespace and wrapping quotes from a captured title."""
    if raw is None:
        return None
    title = raw.strip().strip("\"'“”").strip()
    return title or None
