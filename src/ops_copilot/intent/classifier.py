"""Rule-based intent classifier.

``classify`` is pure and total: no I/O, no randomness, and every input yields
a ParsedIntent (``unknown`` when no rule matches).
"""

from ops_copilot.intent.rules import RULES, IntentRule
from ops_copilot.intent.types import IntentAction, ParsedIntent

UNKNOWN_RULE = "unknown"


def normalize_text(text: str) -> str:
    """Trim, collapse internal whitespace and drop trailing ? and ! marks.

    Case is preserved so captured titles keep the caller's spelling; rule
    patterns are case-insensitive.
    """
    return " ".join(text.split()).rstrip("?! ")


def classify_with_rule(
    text: str, rules: tuple[IntentRule, ...] = RULES
) -> tuple[ParsedIntent, str]:
    """Classify ``text`` and report which rule produced the intent.

    Args:
        text: Raw command text.
        rules: Ordered cascade to evaluate; defaults to the built-in rules.

    Returns:
        Tuple of (intent, rule name). The rule name is ``"unknown"`` when
        nothing matched.
    """
    normalized = normalize_text(text)
    for rule in rules:
        match = rule.match(normalized)
        if match is not None:
            return rule.extract(match, normalized), rule.name
    return ParsedIntent(action=IntentAction.UNKNOWN, query=normalized.lower()), UNKNOWN_RULE


def classify(text: str) -> ParsedIntent:
    """Classify free-text input into a structured intent.

    Args:
        text: Raw command text.

    Returns:
        The ParsedIntent of the first matching rule, or an ``unknown``
        intent carrying the normalized text as its query.

    Example:
        >>> classify("create project: Mobile App v2").data
        {'title': 'Mobile App v2'}
    """
    intent, _ = classify_with_rule(text)
    return intent
