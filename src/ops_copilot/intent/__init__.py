"""Intent classification: free text to ParsedIntent via an ordered rule cascade."""

from ops_copilot.intent.classifier import classify, classify_with_rule, normalize_text
from ops_copilot.intent.rules import RULES, IntentRule
from ops_copilot.intent.types import IntentAction, ParsedIntent

__all__ = [
    "RULES",
    "IntentAction",
    "IntentRule",
    "ParsedIntent",
    "classify",
    "classify_with_rule",
    "normalize_text",
]
