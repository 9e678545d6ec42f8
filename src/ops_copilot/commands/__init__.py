"""Direct command handling: dispatcher, advanced classification and service."""

from ops_copilot.commands.advanced import AdvancedClassifier, extract_intent_json
from ops_copilot.commands.dispatcher import (
    COMMAND_SUGGESTIONS,
    STORE_UNAVAILABLE_MESSAGE,
    UNKNOWN_COMMAND_MESSAGE,
    CommandDispatcher,
)
from ops_copilot.commands.service import CommandService
from ops_copilot.commands.types import CommandResult, VisualizationSpec

__all__ = [
    "AdvancedClassifier",
    "CommandDispatcher",
    "CommandResult",
    "CommandService",
    "VisualizationSpec",
    "extract_intent_json",
    "COMMAND_SUGGESTIONS",
    "STORE_UNAVAILABLE_MESSAGE",
    "UNKNOWN_COMMAND_MESSAGE",
]
