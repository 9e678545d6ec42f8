"""Structured interpretation of a free-text command."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class IntentAction(str, Enum):
    """What the caller wants done."""

    CREATE = "create"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"
    SEARCH = "search"
    METRICS = "metrics"
    REPORT = "report"
    SYNC = "sync"
    COMPLIANCE = "compliance"
    FORECAST = "forecast"
    UNKNOWN = "unknown"


class ParsedIntent(BaseModel):
    """Classifier output: action plus target and parameters.

    Produced once per input and never mutated. ``entity_type`` is kept as the
    normalized singular string so that the reasoning service can also produce
    intents for types the rule cascade does not name.
    """

    model_config = ConfigDict(frozen=True)

    action: IntentAction
    entity_type: str | None = Field(None, description="Singular record type, e.g. 'task'")
    filters: dict[str, Any] | None = Field(None, description="List/sync filters")
    data: dict[str, Any] | None = Field(None, description="Fields for create/update/delete")
    query: str | None = Field(None, description="Search text or the normalized input")
    category: str | None = Field(None, description="Metric/report category")
    period: str | None = Field(None, description="Reporting period, e.g. 'week'")
