"""Result types returned to callers of the command pipeline."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from ops_copilot.intent.types import ParsedIntent


class VisualizationSpec(BaseModel):
    """Optional rendering hint for the dashboard."""

    type: Literal["chart", "table", "kpi_cards", "timeline"]
    title: str
    data: Any = Field(..., description="Rows, series or cards, depending on type")
    chart_type: Literal["bar", "line", "pie", "area"] | None = None
    config: dict[str, Any] | None = None


class CommandResult(BaseModel):
    """Response to one command or one non-streamed chat exchange."""

    intent: ParsedIntent
    action: str | None = Field(None, description="Tool or step that produced the result")
    success: bool = Field(True, description="Whether the command did what was asked")
    entities: list[dict[str, Any]] | None = None
    metrics: dict[str, float] | None = None
    message: str = Field(..., description="Human-readable response; never empty")
    data: dict[str, Any] | None = None
    suggestions: list[str] | None = None
    visualization: VisualizationSpec | None = None

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject blank messages."""
        if not v or not v.strip():
            raise ValueError("message must not be empty")
        return v

    @property
    def entities_affected(self) -> list[str]:
        """Ids of the records this result carries."""
        return [e["id"] for e in self.entities or [] if "id" in e]
