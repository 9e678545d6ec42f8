"""Request and response models for the HTTP service."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ops_copilot.orchestrator.types import ChatTurn


class CommandRequest(BaseModel):
    """Body of ``POST /command``."""

    model_config = ConfigDict(populate_by_name=True)

    input: str = ""
    use_advanced: bool = Field(False, alias="useAdvanced")


class ChatRequest(BaseModel):
    """Body of ``POST /chat``."""

    message: str = ""
    history: list[ChatTurn] = Field(default_factory=list)
    stream: bool = True


class HealthResponse(BaseModel):
    """Body of ``GET /health``."""

    status: str = "healthy"
    reasoning_enabled: bool
    reasoning_model: str | None = None
    tools: int
    store: str


class ToolsResponse(BaseModel):
    """Body of ``GET /tools``."""

    tools: list[dict[str, Any]]
