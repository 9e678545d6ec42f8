"""Explicit per-process capabilities passed to every component.

There is no module-level store, registry or client: the service, the CLI
and the tests each build one Capabilities value and hand it down.
"""

from dataclasses import dataclass

import httpx

from ops_copilot.config import AppConfig, get_settings
from ops_copilot.llm_client import ReasoningClient
from ops_copilot.store import (
    EntityStore,
    EventPublisher,
    InMemoryEntityStore,
    LoggingEventPublisher,
    load_seed_file,
    seed_store,
)
from ops_copilot.telemetry import get_logger
from ops_copilot.tools import ToolRegistry, build_registry

log = get_logger(__name__)


@dataclass(frozen=True)
class Capabilities:
    """What a request handler is allowed to use.

    Attributes:
        store: Record store; the only mutator of records.
        registry: Business tools bound to ``store``.
        publisher: Fire-and-forget event publisher.
        settings: Application settings.
        reasoning_client: Remote reasoning service, or None when not configured.
    """

    store: EntityStore
    registry: ToolRegistry
    publisher: EventPublisher
    settings: AppConfig
    reasoning_client: ReasoningClient | None = None

    @property
    def reasoning_enabled(self) -> bool:
        """Whether conversational exchanges can reach the reasoning service."""
        return self.reasoning_client is not None


async def build_capabilities(
    settings: AppConfig | None = None,
    store: EntityStore | None = None,
    publisher: EventPublisher | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Capabilities:
    """Assemble capabilities from settings.

    When no store is given an in-memory store is created and, if
    ``settings.seed_data_path`` is set, seeded from that YAML file.

    Args:
        settings: Settings to use; defaults to ``get_settings()``.
        store: Existing store to use instead of a fresh in-memory one.
        publisher: Event publisher; defaults to a logging publisher.
        transport: Optional httpx transport for the reasoning client.

    Returns:
        Capabilities ready to pass to the command service and orchestrator.

    Raises:
        SeedDataError: If the configured seed file is missing or invalid.
    """
    settings = settings or get_settings()

    if store is None:
        store = InMemoryEntityStore()
        if settings.seed_data_path is not None:
            await seed_store(store, load_seed_file(settings.seed_data_path))

    reasoning_client = ReasoningClient.from_settings(settings, transport=transport)
    log.info(
        "capabilities_built",
        store=type(store).__name__,
        reasoning_enabled=reasoning_client is not None,
        reasoning_model=settings.reasoning_model if reasoning_client else None,
    )

    return Capabilities(
        store=store,
        registry=build_registry(store),
        publisher=publisher or LoggingEventPublisher(),
        settings=settings,
        reasoning_client=reasoning_client,
    )
