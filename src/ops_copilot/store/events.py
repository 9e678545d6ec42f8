"""Fire-and-forget event publication for completed commands and exchanges."""

from typing import Any, Protocol

from ops_copilot.telemetry import (
    EVENT_PUBLISH_FAILED,
    EVENT_PUBLISHED,
    TraceContext,
    get_logger,
)

log = get_logger(__name__)

COMMAND_COMPLETED_TOPIC = "command.completed"
CHAT_COMPLETED_TOPIC = "chat.completed"
SYNC_REQUESTED_TOPIC = "sync.requested"


class EventPublisher(Protocol):
    """Message-bus capability ("publish a message")."""

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        """Publish one message to a topic."""
        ...


class LoggingEventPublisher:
    """Publisher that records events in the structured log only."""

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        log.info(EVENT_PUBLISHED, topic=topic, payload_keys=sorted(payload))


class InMemoryEventPublisher:
    """Publisher that keeps every event in a list, in publication order."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.events.append((topic, payload))

    def topics(self) -> list[str]:
        """Topics published so far."""
        return [topic for topic, _ in self.events]


async def publish_quietly(
    publisher: EventPublisher,
    topic: str,
    payload: dict[str, Any],
    trace_ctx: TraceContext | None = None,
) -> bool:
    """Publish an event without letting a failure reach the caller.

    Args:
        publisher: Publisher to use.
        topic: Topic name.
        payload: JSON-serializable payload.
        trace_ctx: Trace context for log correlation.

    Returns:
        True if the publisher accepted the event.
    """
    try:
        await publisher.publish(topic, payload)
        return True
    except Exception as e:
        log.warning(
            EVENT_PUBLISH_FAILED,
            topic=topic,
            error=str(e),
            error_type=type(e).__name__,
            **(trace_ctx.log_fields() if trace_ctx else {}),
        )
        return False
