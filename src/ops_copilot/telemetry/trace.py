"""Trace context for request correlation.

Every inbound command or chat exchange gets one trace; tool calls and
reasoning-service calls inside it get child spans.
"""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class TraceContext:
    """Lightweight trace context for request correlation.

    This is a frozen dataclass and should never be modified after creation.
    Components should create new spans using new_span() rather than modifying
    the context.

    Attributes:
        trace_id: Unique identifier for the trace (UUID string).
        parent_span_id: Optional parent span ID for nested operations.
    """

    trace_id: str
    parent_span_id: str | None = None

    @classmethod
    def new_trace(cls) -> "TraceContext":
        """Start a new trace.

        Returns:
            A new TraceContext with a generated trace_id and no parent span.
        """
        return cls(trace_id=str(uuid.uuid4()))

    def new_span(self) -> tuple["TraceContext", str]:
        """Create a child span within this trace.

        Returns:
            A tuple of (child TraceContext, new span_id). The child keeps the
            trace_id and records the new span as its parent.
        """
        span_id = str(uuid.uuid4())
        return TraceContext(trace_id=self.trace_id, parent_span_id=span_id), span_id

    def log_fields(self) -> dict[str, str]:
        """Return the correlation fields to attach to a structured log event."""
        fields = {"trace_id": self.trace_id}
        if self.parent_span_id:
            fields["span_id"] = self.parent_span_id
        return fields
