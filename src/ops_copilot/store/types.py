"""Record types shared by the Entity Store Adapter and the pipeline.

Entities carry a fixed set of typed fields common to every record type plus
a residual ``metadata`` map for genuinely dynamic, type-specific values.
"""

import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a record identifier."""
    return uuid.uuid4().hex[:12]


# Labels for types whose value does not pluralize as an English noun.
_PLURAL_OVERRIDES = {
    "rnd": "R&D items",
    "compliance": "compliance items",
    "finance": "finance records",
}


class EntityType(str, Enum):
    """Kinds of records held by the store."""

    PROJECT = "project"
    TASK = "task"
    CUSTOMER = "customer"
    OPPORTUNITY = "opportunity"
    DOCUMENT = "document"
    NOTE = "note"
    METRIC = "metric"
    EVENT = "event"
    TEAM_MEMBER = "team_member"
    COMPLIANCE = "compliance"
    RND = "rnd"
    FINANCE = "finance"
    MARKETING_CAMPAIGN = "marketing_campaign"
    LEAD = "lead"
    DEAL = "deal"
    INVESTOR = "investor"
    OKR = "okr"
    SERVICE = "service"
    STARTUP = "startup"

    @classmethod
    def from_str(cls, value: str) -> "EntityType | None":
        """Convert a loose string (any case, spaces or dashes) to an EntityType.

        Args:
            value: String representation, e.g. "Team member" or "team-member".

        Returns:
            EntityType or None if the value names no known type.
        """
        normalized = value.strip().lower().replace(" ", "_").replace("-", "_")
        for entity_type in cls:
            if entity_type.value == normalized:
                return entity_type
        return None

    @property
    def plural(self) -> str:
        """Human-readable plural label, e.g. "opportunities"."""
        if self.value in _PLURAL_OVERRIDES:
            return _PLURAL_OVERRIDES[self.value]
        label = self.value.replace("_", " ")
        if label.endswith("y") and not label.endswith(("ay", "ey", "oy")):
            return label[:-1] + "ies"
        if label.endswith("s"):
            return label
        return label + "s"


class EntityStatus(str, Enum):
    """Lifecycle status of a record."""

    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"
    BLOCKED = "blocked"
    PENDING = "pending"
    DRAFT = "draft"


CLOSED_STATUSES = frozenset({EntityStatus.COMPLETED, EntityStatus.ARCHIVED})


class Priority(str, Enum):
    """Record priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
    CRITICAL = "critical"


class MetricCategory(str, Enum):
    """Grouping for KPI metrics."""

    FINANCE = "finance"
    SALES = "sales"
    MARKETING = "marketing"
    TEAM = "team"
    PRODUCT = "product"
    OPS = "ops"
    CUSTOMER = "customer"
    INVESTOR = "investor"
    COMPLIANCE = "compliance"


class Entity(BaseModel):
    """A record in the store (project, task, customer, ...)."""

    id: str = Field(default_factory=new_id, description="Record identifier")
    type: EntityType = Field(..., description="Record type")
    title: str = Field(..., min_length=1, description="Display title")
    description: str | None = Field(None, description="Free-text description")
    status: EntityStatus = Field(EntityStatus.ACTIVE, description="Lifecycle status")
    priority: Priority = Field(Priority.MEDIUM, description="Priority")
    category: str | None = Field(None, description="Type-specific category, e.g. 'saas'")
    tags: list[str] = Field(default_factory=list, description="Free-form tags")
    owner: str | None = Field(None, description="Owner or assignee")
    source: str | None = Field(None, description="Integration the record came from")
    source_id: str | None = Field(None, description="Identifier in the source system")
    parent_id: str | None = Field(None, description="Parent record identifier")
    due_date: date | None = Field(None, description="Due date")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Residual type-specific fields"
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_open(self) -> bool:
        """Whether the record is still in progress."""
        return self.status not in CLOSED_STATUSES


class EntityFilters(BaseModel):
    """Filters accepted by ``EntityStore.list``; unset fields do not filter."""

    type: EntityType | None = None
    status: EntityStatus | None = None
    owner: str | None = None
    category: str | None = None
    source: str | None = None
    due_on_or_before: date | None = None
    limit: int = Field(100, ge=1, le=1000)


class Metric(BaseModel):
    """A single KPI observation."""

    id: str = Field(default_factory=new_id)
    key: str = Field(..., min_length=1, description="Metric key, e.g. 'mrr'")
    value: float = Field(..., description="Observed value")
    unit: str | None = Field(None, description="Unit, e.g. 'usd' or 'months'")
    category: MetricCategory = Field(..., description="Metric category")
    period: str | None = Field(None, description="Reporting period, e.g. 'week'")
    created_at: datetime = Field(default_factory=utcnow)


class Activity(BaseModel):
    """Audit record for a mutation or a completed command/exchange."""

    id: str = Field(default_factory=new_id)
    entity_id: str | None = None
    action: str = Field(..., description="What happened, e.g. 'created'")
    actor: str = Field("copilot", description="Who or what performed the action")
    details: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
