"""Entity Store Adapter interface.

The pipeline depends on this protocol only; the persistence engine behind it
is an external collaborator. Implementations must be the single mutation
authority for records.
"""

from typing import Any, Protocol, runtime_checkable

from ops_copilot.store.types import (
    Activity,
    Entity,
    EntityFilters,
    EntityType,
    Metric,
    MetricCategory,
)


class StoreError(Exception):
    """Base exception for all store errors."""

    pass


class RecordNotFoundError(StoreError):
    """Raised when an update or delete targets a nonexistent record."""

    def __init__(self, entity_id: str) -> None:
        super().__init__(f"Record {entity_id!r} not found")
        self.entity_id = entity_id


class PersistenceError(StoreError):
    """Raised when the underlying persistence engine fails."""

    pass


@runtime_checkable
class EntityStore(Protocol):
    """Record CRUD, search and metric primitives."""

    async def create(self, entity: Entity) -> Entity:
        """Persist a new record and return the stored copy."""
        ...

    async def get(self, entity_id: str) -> Entity | None:
        """Fetch a record by id, or None when it does not exist."""
        ...

    async def update(self, entity_id: str, changes: dict[str, Any]) -> Entity:
        """Apply field changes and return the updated record.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        ...

    async def delete(self, entity_id: str) -> Entity:
        """Delete a record and return what was removed.

        Raises:
            RecordNotFoundError: If the record does not exist.
        """
        ...

    async def list_entities(self, filters: EntityFilters) -> list[Entity]:
        """List records matching every set filter, most recently updated first."""
        ...

    async def search(
        self, query: str, entity_type: EntityType | None = None, limit: int = 20
    ) -> list[Entity]:
        """Full-text search over record text fields."""
        ...

    async def record_metric(self, metric: Metric) -> Metric:
        """Persist a metric observation."""
        ...

    async def latest_metrics(self, category: MetricCategory | None = None) -> dict[str, float]:
        """Latest value per metric key, optionally restricted to one category."""
        ...

    async def log_activity(self, activity: Activity) -> Activity:
        """Persist an audit record."""
        ...
