"""In-memory Entity Store Adapter for development and tests.

All operations complete without awaiting anything internally, so each call is
atomic with respect to other coroutines on the same event loop.
"""

import itertools
from typing import Any

from ops_copilot.store.base import RecordNotFoundError
from ops_copilot.store.types import (
    Activity,
    Entity,
    EntityFilters,
    EntityType,
    Metric,
    MetricCategory,
    utcnow,
)
from ops_copilot.telemetry import ACTIVITY_LOGGED, get_logger

log = get_logger(__name__)

_SEARCH_FIELDS = ("title", "description", "category", "owner")


class InMemoryEntityStore:
    """Dictionary-backed implementation of the EntityStore protocol."""

    def __init__(self) -> None:
        self._entities: dict[str, Entity] = {}
        self._metrics: list[Metric] = []
        self._activities: list[Activity] = []
        # Monotonic counter breaks ties between records with equal timestamps.
        self._sequence = itertools.count()
        self._order: dict[str, int] = {}

    def _touch(self, entity_id: str) -> None:
        self._order[entity_id] = next(self._sequence)

    def _recency(self, entity: Entity) -> tuple[Any, int]:
        return entity.updated_at, self._order.get(entity.id, 0)

    async def create(self, entity: Entity) -> Entity:
        stored = entity.model_copy(deep=True)
        self._entities[stored.id] = stored
        self._touch(stored.id)
        return stored.model_copy(deep=True)

    async def get(self, entity_id: str) -> Entity | None:
        entity = self._entities.get(entity_id)
        return entity.model_copy(deep=True) if entity else None

    async def update(self, entity_id: str, changes: dict[str, Any]) -> Entity:
        current = self._entities.get(entity_id)
        if current is None:
            raise RecordNotFoundError(entity_id)
        # Re-validate the merged record so bad values never reach storage.
        merged = {**current.model_dump(), **changes, "updated_at": utcnow()}
        updated = Entity.model_validate(merged)
        self._entities[entity_id] = updated
        self._touch(entity_id)
        return updated.model_copy(deep=True)

    async def delete(self, entity_id: str) -> Entity:
        removed = self._entities.pop(entity_id, None)
        if removed is None:
            raise RecordNotFoundError(entity_id)
        self._order.pop(entity_id, None)
        return removed

    async def list_entities(self, filters: EntityFilters) -> list[Entity]:
        matches = [e for e in self._entities.values() if _matches(e, filters)]
        matches.sort(key=self._recency, reverse=True)
        return [e.model_copy(deep=True) for e in matches[: filters.limit]]

    async def search(
        self, query: str, entity_type: EntityType | None = None, limit: int = 20
    ) -> list[Entity]:
        terms = query.lower().split()
        if not terms:
            return []
        results = []
        for entity in sorted(self._entities.values(), key=self._recency, reverse=True):
            if entity_type is not None and entity.type != entity_type:
                continue
            haystack = " ".join(
                [str(getattr(entity, name) or "") for name in _SEARCH_FIELDS] + entity.tags
            ).lower()
            if all(term in haystack for term in terms):
                results.append(entity.model_copy(deep=True))
                if len(results) >= limit:
                    break
        return results

    async def record_metric(self, metric: Metric) -> Metric:
        self._metrics.append(metric.model_copy())
        return metric

    async def latest_metrics(self, category: MetricCategory | None = None) -> dict[str, float]:
        latest: dict[str, float] = {}
        # Later observations overwrite earlier ones for the same key.
        for metric in sorted(self._metrics, key=lambda m: m.created_at):
            if category is None or metric.category == category:
                latest[metric.key] = metric.value
        return latest

    async def log_activity(self, activity: Activity) -> Activity:
        self._activities.append(activity)
        log.debug(
            ACTIVITY_LOGGED,
            action=activity.action,
            entity_id=activity.entity_id,
            actor=activity.actor,
        )
        return activity

    async def list_activities(
        self, entity_id: str | None = None, action: str | None = None
    ) -> list[Activity]:
        """Audit records in the order they were written.

        Args:
            entity_id: Only records about this entity.
            action: Only records with this action name.

        Returns:
            Matching activities, oldest first.
        """
        return [
            a
            for a in self._activities
            if (entity_id is None or a.entity_id == entity_id)
            and (action is None or a.action == action)
        ]


def _matches(entity: Entity, filters: EntityFilters) -> bool:
    if filters.type is not None and entity.type != filters.type:
        return False
    if filters.status is not None and entity.status != filters.status:
        return False
    if filters.owner is not None and (entity.owner or "").lower() != filters.owner.lower():
        return False
    if filters.category is not None and (entity.category or "").lower() != filters.category.lower():
        return False
    if filters.source is not None and (entity.source or "").lower() != filters.source.lower():
        return False
    if filters.due_on_or_before is not None:
        if entity.due_date is None or entity.due_date > filters.due_on_or_before:
            return False
    return True
