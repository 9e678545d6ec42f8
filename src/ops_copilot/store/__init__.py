"""Entity Store Adapter interface, record types and the in-memory adapter."""

from ops_copilot.store.base import EntityStore, PersistenceError, RecordNotFoundError, StoreError
from ops_copilot.store.events import (
    EventPublisher,
    InMemoryEventPublisher,
    LoggingEventPublisher,
    publish_quietly,
)
from ops_copilot.store.memory import InMemoryEntityStore
from ops_copilot.store.seed import SeedData, SeedDataError, load_seed_file, seed_store
from ops_copilot.store.types import (
    Activity,
    Entity,
    EntityFilters,
    EntityStatus,
    EntityType,
    Metric,
    MetricCategory,
    Priority,
)

__all__ = [
    "Activity",
    "Entity",
    "EntityFilters",
    "EntityStatus",
    "EntityStore",
    "EntityType",
    "EventPublisher",
    "InMemoryEntityStore",
    "InMemoryEventPublisher",
    "LoggingEventPublisher",
    "Metric",
    "MetricCategory",
    "PersistenceError",
    "Priority",
    "RecordNotFoundError",
    "SeedData",
    "SeedDataError",
    "StoreError",
    "load_seed_file",
    "publish_quietly",
    "seed_store",
]
