"""Tests for InMemoryEntityStore."""

from datetime import date

import pytest

from ops_copilot.store import (
    Activity,
    Entity,
    EntityFilters,
    EntityStatus,
    EntityStore,
    EntityType,
    InMemoryEntityStore,
    Metric,
    MetricCategory,
    RecordNotFoundError,
)


def test_store_satisfies_protocol(store: InMemoryEntityStore) -> None:
    """Test the in-memory store implements the EntityStore protocol."""
    assert isinstance(store, EntityStore)


@pytest.mark.parametrize(
    ("entity_type", "label"),
    [
        (EntityType.TASK, "tasks"),
        (EntityType.OPPORTUNITY, "opportunities"),
        (EntityType.TEAM_MEMBER, "team members"),
        (EntityType.RND, "R&D items"),
        (EntityType.COMPLIANCE, "compliance items"),
        (EntityType.FINANCE, "finance records"),
    ],
)
def test_plural_labels(entity_type: EntityType, label: str) -> None:
    """Test plural labels read naturally for every kind of type."""
    assert entity_type.plural == label


class TestEntityLifecycle:
    """Create, read, update and delete."""

    @pytest.mark.asyncio
    async def test_create_then_get(self, store: InMemoryEntityStore) -> None:
        """Test a created entity can be read back by id."""
        created = await store.create(Entity(type=EntityType.PROJECT, title="Mobile App v2"))

        fetched = await store.get(created.id)

        assert fetched is not None
        assert fetched.title == "Mobile App v2"
        assert fetched.status == EntityStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store: InMemoryEntityStore) -> None:
        """Test get returns None for unknown ids."""
        assert await store.get("nope") is None

    @pytest.mark.asyncio
    async def test_returned_copies_are_isolated(self, store: InMemoryEntityStore) -> None:
        """Test mutating a returned entity does not change stored state."""
        created = await store.create(Entity(type=EntityType.TASK, title="Original"))
        created.title = "Mutated"

        fetched = await store.get(created.id)

        assert fetched is not None
        assert fetched.title == "Original"

    @pytest.mark.asyncio
    async def test_update_changes_fields(self, store: InMemoryEntityStore) -> None:
        """Test update applies changes and bumps updated_at."""
        created = await store.create(Entity(type=EntityType.TASK, title="Write docs"))

        updated = await store.update(created.id, {"status": "completed", "owner": "Priya"})

        assert updated.status == EntityStatus.COMPLETED
        assert updated.owner == "Priya"
        assert updated.updated_at >= created.updated_at

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_values(self, store: InMemoryEntityStore) -> None:
        """Test invalid values never reach storage."""
        created = await store.create(Entity(type=EntityType.TASK, title="Write docs"))

        with pytest.raises(ValueError):
            await store.update(created.id, {"status": "sideways"})

        fetched = await store.get(created.id)
        assert fetched is not None
        assert fetched.status == EntityStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, store: InMemoryEntityStore) -> None:
        """Test update of an unknown id raises RecordNotFoundError."""
        with pytest.raises(RecordNotFoundError) as exc_info:
            await store.update("abc123", {"title": "x"})

        assert exc_info.value.entity_id == "abc123"

    @pytest.mark.asyncio
    async def test_delete_removes_entity(self, store: InMemoryEntityStore) -> None:
        """Test delete returns the removed entity and forgets it."""
        created = await store.create(Entity(type=EntityType.NOTE, title="Scratch"))

        removed = await store.delete(created.id)

        assert removed.id == created.id
        assert await store.get(created.id) is None
        with pytest.raises(RecordNotFoundError):
            await store.delete(created.id)


class TestListAndSearch:
    """Filtering, ordering and search."""

    @pytest.mark.asyncio
    async def test_list_filters_by_type_and_status(self, store: InMemoryEntityStore) -> None:
        """Test list applies type and status filters."""
        await store.create(Entity(type=EntityType.TASK, title="Open task"))
        await store.create(
            Entity(type=EntityType.TASK, title="Done task", status=EntityStatus.COMPLETED)
        )
        await store.create(Entity(type=EntityType.PROJECT, title="A project"))

        tasks = await store.list_entities(EntityFilters(type=EntityType.TASK))
        done = await store.list_entities(
            EntityFilters(type=EntityType.TASK, status=EntityStatus.COMPLETED)
        )

        assert {t.title for t in tasks} == {"Open task", "Done task"}
        assert [t.title for t in done] == ["Done task"]

    @pytest.mark.asyncio
    async def test_list_newest_first_and_limited(self, store: InMemoryEntityStore) -> None:
        """Test list orders by recency and honours the limit."""
        for i in range(5):
            await store.create(Entity(type=EntityType.TASK, title=f"Task {i}"))

        tasks = await store.list_entities(EntityFilters(type=EntityType.TASK, limit=3))

        assert [t.title for t in tasks] == ["Task 4", "Task 3", "Task 2"]

    @pytest.mark.asyncio
    async def test_list_owner_filter_is_case_insensitive(
        self, store: InMemoryEntityStore
    ) -> None:
        """Test owner filter ignores case."""
        await store.create(Entity(type=EntityType.TASK, title="Mine", owner="Priya Nair"))
        await store.create(Entity(type=EntityType.TASK, title="Theirs", owner="Arjun"))

        tasks = await store.list_entities(EntityFilters(owner="priya nair"))

        assert [t.title for t in tasks] == ["Mine"]

    @pytest.mark.asyncio
    async def test_list_due_on_or_before(self, store: InMemoryEntityStore) -> None:
        """Test due-date filter excludes undated and later records."""
        await store.create(Entity(type=EntityType.TASK, title="Soon", due_date=date(2026, 1, 5)))
        await store.create(Entity(type=EntityType.TASK, title="Late", due_date=date(2026, 3, 1)))
        await store.create(Entity(type=EntityType.TASK, title="Undated"))

        tasks = await store.list_entities(EntityFilters(due_on_or_before=date(2026, 1, 31)))

        assert [t.title for t in tasks] == ["Soon"]

    @pytest.mark.asyncio
    async def test_search_matches_all_terms(self, store: InMemoryEntityStore) -> None:
        """Test search requires every term, case-insensitively."""
        await store.create(
            Entity(type=EntityType.CUSTOMER, title="Acme Logistics", owner="Arjun")
        )
        await store.create(Entity(type=EntityType.CUSTOMER, title="Acme Retail"))

        results = await store.search("acme arjun")

        assert [r.title for r in results] == ["Acme Logistics"]

    @pytest.mark.asyncio
    async def test_search_blank_query_returns_nothing(self, store: InMemoryEntityStore) -> None:
        """Test a blank query matches nothing."""
        await store.create(Entity(type=EntityType.NOTE, title="Anything"))

        assert await store.search("   ") == []

    @pytest.mark.asyncio
    async def test_search_type_filter(self, store: InMemoryEntityStore) -> None:
        """Test search restricted to one record type."""
        await store.create(Entity(type=EntityType.CUSTOMER, title="Acme"))
        await store.create(Entity(type=EntityType.NOTE, title="Acme call notes"))

        results = await store.search("acme", entity_type=EntityType.NOTE)

        assert [r.type for r in results] == [EntityType.NOTE]


class TestMetricsAndActivities:
    """Metric observations and the audit trail."""

    @pytest.mark.asyncio
    async def test_latest_metrics_keeps_newest_value(self, store: InMemoryEntityStore) -> None:
        """Test later observations of a key replace earlier ones."""
        await store.record_metric(Metric(key="mrr", value=100000, category=MetricCategory.FINANCE))
        await store.record_metric(Metric(key="mrr", value=120000, category=MetricCategory.FINANCE))
        await store.record_metric(Metric(key="leads", value=48, category=MetricCategory.MARKETING))

        assert await store.latest_metrics() == {"mrr": 120000, "leads": 48}
        assert await store.latest_metrics(MetricCategory.FINANCE) == {"mrr": 120000}

    @pytest.mark.asyncio
    async def test_activities_filtered_by_action(self, store: InMemoryEntityStore) -> None:
        """Test audit records can be read back by action."""
        await store.log_activity(Activity(action="created", entity_id="a"))
        await store.log_activity(Activity(action="ai_command", details={"input": "x"}))

        commands = await store.list_activities(action="ai_command")

        assert len(commands) == 1
        assert commands[0].details == {"input": "x"}
