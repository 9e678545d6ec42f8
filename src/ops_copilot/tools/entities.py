"""Record tools: create, read, update, delete, search and list entities.

Executors are bound to an EntityStore through ``EntityTools``. Mutating
executors write an audit record tagged with the invocation channel.
"""

from typing import Any

from ops_copilot.store.base import EntityStore, RecordNotFoundError
from ops_copilot.store.types import (
    Activity,
    Entity,
    EntityFilters,
    EntityStatus,
    EntityType,
    Priority,
)
from ops_copilot.tools.executor import ToolArgumentError
from ops_copilot.tools.types import ToolContext, ToolDefinition, ToolParameter

ENTITY_TYPE_VALUES = [t.value for t in EntityType]
STATUS_VALUES = [s.value for s in EntityStatus]
PRIORITY_VALUES = [p.value for p in Priority]


def entity_payload(entity: Entity) -> dict[str, Any]:
    """Plain JSON-ready form of a record."""
    return entity.model_dump(mode="json")


def parse_entity_type(value: str | None) -> EntityType | None:
    """Resolve a loose type string, raising ToolArgumentError for unknown types."""
    if value is None or value == "":
        return None
    entity_type = EntityType.from_str(value)
    if entity_type is None:
        raise ToolArgumentError(f"Unknown entity type '{value}'")
    return entity_type


def _as_tags(tags: list[str] | str | None) -> list[str] | None:
    if tags is None:
        return None
    if isinstance(tags, str):
        return [t.strip() for t in tags.split(",") if t.strip()]
    return [str(t) for t in tags]


def _field_changes(before: Entity, after: Entity, fields: list[str]) -> dict[str, Any]:
    """Fields among ``fields`` whose stored value differs, as {field: {from, to}}."""
    old = before.model_dump(mode="json")
    new = after.model_dump(mode="json")
    return {
        name: {"from": old.get(name), "to": new.get(name)}
        for name in fields
        if old.get(name) != new.get(name)
    }


class EntityTools:
    """Entity executors bound to one store."""

    def __init__(self, store: EntityStore) -> None:
        self.store = store

    async def _audit(
        self, ctx: ToolContext, entity_id: str | None, action: str, **details: Any
    ) -> None:
        await self.store.log_activity(
            Activity(
                entity_id=entity_id,
                action=action,
                actor=ctx.actor,
                details={"via": ctx.channel.value, "trace_id": ctx.trace_id, **details},
            )
        )

    async def create_entity(
        self,
        ctx: ToolContext,
        type: str,
        title: str,
        description: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
        owner: str | None = None,
        due_date: str | None = None,
        parent_id: str | None = None,
        tags: list[str] | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Create a record; status defaults to active and priority to medium."""
        entity_type = parse_entity_type(type)
        fields: dict[str, Any] = {
            "type": entity_type,
            "title": title.strip(),
            "description": description,
            "category": category.lower() if category else None,
            "owner": owner,
            "due_date": due_date or None,
            "parent_id": parent_id,
            "tags": _as_tags(tags) or [],
            "metadata": metadata or {},
        }
        if status:
            fields["status"] = status.lower()
        if priority:
            fields["priority"] = priority.lower()

        created = await self.store.create(Entity.model_validate(fields))
        await self._audit(
            ctx, created.id, "created", type=created.type.value, title=created.title
        )
        return {"entity": entity_payload(created)}

    async def get_entity(self, ctx: ToolContext, id: str) -> dict[str, Any]:
        """Fetch one record by id."""
        entity = await self.store.get(id)
        if entity is None:
            raise RecordNotFoundError(id)
        return {"entity": entity_payload(entity)}

    async def update_entity(
        self,
        ctx: ToolContext,
        id: str,
        title: str | None = None,
        description: str | None = None,
        status: str | None = None,
        priority: str | None = None,
        category: str | None = None,
        owner: str | None = None,
        due_date: str | None = None,
        parent_id: str | None = None,
        tags: list[str] | str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Apply the given field changes; only fields that actually change are audited."""
        requested: dict[str, Any] = {
            "title": title,
            "description": description,
            "status": status.lower() if status else None,
            "priority": priority.lower() if priority else None,
            "category": category.lower() if category else None,
            "owner": owner,
            "due_date": due_date,
            "parent_id": parent_id,
            "tags": _as_tags(tags),
        }
        changes = {k: v for k, v in requested.items() if v is not None and v != ""}

        before = await self.store.get(id)
        if before is None:
            raise RecordNotFoundError(id)
        if metadata:
            changes["metadata"] = {**before.metadata, **metadata}
        if not changes:
            raise ToolArgumentError("No fields to update were provided")

        after = await self.store.update(id, changes)
        delta = _field_changes(before, after, list(changes))
        await self._audit(ctx, after.id, "updated", type=after.type.value, changes=delta)
        return {"entity": entity_payload(after), "changes": delta}

    async def delete_entity(self, ctx: ToolContext, id: str) -> dict[str, Any]:
        """Delete a record and return what was removed."""
        removed = await self.store.delete(id)
        await self._audit(
            ctx, removed.id, "deleted", type=removed.type.value, title=removed.title
        )
        return {"entity": entity_payload(removed)}

    async def search_entities(
        self, ctx: ToolContext, query: str, type: str | None = None, limit: int = 20
    ) -> dict[str, Any]:
        """Full-text search over titles, descriptions, owners and tags."""
        results = await self.store.search(
            query, entity_type=parse_entity_type(type), limit=int(limit)
        )
        return {
            "query": query,
            "count": len(results),
            "entities": [entity_payload(e) for e in results],
        }

    async def list_entities(
        self,
        ctx: ToolContext,
        type: str | None = None,
        status: str | None = None,
        owner: str | None = None,
        category: str | None = None,
        source: str | None = None,
        limit: int = 100,
    ) -> dict[str, Any]:
        """List records matching every given filter, most recently updated first."""
        filters = EntityFilters(
            type=parse_entity_type(type),
            status=status.lower() if status else None,
            owner=owner,
            category=category,
            source=source,
            limit=int(limit),
        )
        entities = await self.store.list_entities(filters)
        return {"count": len(entities), "entities": [entity_payload(e) for e in entities]}


_ENTITY_FIELD_PARAMETERS = [
    ToolParameter(name="description", type="string", description="Free-text description"),
    ToolParameter(
        name="status", type="string", description="Lifecycle status", enum=STATUS_VALUES
    ),
    ToolParameter(
        name="priority", type="string", description="Priority", enum=PRIORITY_VALUES
    ),
    ToolParameter(
        name="category",
        type="string",
        description="Type-specific category, e.g. 'saas' for projects or 'gst' for compliance",
    ),
    ToolParameter(name="owner", type="string", description="Owner or assignee name"),
    ToolParameter(name="due_date", type="string", description="Due date as YYYY-MM-DD"),
    ToolParameter(name="parent_id", type="string", description="Parent record id"),
    ToolParameter(
        name="tags",
        type="array",
        description="Tags",
        json_schema={"type": "array", "items": {"type": "string"}, "description": "Tags"},
    ),
    ToolParameter(
        name="metadata",
        type="object",
        description="Additional type-specific fields",
        json_schema={"type": "object", "description": "Additional type-specific fields"},
    ),
]

create_entity_tool = ToolDefinition(
    name="create_entity",
    description="Create a new record (project, task, customer, opportunity, ...)",
    parameters=[
        ToolParameter(
            name="type",
            type="string",
            description="Record type",
            required=True,
            enum=ENTITY_TYPE_VALUES,
        ),
        ToolParameter(name="title", type="string", description="Record title", required=True),
        *_ENTITY_FIELD_PARAMETERS,
    ],
    mutates=True,
)

get_entity_tool = ToolDefinition(
    name="get_entity",
    description="Fetch a single record by id",
    parameters=[ToolParameter(name="id", type="string", description="Record id", required=True)],
)

update_entity_tool = ToolDefinition(
    name="update_entity",
    description="Update fields of an existing record; only provided fields change",
    parameters=[
        ToolParameter(name="id", type="string", description="Record id", required=True),
        ToolParameter(name="title", type="string", description="New title"),
        *_ENTITY_FIELD_PARAMETERS,
    ],
    mutates=True,
)

delete_entity_tool = ToolDefinition(
    name="delete_entity",
    description="Delete a record by id",
    parameters=[ToolParameter(name="id", type="string", description="Record id", required=True)],
    mutates=True,
)

search_entities_tool = ToolDefinition(
    name="search_entities",
    description="Search records by text across titles, descriptions, owners and tags",
    parameters=[
        ToolParameter(name="query", type="string", description="Search text", required=True),
        ToolParameter(
            name="type", type="string", description="Restrict to one type", enum=ENTITY_TYPE_VALUES
        ),
        ToolParameter(
            name="limit", type="integer", description="Maximum results (default: 20)", default=20
        ),
    ],
)

list_entities_tool = ToolDefinition(
    name="list_entities",
    description="List records filtered by type, status, owner, category or source",
    parameters=[
        ToolParameter(
            name="type", type="string", description="Record type", enum=ENTITY_TYPE_VALUES
        ),
        ToolParameter(name="status", type="string", description="Status", enum=STATUS_VALUES),
        ToolParameter(name="owner", type="string", description="Owner or assignee"),
        ToolParameter(name="category", type="string", description="Category"),
        ToolParameter(
            name="source", type="string", description="Integration source, e.g. 'salesforce'"
        ),
        ToolParameter(
            name="limit", type="integer", description="Maximum results (default: 100)", default=100
        ),
    ],
)
