"""Tests for the context snapshot and exchange prompts."""

import json
from datetime import date

import pytest

from ops_copilot.config import AppConfig
from ops_copilot.orchestrator import ContextSnapshot, build_snapshot, format_snapshot
from ops_copilot.orchestrator.prompts import (
    FOLLOWUP_INSTRUCTION,
    TOOL_RESULTS_PREFIX,
    build_system_prompt,
    format_tool_call_turn,
    format_tool_results,
)
from ops_copilot.store import (
    Entity,
    EntityStatus,
    EntityType,
    InMemoryEntityStore,
    Metric,
    MetricCategory,
)
from ops_copilot.tools import build_registry
from ops_copilot.tools.types import ToolCall, ToolErrorKind, ToolResult


class TestBuildSnapshot:
    """Test build_snapshot."""

    @pytest.mark.asyncio
    async def test_open_records_only(self, store: InMemoryEntityStore, settings: AppConfig) -> None:
        """Test closed tasks and projects are left out."""
        await store.create(Entity(type=EntityType.TASK, title="Open task"))
        await store.create(
            Entity(type=EntityType.TASK, title="Done task", status=EntityStatus.COMPLETED)
        )
        await store.create(
            Entity(type=EntityType.PROJECT, title="Old project", status=EntityStatus.ARCHIVED)
        )
        await store.record_metric(
            Metric(key="mrr", value=120000, category=MetricCategory.FINANCE)
        )

        snapshot = await build_snapshot(store, settings)

        assert [t["title"] for t in snapshot.tasks] == ["Open task"]
        assert snapshot.projects == []
        assert snapshot.metrics == {"mrr": 120000}

    @pytest.mark.asyncio
    async def test_limits(self, store: InMemoryEntityStore) -> None:
        """Test each section is capped by its configured limit."""
        for i in range(5):
            await store.create(Entity(type=EntityType.TASK, title=f"Task {i}"))
        await store.create(Entity(type=EntityType.CUSTOMER, title="Acme"))
        settings = AppConfig(seed_data_path=None, snapshot_max_tasks=2, snapshot_max_customers=0)

        snapshot = await build_snapshot(store, settings)

        assert len(snapshot.tasks) == 2
        assert snapshot.customers == []

    @pytest.mark.asyncio
    async def test_slim_records(self, store: InMemoryEntityStore, settings: AppConfig) -> None:
        """Test records keep prompt fields plus selected metadata."""
        member = await store.create(
            Entity(
                type=EntityType.TEAM_MEMBER,
                title="Priya Nair",
                description="Long biography that stays out of the prompt",
                metadata={"role": "Engineering Lead", "utilization": 85, "salary": 1},
            )
        )

        snapshot = await build_snapshot(store, settings)

        [record] = snapshot.team
        assert record["id"] == member.id
        assert record["role"] == "Engineering Lead"
        assert record["utilization"] == 85
        assert "description" not in record
        assert "salary" not in record


class TestFormatSnapshot:
    """Test format_snapshot."""

    def test_empty(self) -> None:
        """Test the empty snapshot message."""
        assert format_snapshot(ContextSnapshot()) == "No business records are available yet."

    def test_sections(self) -> None:
        """Test metrics and records are rendered with ids in brackets."""
        text = format_snapshot(
            ContextSnapshot(
                tasks=[{"id": "t1", "title": "Ship v2", "status": "active", "owner": "Arjun"}],
                metrics={"mrr": 120000.0, "runway": 9.5},
            )
        )

        assert "Latest metrics:\n- mrr: 120000\n- runway: 9.5" in text
        assert "Open tasks:\n- [t1] Ship v2 (status: active, owner: Arjun)" in text
        assert "Customers" not in text


class TestPrompts:
    """Test system prompt and tool-loop turn rendering."""

    def test_system_prompt(self, store: InMemoryEntityStore) -> None:
        """Test the prompt carries date, snapshot and tool catalogue."""
        prompt = build_system_prompt(
            ContextSnapshot(metrics={"mrr": 5.0}), build_registry(store), date(2026, 10, 18)
        )

        assert "Today is 2026-10-18." in prompt
        assert "- mrr: 5" in prompt
        assert "- create_entity:" in prompt
        assert "- get_team_workload:" in prompt

    def test_tool_call_turn(self) -> None:
        """Test requested calls are replayed as text."""
        turn = format_tool_call_turn(
            "",
            [ToolCall(id="c1", name="get_metrics", arguments={"category": "finance"})],
        )

        assert turn == 'Calling tools:\n- get_metrics({"category": "finance"})'

    def test_tool_call_turn_keeps_content(self) -> None:
        """Test any assistant text precedes the call list."""
        turn = format_tool_call_turn("Checking.", [ToolCall(id="c1", name="get_tasks_due")])

        assert turn == "Checking.\n\nCalling tools:\n- get_tasks_due({})"

    def test_tool_results(self) -> None:
        """Test results are serialized in call order with the follow-up instruction."""
        text = format_tool_results(
            [
                ToolResult(
                    tool_call_id="c1",
                    tool_name="get_metrics",
                    success=True,
                    output={"metrics": {"mrr": 1.0}},
                ),
                ToolResult(
                    tool_call_id="c2",
                    tool_name="get_entity",
                    success=False,
                    error_kind=ToolErrorKind.NOT_FOUND,
                    error="Not found",
                ),
            ]
        )

        header, body, instruction = text.split("\n", 2)
        assert header == TOOL_RESULTS_PREFIX
        assert json.loads(body) == [
            {"tool": "get_metrics", "success": True, "result": {"metrics": {"mrr": 1.0}}},
            {
                "tool": "get_entity",
                "success": False,
                "error_kind": "not_found",
                "error": "Not found",
            },
        ]
        assert instruction.strip() == FOLLOWUP_INSTRUCTION
