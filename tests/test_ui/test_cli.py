"""Tests for the command-line interface."""

import json
from typing import Any
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from ops_copilot.capabilities import Capabilities
from ops_copilot.config import AppConfig
from ops_copilot.store import InMemoryEntityStore, InMemoryEventPublisher, SeedDataError
from ops_copilot.tools import build_registry
from ops_copilot.ui.cli import app

runner = CliRunner()


@pytest.fixture
def capabilities(store: InMemoryEntityStore, settings: AppConfig) -> Capabilities:
    """Capabilities without a reasoning service."""
    return Capabilities(
        store=store,
        registry=build_registry(store),
        publisher=InMemoryEventPublisher(),
        settings=settings,
    )


@pytest.fixture
def patched(capabilities: Capabilities) -> Any:
    """Make every CLI command use the test capabilities."""

    async def fake_build(*args: Any, **kwargs: Any) -> Capabilities:
        return capabilities

    with patch("ops_copilot.ui.cli.build_capabilities", fake_build):
        yield


class TestCommand:
    """ops-copilot command."""

    def test_create(self, patched: Any, store: InMemoryEntityStore) -> None:
        """Test a create prints the confirmation and a record table."""
        result = runner.invoke(app, ["command", "create project: Mobile App v2"])

        assert result.exit_code == 0
        assert 'Created project: "Mobile App v2"' in result.output
        assert "record(s)" in result.output

    def test_json_output(self, patched: Any) -> None:
        """Test --json prints the result model."""
        result = runner.invoke(app, ["command", "show all tasks", "--json"])

        assert result.exit_code == 0
        body = json.loads(result.output)
        assert body["message"] == "Found 0 tasks"
        assert body["intent"]["action"] == "list"

    def test_unknown_exits_nonzero(self, patched: Any) -> None:
        """Test failed commands print suggestions and exit 1."""
        result = runner.invoke(app, ["command", "make me a sandwich"])

        assert result.exit_code == 1
        assert "Try:" in result.output

    def test_blank_input(self, patched: Any) -> None:
        """Test blank input is rejected."""
        result = runner.invoke(app, ["command", "  "])

        assert result.exit_code == 1
        assert "Input required" in result.output

    def test_bad_seed_file(self) -> None:
        """Test seed errors are reported and exit 1."""

        async def failing_build(*args: Any, **kwargs: Any) -> Capabilities:
            raise SeedDataError("Seed data file not found: missing.yaml")

        with patch("ops_copilot.ui.cli.build_capabilities", failing_build):
            result = runner.invoke(app, ["command", "show all tasks"])

        assert result.exit_code == 1
        assert "Seed data file not found" in result.output


class TestChat:
    """ops-copilot chat."""

    def test_streamed_fallback(self, patched: Any) -> None:
        """Test chat without a reasoning service answers from local data."""
        result = runner.invoke(app, ["chat", "hello"])

        assert result.exit_code == 0
        assert "Hello!" in result.output

    def test_not_streamed(self, patched: Any) -> None:
        """Test --no-stream prints the reply and trace id."""
        result = runner.invoke(app, ["chat", "hello", "--no-stream"])

        assert result.exit_code == 0
        assert "reasoning service unavailable" in result.output
        assert "Trace ID:" in result.output


class TestTools:
    """ops-copilot tools."""

    def test_json(self, patched: Any) -> None:
        """Test --json prints the function definitions."""
        result = runner.invoke(app, ["tools", "--json"])

        assert result.exit_code == 0
        names = [t["function"]["name"] for t in json.loads(result.output)]
        assert names[0] == "create_entity"
        assert len(names) == 10
