"""Shared fixtures."""

import pytest

from ops_copilot.config import AppConfig
from ops_copilot.store import InMemoryEntityStore
from ops_copilot.telemetry import TraceContext


@pytest.fixture
def settings() -> AppConfig:
    """Settings with the reasoning service disabled and no seed file."""
    return AppConfig(reasoning_api_key=None, seed_data_path=None, stream_chunk_delay_ms=0)


@pytest.fixture
def store() -> InMemoryEntityStore:
    """Empty in-memory store."""
    return InMemoryEntityStore()


@pytest.fixture
def trace_ctx() -> TraceContext:
    """Fresh trace for one test."""
    return TraceContext.new_trace()
