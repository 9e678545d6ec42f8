"""Tests for the Fallback Responder."""

from datetime import date

import pytest

from ops_copilot.orchestrator import DEFAULT_REPLY, ContextSnapshot, FallbackResponder

TODAY = date(2026, 10, 18)


@pytest.fixture
def responder() -> FallbackResponder:
    """Responder with the default topic rules."""
    return FallbackResponder()


@pytest.fixture
def snapshot() -> ContextSnapshot:
    """A small business snapshot."""
    return ContextSnapshot(
        tasks=[
            {"id": "t1", "title": "File GST return", "due_date": "2026-10-10", "owner": "Priya"},
            {"id": "t2", "title": "Ship billing v2", "due_date": "2026-10-25", "owner": "Arjun"},
        ],
        projects=[{"id": "p1", "title": "Billing Portal"}],
        team=[
            {"id": "m1", "title": "Priya", "role": "Engineering Lead"},
            {"id": "m2", "title": "Arjun"},
        ],
        customers=[{"id": "c1", "title": "Acme"}],
        metrics={"mrr": 120000, "mrr_growth_pct": 4.5, "burn": 80000, "cash_balance": 720000},
    )


class TestTopics:
    """Topic selection."""

    @pytest.mark.parametrize(
        "message,topic",
        [
            ("hello there", "greeting"),
            ("what's our MRR?", "revenue"),
            ("how long is our runway", "burn"),
            ("how is the sales pipeline", "pipeline"),
            ("what is overdue", "tasks"),
            ("list projects", "projects"),
            ("who is overloaded", "team"),
            ("our biggest clients", "customers"),
            ("what can you do", "help"),
            ("tell me a joke", "default"),
        ],
    )
    def test_topic(self, responder: FallbackResponder, message: str, topic: str) -> None:
        """Test each message maps to its topic."""
        assert responder.topic(message) == topic

    def test_first_matching_topic_wins(self, responder: FallbackResponder) -> None:
        """Test revenue beats burn when both appear."""
        assert responder.topic("compare MRR and burn") == "revenue"


class TestReplies:
    """Reply content."""

    def test_revenue_quotes_snapshot(
        self, responder: FallbackResponder, snapshot: ContextSnapshot
    ) -> None:
        """Test the revenue answer uses the recorded MRR."""
        reply = responder.respond("what's our MRR?", snapshot, TODAY)

        assert "Current MRR is 120000" in reply
        assert "1440000" in reply
        assert "4.5% per month" in reply

    def test_burn_derives_runway(
        self, responder: FallbackResponder, snapshot: ContextSnapshot
    ) -> None:
        """Test runway is derived from cash and burn."""
        reply = responder.respond("what's our runway?", snapshot, TODAY)

        assert "Monthly burn is 80000" in reply
        assert "9 months of runway" in reply

    def test_tasks_reports_overdue(
        self, responder: FallbackResponder, snapshot: ContextSnapshot
    ) -> None:
        """Test overdue tasks are named."""
        reply = responder.respond("any overdue tasks?", snapshot, TODAY)

        assert reply.startswith("You have 2 open tasks, 1 overdue (File GST return)")
        assert "Next up: Ship billing v2" in reply

    def test_team_counts_open_tasks(
        self, responder: FallbackResponder, snapshot: ContextSnapshot
    ) -> None:
        """Test team answers include role and open task counts."""
        reply = responder.respond("team workload", snapshot, TODAY)

        assert "Priya (Engineering Lead, 1 open tasks)" in reply
        assert "Arjun (1 open tasks)" in reply

    def test_missing_data_is_explained(self, responder: FallbackResponder) -> None:
        """Test topics without data say so instead of inventing figures."""
        reply = responder.respond("what's our MRR?", ContextSnapshot(), TODAY)

        assert "don't have revenue figures" in reply

    def test_default_with_empty_snapshot(self, responder: FallbackResponder) -> None:
        """Test the fixed default reply when nothing is known."""
        assert responder.respond("tell me a joke") == DEFAULT_REPLY

    def test_default_summarizes_snapshot(
        self, responder: FallbackResponder, snapshot: ContextSnapshot
    ) -> None:
        """Test unmatched messages get a summary of the snapshot."""
        reply = responder.respond("tell me a joke", snapshot, TODAY)

        assert "2 open tasks" in reply
        assert "MRR of 120000" in reply

    @pytest.mark.parametrize(
        "message", ["", "hi", "MRR", "burn", "deals", "tasks", "projects", "team", "clients"]
    )
    def test_never_empty(self, responder: FallbackResponder, message: str) -> None:
        """Test every topic yields text even with an empty snapshot."""
        assert responder.respond(message, ContextSnapshot(), TODAY).strip()
