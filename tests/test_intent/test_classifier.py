"""Tests for the rule-based intent classifier."""

import pytest

from ops_copilot.intent import (
    IntentAction,
    classify,
    classify_with_rule,
    normalize_text,
)


class TestPinnedScenarios:
    """Phrasings whose interpretation is fixed."""

    def test_create_project_with_title(self) -> None:
        """Test "create project: X" carries the title verbatim."""
        intent = classify("create project: Mobile App v2")

        assert intent.action == IntentAction.CREATE
        assert intent.entity_type == "project"
        assert intent.data == {"title": "Mobile App v2"}

    def test_show_all_tasks(self) -> None:
        """Test a plain list request has no filters."""
        intent = classify("show all tasks")

        assert intent.action == IntentAction.LIST
        assert intent.entity_type == "task"
        assert intent.filters is None

    def test_delete_entity_by_id(self) -> None:
        """Test an untyped delete keeps the id and no type."""
        intent = classify("delete entity abc123")

        assert intent.action == IntentAction.DELETE
        assert intent.entity_type is None
        assert intent.data == {"id": "abc123"}

    def test_categorized_project_beats_generic_create(self) -> None:
        """Test the category-specific rule wins over the generic create rule."""
        intent, rule = classify_with_rule("create SaaS project: Billing Portal")

        assert rule == "create_categorized_project"
        assert intent.entity_type == "project"
        assert intent.category == "saas"
        assert intent.data == {"category": "saas", "title": "Billing Portal"}

    def test_compliance_report_is_a_report(self) -> None:
        """Test "create compliance report" is not a create."""
        intent, rule = classify_with_rule("create compliance report")

        assert rule == "report"
        assert intent.action == IntentAction.REPORT
        assert intent.entity_type == "compliance"

    def test_burn_and_pipeline_resolves_to_finance(self) -> None:
        """Test overlapping metric keywords resolve to the first category."""
        intent = classify("show burn and pipeline")

        assert intent.action == IntentAction.METRICS
        assert intent.category == "finance"

    def test_sales_team_resolves_to_sales(self) -> None:
        """Test "sales team" is a sales metrics query, not team workload."""
        intent = classify("show sales team")

        assert intent.action == IntentAction.METRICS
        assert intent.category == "sales"


class TestRuleCoverage:
    """One representative phrasing per rule."""

    @pytest.mark.parametrize(
        "text,rule,action",
        [
            ("generate weekly sales report", "report", IntentAction.REPORT),
            ("show team workload", "team_workload", IntentAction.REPORT),
            ("add task: Call Acme", "create_entity", IntentAction.CREATE),
            ("create something", "create_unspecified", IntentAction.CREATE),
            ("delete task T-1", "delete_entity", IntentAction.DELETE),
            ("mark task T-1 as done", "mark_status", IntentAction.UPDATE),
            ("complete task T-1", "complete_entity", IntentAction.UPDATE),
            ("update task T-1 priority to high", "update_field", IntentAction.UPDATE),
            ("show tasks due this week", "tasks_due", IntentAction.LIST),
            ("check gst compliance", "compliance", IntentAction.COMPLIANCE),
            ("forecast revenue", "forecast", IntentAction.FORECAST),
            ("show active saas projects", "list_entities", IntentAction.LIST),
            ("what's our MRR?", "metrics_query", IntentAction.METRICS),
            ("search for Acme", "search", IntentAction.SEARCH),
            ("index documents", "sync_documents", IntentAction.SYNC),
            ("sync salesforce opportunities", "sync_source", IntentAction.SYNC),
        ],
    )
    def test_rule_selected(self, text: str, rule: str, action: IntentAction) -> None:
        """Test each phrasing is handled by the expected rule."""
        intent, rule_name = classify_with_rule(text)

        assert rule_name == rule
        assert intent.action == action

    def test_mark_status_normalizes_status(self) -> None:
        """Test status aliases map to record statuses."""
        intent = classify("mark task T-1 as done")

        assert intent.entity_type == "task"
        assert intent.data == {"id": "T-1", "status": "completed"}

    def test_update_field_extracts_field_and_value(self) -> None:
        """Test field/value extraction for updates."""
        intent = classify("update task T-1 priority to High")

        assert intent.data == {"id": "T-1", "priority": "high"}

    def test_tasks_due_window(self) -> None:
        """Test due windows are converted to a day count."""
        assert classify("show tasks due this week").filters == {"due_within_days": 7}
        assert classify("show tasks due in 3 days").filters == {"due_within_days": 3}
        assert classify("show tasks due today").filters == {"due_within_days": 0}

    def test_list_with_status_and_category(self) -> None:
        """Test list filters for status and category words."""
        intent = classify("show active saas projects")

        assert intent.entity_type == "project"
        assert intent.filters == {"status": "active", "category": "saas"}

    def test_report_with_period(self) -> None:
        """Test the period is resolved from the report subject."""
        intent = classify("generate weekly sales report")

        assert intent.category == "sales"
        assert intent.period == "week"

    def test_sync_source_defaults_to_opportunities(self) -> None:
        """Test a bare Salesforce sync targets opportunities."""
        intent = classify("sync salesforce")

        assert intent.entity_type == "opportunity"
        assert intent.filters == {"source": "salesforce"}

    def test_compliance_framework(self) -> None:
        """Test the framework is captured as the category."""
        assert classify("check gst compliance").category == "gst"
        assert classify("compliance status").category is None


class TestMissingIds:
    """Mutations without a record id fall through to the corrective rules."""

    @pytest.mark.parametrize(
        ("text", "rule"),
        [
            ("delete task", "delete_unspecified"),
            ("remove the project", "delete_unspecified"),
            ("delete entity", "delete_unspecified"),
            ("mark task as done", "update_unspecified"),
            ("set task to blocked", "update_unspecified"),
            ("complete project", "update_unspecified"),
            ("close team member", "update_unspecified"),
        ],
    )
    def test_type_word_is_not_an_id(self, text: str, rule: str) -> None:
        """Test a type word or connective is never taken as the id."""
        intent, rule_name = classify_with_rule(text)

        assert rule_name == rule
        assert intent.data is None

    def test_id_starting_with_type_word(self) -> None:
        """Test ids that merely begin with a type word still match."""
        assert classify("delete task-42").data == {"id": "task-42"}
        assert classify("complete project projects2").data == {
            "id": "projects2",
            "status": "completed",
        }


class TestBarePhrases:
    """Short phrases recognized anywhere in the input."""

    @pytest.mark.parametrize(
        "text",
        ["finance summary", "burn rate", "burn", "quick finance summary please"],
    )
    def test_finance_phrases(self, text: str) -> None:
        """Test finance phrases become a finance metrics query."""
        intent, rule = classify_with_rule(text)

        assert rule == "finance_phrase"
        assert intent.action == IntentAction.METRICS
        assert intent.category == "finance"

    @pytest.mark.parametrize("text", ["team utilization", "utilisation", "utilization please"])
    def test_utilization_phrases(self, text: str) -> None:
        """Test utilization phrases become the team workload report."""
        intent, rule = classify_with_rule(text)

        assert rule == "utilization_phrase"
        assert intent.action == IntentAction.REPORT
        assert intent.entity_type == "team_member"

    def test_anchored_rules_win(self) -> None:
        """Test leading-verb phrasings keep their own rules."""
        assert classify_with_rule("show burn")[1] == "metrics_query"
        assert classify_with_rule("show team utilization")[1] == "team_workload"
        assert classify_with_rule("search burn notes")[1] == "search"


class TestTotality:
    """Every input gets an intent, deterministically."""

    def test_unrecognized_input_is_unknown(self) -> None:
        """Test unmatched input yields unknown with the normalized query."""
        intent, rule = classify_with_rule("  Hello   there! ")

        assert rule == "unknown"
        assert intent.action == IntentAction.UNKNOWN
        assert intent.query == "hello there"

    def test_empty_input_is_unknown(self) -> None:
        """Test empty text is classified, not rejected."""
        assert classify("").action == IntentAction.UNKNOWN

    def test_classification_is_deterministic(self) -> None:
        """Test repeated classification yields equal intents."""
        text = "create SaaS project: Billing Portal"

        assert classify(text) == classify(text)

    def test_whitespace_and_punctuation_do_not_matter(self) -> None:
        """Test normalization makes spacing and trailing marks irrelevant."""
        assert classify("show   all tasks?!") == classify("show all tasks")

    def test_normalize_text_preserves_case(self) -> None:
        """Test normalization keeps the caller's casing."""
        assert normalize_text("  Create  Project:  Mobile App  ") == "Create Project: Mobile App"

    def test_intent_is_immutable(self) -> None:
        """Test a ParsedIntent cannot be changed after classification."""
        intent = classify("show all tasks")

        with pytest.raises(ValueError):
            intent.action = IntentAction.DELETE  # type: ignore[misc]
