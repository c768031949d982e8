"""Unit tests for the event dispatcher."""
import logging

import pytest
from analytics_client.models.content import BlockKind, ContentBlock, FoldMode
from analytics_client.services.event_dispatcher import dispatch, is_terminal


class TestEventDispatcher:
    """Test suite for dispatch()."""

    @pytest.mark.parametrize("event_name,kind", [
        ("sql_generated", BlockKind.SQL),
        ("sql_retry", BlockKind.SQL),
        ("data_retrieved", BlockKind.DATA),
        ("analysis", BlockKind.ANALYSIS),
        ("suggestions", BlockKind.SUGGESTIONS),
        ("clarification_needed", BlockKind.CLARIFICATION),
        ("advisory", BlockKind.EXPLANATORY),
        ("explanatory", BlockKind.EXPLANATORY),
        ("narrative", BlockKind.NARRATIVE),
        ("error", BlockKind.ERROR),
    ])
    def test_append_events(self, event_name, kind):
        """Test one-to-one events map to their kind with append folding."""
        payload = {"value": event_name}
        assert dispatch(event_name, payload) == [(ContentBlock(kind, payload), FoldMode.APPEND)]

    def test_thinking_replaces(self):
        """Test thinking events fold with replace-same-kind."""
        payload = {"message": "Generating SQL..."}
        assert dispatch("thinking", payload) == [(ContentBlock(BlockKind.THINKING, payload), FoldMode.REPLACE)]

    def test_sql_retry_keeps_correction_payload(self):
        """Test that a retry is a new sql block carrying the corrected query."""
        payload = {"corrected_sql": "SELECT 1", "attempt": 2}
        [(block, mode)] = dispatch("sql_retry", payload)
        assert block.kind == BlockKind.SQL
        assert block.content["corrected_sql"] == "SELECT 1"
        assert mode == FoldMode.APPEND

    def test_visualization_with_chart_and_metrics(self):
        """Test a visualization carrying both a chart and metrics yields two blocks."""
        metrics = [{"label": "Total", "value": 95}]
        payload = {"chartConfig": {"type": "bar", "title": "Courses"}, "metrics": metrics}

        result = dispatch("visualization", payload)

        assert result == [
            (ContentBlock(BlockKind.CHART, payload), FoldMode.APPEND),
            (ContentBlock(BlockKind.METRICS, metrics), FoldMode.APPEND),
        ]

    def test_visualization_with_empty_metrics(self):
        """Test an empty metrics list adds no metrics block."""
        payload = {"chartConfig": {"type": "pie"}, "metrics": []}
        result = dispatch("visualization", payload)

        assert len(result) == 1
        assert result[0][0].kind == BlockKind.CHART

    def test_visualization_metrics_only(self):
        """Test metrics without a chart configuration."""
        result = dispatch("visualization", {"metrics": [{"label": "Avg", "value": 3.2}]})
        assert [block.kind for block, _ in result] == [BlockKind.METRICS]

    def test_visualization_without_content(self):
        """Test a visualization with neither chart nor metrics yields nothing."""
        assert dispatch("visualization", {"chartConfig": None, "metrics": []}) == []
        assert dispatch("visualization", {}) == []
        assert dispatch("visualization", ["not", "an", "object"]) == []

    def test_complete_yields_nothing(self):
        """Test the end-of-turn marker produces no block."""
        assert dispatch("complete", {"status": "done"}) == []
        assert is_terminal("complete")
        assert not is_terminal("narrative")

    def test_unknown_event_logged_and_ignored(self, caplog):
        """Test unrecognized event names never raise."""
        with caplog.at_level(logging.WARNING):
            assert dispatch("heartbeat", {"ts": 1}) == []
        assert "heartbeat" in caplog.text
