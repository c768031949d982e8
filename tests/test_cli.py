"""Unit tests for the terminal rendering helpers."""
from io import StringIO

import pytest
from analytics_client.cli import TranscriptPrinter, format_block
from analytics_client.models.content import BlockKind, ContentBlock
from analytics_client.models.conversation import Role, Turn


class TestFormatBlock:
    """Test suite for format_block()."""

    @pytest.mark.parametrize("kind,content,expected", [
        (BlockKind.TEXT, "How many courses?", "How many courses?"),
        (BlockKind.THINKING, {"message": "Generating SQL..."}, "... Generating SQL..."),
        (BlockKind.SQL, {"sql": "SELECT 1"}, "[SQL]\nSELECT 1"),
        (BlockKind.SQL, {"corrected_sql": "SELECT 2"}, "[SQL (retry)]\nSELECT 2"),
        (BlockKind.DATA, {"data": [{"a": 1}], "row_count": 40}, "[data] 40 rows"),
        (BlockKind.CHART, {"chartConfig": {"title": "Courses"}}, "[chart] Courses"),
        (BlockKind.CHART, {"chartConfig": {}}, "[chart] Chart"),
        (BlockKind.METRICS, [{"label": "Total", "value": 95}], "[metrics] Total: 95"),
        (BlockKind.ERROR, {"message": "Connection Error", "details": "down"}, "[error] Connection Error (down)"),
        (BlockKind.SUGGESTIONS, {"suggestions": ["a", "b"]}, "[suggestions]\n  - a\n  - b"),
        (BlockKind.ANALYSIS, {"summary": "Up 5%"}, "[analysis] Up 5%"),
        (BlockKind.NARRATIVE, {"other": 1}, '[narrative] {"other": 1}'),
    ])
    def test_rendering(self, kind, content, expected):
        """Test each kind's terminal rendering."""
        assert format_block(ContentBlock(kind, content)) == expected


class TestTranscriptPrinter:
    """Test suite for TranscriptPrinter."""

    def _turn(self, *blocks):
        return Turn(turn_id="a1", role=Role.ASSISTANT, blocks=list(blocks))

    def test_prints_each_block_once(self):
        """Test growing snapshots print only new blocks."""
        out = StringIO()
        printer = TranscriptPrinter(out)
        user = Turn(turn_id="u1", role=Role.USER, blocks=[ContentBlock(BlockKind.TEXT, "q")])
        thinking = ContentBlock(BlockKind.THINKING, {"message": "working"})
        sql = ContentBlock(BlockKind.SQL, {"sql": "SELECT 1"})
        data = ContentBlock(BlockKind.DATA, {"data": [], "row_count": 0})

        printer([user])
        printer([user, self._turn(thinking)])
        printer([user, self._turn(thinking, sql)])
        printer([user, self._turn(sql, data)])

        assert out.getvalue().splitlines() == ["... working", "[SQL]", "SELECT 1", "[data] 0 rows"]

    def test_reset_on_empty_transcript(self):
        """Test a cleared transcript allows the same turn ids to print again."""
        out = StringIO()
        printer = TranscriptPrinter(out)
        turn = self._turn(ContentBlock(BlockKind.ANALYSIS, {"summary": "s"}))

        printer([turn])
        printer([])
        printer([turn])

        assert out.getvalue().splitlines() == ["[analysis] s", "[analysis] s"]
