"""Unit tests for BookmarkStore."""
import json
from datetime import datetime

import pytest
from analytics_client.models.bookmark import BookmarkedInsight
from analytics_client.models.content import BlockKind, ContentBlock
from analytics_client.models.conversation import Role, Turn
from analytics_client.services.bookmark_store import BookmarkStore


class TestBookmarkStore:
    """Test suite for BookmarkStore."""

    @pytest.fixture
    def path(self, tmp_path):
        return tmp_path / "nested" / "bookmarks.json"

    @pytest.fixture
    def store(self, path):
        return BookmarkStore(str(path))

    def test_empty_when_file_missing(self, store):
        """Test a fresh store has no bookmarks."""
        assert store.bookmarks == []
        assert store.all_tags() == []

    def test_add_persists_newest_first(self, store, path):
        """Test bookmarks are saved and survive a reload."""
        first = store.add(title="First", query="q1", tags=["sales", "sales", "q1"])
        second = store.add(title="Second", query="q2")

        assert first.bookmark_id.startswith("bm-")
        assert first.tags == ["sales", "q1"]
        assert [b.title for b in store.bookmarks] == ["Second", "First"]

        reloaded = BookmarkStore(str(path))
        assert [b.bookmark_id for b in reloaded.bookmarks] == [second.bookmark_id, first.bookmark_id]
        assert reloaded.get(first.bookmark_id).tags == ["sales", "q1"]

    def test_add_from_turn(self, store):
        """Test an assistant turn is bookmarked with its chart and summary."""
        chart_config = {"type": "bar", "title": "Courses by Category"}
        turn = Turn(turn_id="t1", role=Role.ASSISTANT, blocks=[
            ContentBlock(BlockKind.ANALYSIS, {"summary": "Technology leads"}),
            ContentBlock(BlockKind.CHART, {"chartConfig": chart_config}),
        ])

        bookmark = store.add_from_turn(turn, "Courses by category")

        assert bookmark.title == "Courses by Category"
        assert bookmark.query == "Courses by category"
        assert bookmark.summary == "Technology leads"
        assert bookmark.chart_config == chart_config
        assert bookmark.tags == ["general"]
        assert bookmark.notes == ""

    def test_add_from_turn_defaults(self, store):
        """Test the placeholders used for a turn without chart or analysis."""
        turn = Turn(turn_id="t1", role=Role.ASSISTANT, blocks=[ContentBlock(BlockKind.NARRATIVE, {"text": "hi"})])

        bookmark = store.add_from_turn(turn, "q")

        assert bookmark.title == "Saved Insight"
        assert bookmark.summary == "No summary available"

    def test_remove(self, store):
        """Test removal by id."""
        bookmark = store.add(title="T", query="q")

        assert store.remove(bookmark.bookmark_id) is True
        assert store.remove(bookmark.bookmark_id) is False
        assert store.get(bookmark.bookmark_id) is None

    def test_update(self, store, path):
        """Test updating notes and tags."""
        bookmark = store.add(title="T", query="q")

        updated = store.update(bookmark.bookmark_id, notes="check later", tags=["todo"])

        assert updated.notes == "check later"
        assert BookmarkStore(str(path)).get(bookmark.bookmark_id).tags == ["todo"]
        assert store.update("missing", notes="x") is None

    @pytest.mark.parametrize("updates", [{"bookmark_id": "other"}, {"unknown_field": 1}])
    def test_invalid_update(self, store, updates):
        """Test the id and unknown fields cannot be updated."""
        bookmark = store.add(title="T", query="q")
        with pytest.raises(ValueError):
            store.update(bookmark.bookmark_id, **updates)
        assert store.get(bookmark.bookmark_id).bookmark_id == bookmark.bookmark_id

    def test_tags(self, store):
        """Test tag filtering and the sorted tag set."""
        store.add(title="A", query="q", tags=["sales"])
        store.add(title="B", query="q", tags=["ops", "sales"])

        assert [b.title for b in store.by_tag("sales")] == ["B", "A"]
        assert store.all_tags() == ["ops", "sales"]

    def test_export_import(self, store, tmp_path):
        """Test exported bookmarks import into another store ahead of its own."""
        store.add(title="Exported", query="q", chart_config={"title": "c"}, data=[{"a": 1}])
        exported = store.export_json()

        other = BookmarkStore(str(tmp_path / "other.json"))
        other.add(title="Local", query="q")

        assert other.import_json(exported) is True
        assert [b.title for b in other.bookmarks] == ["Exported", "Local"]
        assert other.bookmarks[0].data == [{"a": 1}]

    @pytest.mark.parametrize("document", [
        "not json",
        '{"id": "bm-1"}',
        '[{"title": "no id"}]',
        '[{"id": "bm-1", "timestamp": "yesterday"}]',
        '[{"id": "bm-1", "timestamp": 12}]',
    ])
    def test_import_rejects_invalid_documents(self, store, document):
        """Test invalid imports report failure and change nothing."""
        store.add(title="Keep", query="q")

        assert store.import_json(document) is False
        assert [b.title for b in store.bookmarks] == ["Keep"]

    def test_import_accepts_utc_suffix(self, store):
        """Test timestamps ending in Z are accepted."""
        document = json.dumps([{"id": "bm-1", "timestamp": "2024-03-01T10:00:00.000Z", "title": "T"}])

        assert store.import_json(document) is True
        assert store.get("bm-1").timestamp.year == 2024

    def test_corrupt_file_loads_empty(self, path):
        """Test an unreadable bookmarks file does not prevent startup."""
        path.parent.mkdir(parents=True)
        path.write_text("{broken", encoding="utf-8")

        assert BookmarkStore(str(path)).bookmarks == []

    def test_clear(self, store, path):
        """Test clearing persists an empty list."""
        store.add(title="T", query="q")
        store.clear()

        assert store.bookmarks == []
        assert json.loads(path.read_text(encoding="utf-8")) == []


class TestBookmarkedInsight:
    """Test suite for the bookmark record."""

    def test_to_dict_field_names(self):
        """Test the exported field names."""
        bookmark = BookmarkedInsight(
            bookmark_id="bm-1",
            timestamp=datetime(2024, 3, 1, 10, 0, 0),
            title="T",
            query="q",
            chart_config={"title": "c"},
        )
        assert bookmark.to_dict() == {
            "id": "bm-1",
            "timestamp": "2024-03-01T10:00:00",
            "title": "T",
            "query": "q",
            "summary": None,
            "chartConfig": {"title": "c"},
            "data": None,
            "tags": [],
            "notes": None,
        }

    def test_from_dict_dedups_tags(self):
        """Test tags form a set preserving first occurrence order."""
        bookmark = BookmarkedInsight.from_dict({
            "id": "bm-1",
            "timestamp": "2024-03-01T10:00:00",
            "tags": ["b", "a", "b"],
        })
        assert bookmark.tags == ["b", "a"]
