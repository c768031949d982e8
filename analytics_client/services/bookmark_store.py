"""Bookmark store persisting saved insights to a JSON document."""
import json
import logging
import os
import time
import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import config
from ..models.bookmark import BookmarkedInsight
from ..models.content import BlockKind
from ..models.conversation import Turn

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Saved Insight"
DEFAULT_SUMMARY = "No summary available"
DEFAULT_TAG = "general"


class BookmarkStore:
    """Durable list of bookmarked insights, newest first, keyed by bookmark id."""

    def __init__(self, path: Optional[str] = None):
        """
        Initialize the store and load any existing bookmarks.

        Args:
            path: JSON file location (defaults to BOOKMARKS_PATH from environment)
        """
        self.path = Path(path or config.BOOKMARKS_PATH)
        self._bookmarks: List[BookmarkedInsight] = self._load()
        logger.info(f"BookmarkStore loaded {len(self._bookmarks)} bookmarks from {self.path}")

    @property
    def bookmarks(self) -> List[BookmarkedInsight]:
        return list(self._bookmarks)

    def get(self, bookmark_id: str) -> Optional[BookmarkedInsight]:
        for bookmark in self._bookmarks:
            if bookmark.bookmark_id == bookmark_id:
                return bookmark
        return None

    def add(
        self,
        title: str,
        query: str,
        summary: Optional[str] = None,
        chart_config: Optional[Dict[str, Any]] = None,
        data: Optional[List[Any]] = None,
        tags: Optional[List[str]] = None,
        notes: Optional[str] = None
    ) -> BookmarkedInsight:
        """Create a bookmark with a fresh id and timestamp and store it first."""
        bookmark = BookmarkedInsight(
            bookmark_id=f"bm-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}",
            timestamp=datetime.now(),
            title=title,
            query=query,
            summary=summary,
            chart_config=chart_config,
            data=data,
            tags=list(dict.fromkeys(tags or [])),
            notes=notes
        )
        self._bookmarks.insert(0, bookmark)
        self._save()
        return bookmark

    def add_from_turn(self, turn: Turn, query: str) -> BookmarkedInsight:
        """
        Bookmark an assistant turn.

        The title comes from the chart title, the summary from the analysis
        block's ``summary`` field.

        Args:
            turn: Finalized assistant turn
            query: User query that produced the turn
        """
        chart_config = None
        for block in turn.blocks_of(BlockKind.CHART):
            if isinstance(block.content, dict) and isinstance(block.content.get("chartConfig"), dict):
                chart_config = block.content["chartConfig"]
                break

        summary = None
        for block in turn.blocks_of(BlockKind.ANALYSIS):
            if isinstance(block.content, dict) and block.content.get("summary"):
                summary = block.content["summary"]
                break

        title = (chart_config or {}).get("title") or DEFAULT_TITLE
        return self.add(
            title=str(title),
            query=query,
            summary=summary or DEFAULT_SUMMARY,
            chart_config=chart_config,
            tags=[DEFAULT_TAG],
            notes=""
        )

    def remove(self, bookmark_id: str) -> bool:
        remaining = [b for b in self._bookmarks if b.bookmark_id != bookmark_id]
        if len(remaining) == len(self._bookmarks):
            return False
        self._bookmarks = remaining
        self._save()
        return True

    def update(self, bookmark_id: str, /, **updates: Any) -> Optional[BookmarkedInsight]:
        """
        Apply field updates to one bookmark.

        Raises:
            ValueError: If an update names the id or an unknown field
        """
        if "bookmark_id" in updates:
            raise ValueError("bookmark_id cannot be updated")
        for index, bookmark in enumerate(self._bookmarks):
            if bookmark.bookmark_id == bookmark_id:
                try:
                    updated = replace(bookmark, **updates)
                except TypeError as e:
                    raise ValueError(f"Invalid bookmark update: {e}") from e
                self._bookmarks[index] = updated
                self._save()
                return updated
        return None

    def by_tag(self, tag: str) -> List[BookmarkedInsight]:
        return [b for b in self._bookmarks if tag in b.tags]

    def all_tags(self) -> List[str]:
        """Sorted set of tags across all bookmarks."""
        return sorted({tag for b in self._bookmarks for tag in b.tags})

    def clear(self) -> None:
        self._bookmarks = []
        self._save()

    def export_json(self) -> str:
        return json.dumps([b.to_dict() for b in self._bookmarks], indent=2)

    def import_json(self, json_str: str) -> bool:
        """
        Prepend bookmarks from an exported JSON document.

        Returns:
            False if the document is not a JSON array of valid bookmarks
        """
        try:
            parsed = json.loads(json_str)
            if not isinstance(parsed, list):
                return False
            imported = [BookmarkedInsight.from_dict(item) for item in parsed]
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Failed to import bookmarks: {e}")
            return False

        self._bookmarks = imported + self._bookmarks
        self._save()
        logger.info(f"Imported {len(imported)} bookmarks")
        return True

    def _load(self) -> List[BookmarkedInsight]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return [BookmarkedInsight.from_dict(item) for item in json.load(f)]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load bookmarks from {self.path}: {e}")
            return []

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(self.export_json())
        os.replace(tmp_path, self.path)
