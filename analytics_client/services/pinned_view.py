"""Pinned view aggregator extracting charts, tables and stats from turns."""
import logging
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .. import config
from ..models.content import BlockKind, ContentBlock
from ..models.pinned import ChartSnapshot, DataSection, TablePreview

logger = logging.getLogger(__name__)


class PinnedViewAggregator:
    """Keeps a most-recent-first list of visual artifacts mirrored from the transcript."""

    def __init__(
        self,
        preview_rows: int = config.PINNED_PREVIEW_ROWS,
        dedup_window_seconds: float = config.PINNED_DEDUP_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the aggregator.

        Args:
            preview_rows: Maximum rows kept in a table preview
            dedup_window_seconds: Same-title charts within this window are dropped
            clock: Source of the current time in epoch seconds
        """
        self.preview_rows = preview_rows
        self.dedup_window_seconds = dedup_window_seconds
        self._clock = clock
        self._sections: List[DataSection] = []
        self._created: Dict[str, float] = {}  # section id -> raw clock value
        self._collapsed = False

    @property
    def sections(self) -> List[DataSection]:
        return list(self._sections)

    @property
    def is_collapsed(self) -> bool:
        return self._collapsed

    def update_from_turn(self, blocks: Iterable[ContentBlock]) -> Optional[DataSection]:
        """
        Extract a data section from the blocks of a finalized assistant turn.

        Args:
            blocks: Content blocks in turn order; later blocks of a kind win

        Returns:
            The inserted section, or None if the turn had no visual content or
            the section was a recent duplicate
        """
        chart: Optional[ChartSnapshot] = None
        table: Optional[TablePreview] = None
        stats: Optional[List[Any]] = None

        for block in blocks:
            if block.kind == BlockKind.CHART:
                chart = self._extract_chart(block.content) or chart
            elif block.kind == BlockKind.DATA:
                table = self._extract_table(block.content) or table
            elif block.kind == BlockKind.METRICS:
                if isinstance(block.content, list):
                    stats = block.content

        if chart is None and table is None and stats is None:
            return None

        return self.add_section(chart=chart, table=table, stats=stats)

    def add_section(
        self,
        chart: Optional[ChartSnapshot] = None,
        table: Optional[TablePreview] = None,
        stats: Optional[List[Any]] = None
    ) -> Optional[DataSection]:
        """Insert a section at the head unless it duplicates a recent chart."""
        now = self._clock()

        if chart is not None:
            for existing in self._sections:
                if existing.chart is None or existing.chart.title != chart.title:
                    continue
                if now - self._created[existing.section_id] < self.dedup_window_seconds:
                    logger.debug(f"Skipping duplicate pinned chart '{chart.title}'")
                    return None

        section = DataSection(
            section_id=f"section-{int(now * 1000)}-{uuid.uuid4().hex[:9]}",
            timestamp=datetime.fromtimestamp(now),
            chart=chart,
            table=table,
            stats=stats
        )
        self._sections.insert(0, section)
        self._created[section.section_id] = now
        logger.info(f"Pinned new data section {section.section_id}")
        return section

    def remove_section(self, section_id: str) -> bool:
        """Remove a section by id; returns False if no such section exists."""
        remaining = [s for s in self._sections if s.section_id != section_id]
        removed = len(remaining) != len(self._sections)
        self._sections = remaining
        self._created.pop(section_id, None)
        return removed

    def clear(self) -> None:
        self._sections = []
        self._created = {}

    def toggle_collapse(self) -> bool:
        """Flip the display-only collapsed flag and return the new value."""
        self._collapsed = not self._collapsed
        return self._collapsed

    def _extract_chart(self, content: Any) -> Optional[ChartSnapshot]:
        if not isinstance(content, dict):
            return None
        chart_config = content.get("chartConfig")
        if not isinstance(chart_config, dict):
            return None
        title = chart_config.get("title") or config.DEFAULT_CHART_TITLE
        return ChartSnapshot(config=chart_config, title=str(title))

    def _extract_table(self, content: Any) -> Optional[TablePreview]:
        if not isinstance(content, dict):
            return None
        rows = content.get("data")
        if not isinstance(rows, list):
            return None
        first = rows[0] if rows else None
        return TablePreview(
            rows=rows[:self.preview_rows],
            columns=list(first.keys()) if isinstance(first, dict) else [],
            row_count=len(rows)
        )
