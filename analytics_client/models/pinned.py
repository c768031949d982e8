"""Pinned view data models."""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ChartSnapshot:
    config: Dict[str, Any]
    title: str


@dataclass(frozen=True)
class TablePreview:
    rows: List[Dict[str, Any]]  # at most PINNED_PREVIEW_ROWS rows
    columns: List[str]
    row_count: int  # true row count before truncation


@dataclass(frozen=True)
class DataSection:
    """Visual artifacts extracted from one finalized assistant turn."""
    section_id: str
    timestamp: datetime
    chart: Optional[ChartSnapshot] = None
    table: Optional[TablePreview] = None
    stats: Optional[List[Any]] = None
