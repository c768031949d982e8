"""Drill-down data models."""
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING

from .content import BlockKind

if TYPE_CHECKING:
    from .conversation import Turn


class DrillState(str, Enum):
    IDLE = "idle"
    OPTIONS_LOADING = "options_loading"
    OPTIONS_READY = "options_ready"
    EXECUTING = "executing"


@dataclass
class ClickedElement:
    """A chart data point the user clicked."""
    dimension: str  # x-axis dimension, e.g. "category_name"
    value: Any  # y-axis value, e.g. 45
    label: str  # display label, e.g. "Technology"
    series_name: str = ""
    raw_data: Dict[str, Any] = field(default_factory=dict)
    pointer: Tuple[float, float] = (0.0, 0.0)  # popover anchor (x, y)

    def to_payload(self) -> Dict[str, Any]:
        """Wire shape sent with drill requests."""
        return {
            "dimension": self.dimension,
            "value": self.value,
            "label": self.label,
            "rawData": self.raw_data,
        }


@dataclass
class DrillContext:
    """Query context of the turn that produced the clicked chart."""
    sql_query: str
    columns: List[str] = field(default_factory=list)
    tables_used: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_turn(cls, turn: "Turn") -> "DrillContext":
        """
        Derive the drill context from a turn's sql and data blocks.
        
        The most recent sql block wins, so a self-healed retry replaces the
        original query. Columns come from the data payload's ``columns`` list,
        falling back to the keys of its first row.
        
        Args:
            turn: Assistant turn containing the clicked chart
            
        Returns:
            DrillContext, with an empty ``sql_query`` when the turn has no SQL
        """
        sql_query = ""
        tables_used: List[str] = []
        for block in turn.blocks_of(BlockKind.SQL):
            payload = block.content
            if isinstance(payload, dict):
                sql_query = payload.get("sql") or payload.get("corrected_sql") or sql_query
                tables_used = list(payload.get("tables_used") or tables_used)
            elif isinstance(payload, str) and payload:
                sql_query = payload

        columns: List[str] = []
        for block in turn.blocks_of(BlockKind.DATA):
            payload = block.content
            if not isinstance(payload, dict):
                continue
            rows = payload.get("data")
            if payload.get("columns"):
                columns = [str(c) for c in payload["columns"]]
            elif isinstance(rows, list) and rows and isinstance(rows[0], dict):
                columns = list(rows[0].keys())
            if not tables_used and payload.get("tables_used"):
                tables_used = list(payload["tables_used"])

        return cls(sql_query=sql_query, columns=columns, tables_used=tables_used)


@dataclass
class BreadcrumbItem:
    """One step of the drill path taken so far."""
    dimension: str
    value: str
    drill_type: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BreadcrumbItem":
        return cls(
            dimension=str(data.get("dimension", "")),
            value=str(data.get("value", "")),
            drill_type=str(data.get("drill_type", "")),
        )


@dataclass
class DrillOption:
    """A drill action offered by the backend for one click."""
    id: str
    icon: str
    label: str
    description: str
    drill_type: str
    target_dimension: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DrillOption":
        return cls(
            id=str(data.get("id", "")),
            icon=str(data.get("icon", "")),
            label=str(data.get("label", "")),
            description=str(data.get("description", "")),
            drill_type=str(data.get("drill_type", "")),
            target_dimension=data.get("target_dimension"),
        )

    def to_payload(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DrillResult:
    """Outcome of an executed drill-down."""
    chart_config: Any
    option: DrillOption
    clicked: ClickedElement
    breadcrumb: List[BreadcrumbItem] = field(default_factory=list)
