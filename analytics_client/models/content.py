"""Content block data models."""
from dataclasses import dataclass
from enum import Enum
from typing import Any


class BlockKind(str, Enum):
    """Closed set of content kinds an assistant turn can carry."""
    TEXT = "text"
    THINKING = "thinking"
    SQL = "sql"
    DATA = "data"
    ANALYSIS = "analysis"
    CHART = "chart"
    METRICS = "metrics"
    ERROR = "error"
    SUGGESTIONS = "suggestions"
    CLARIFICATION = "clarification"
    EXPLANATORY = "explanatory"
    NARRATIVE = "narrative"


class FoldMode(str, Enum):
    """How a block is merged into the in-progress turn."""
    APPEND = "append"
    REPLACE = "replace"  # drop existing blocks of the same kind first


@dataclass(frozen=True)
class ContentBlock:
    """A single typed unit of turn content."""
    kind: BlockKind
    content: Any  # backend-defined payload, passed through untouched
