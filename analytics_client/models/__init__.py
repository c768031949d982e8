"""Data models for the analytics chat client."""
from .content import BlockKind, ContentBlock, FoldMode
from .conversation import Conversation, Role, Turn, generate_id
from .drill import (
    BreadcrumbItem,
    ClickedElement,
    DrillContext,
    DrillOption,
    DrillResult,
    DrillState,
)
from .pinned import ChartSnapshot, DataSection, TablePreview
from .bookmark import BookmarkedInsight

__all__ = [
    "BlockKind",
    "ContentBlock",
    "FoldMode",
    "Conversation",
    "Role",
    "Turn",
    "generate_id",
    "BreadcrumbItem",
    "ClickedElement",
    "DrillContext",
    "DrillOption",
    "DrillResult",
    "DrillState",
    "ChartSnapshot",
    "DataSection",
    "TablePreview",
    "BookmarkedInsight",
]
