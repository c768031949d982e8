"""Event dispatcher mapping decoded stream events to content blocks."""
import logging
from typing import Any, Dict, List, Tuple

from ..models.content import BlockKind, ContentBlock, FoldMode

logger = logging.getLogger(__name__)

COMPLETE_EVENT = "complete"
VISUALIZATION_EVENT = "visualization"

Folded = Tuple[ContentBlock, FoldMode]

# One-to-one events. ``visualization`` and ``complete`` are handled separately.
EVENT_KINDS: Dict[str, BlockKind] = {
    "thinking": BlockKind.THINKING,
    "sql_generated": BlockKind.SQL,
    "sql_retry": BlockKind.SQL,  # a new step; payload carries ``corrected_sql``
    "data_retrieved": BlockKind.DATA,
    "analysis": BlockKind.ANALYSIS,
    "suggestions": BlockKind.SUGGESTIONS,
    "clarification_needed": BlockKind.CLARIFICATION,
    "advisory": BlockKind.EXPLANATORY,
    "explanatory": BlockKind.EXPLANATORY,
    "narrative": BlockKind.NARRATIVE,
    "error": BlockKind.ERROR,
}

REPLACE_KINDS = frozenset({BlockKind.THINKING})


def fold_mode_for(kind: BlockKind) -> FoldMode:
    return FoldMode.REPLACE if kind in REPLACE_KINDS else FoldMode.APPEND


def is_terminal(event_name: str) -> bool:
    """True for the end-of-turn marker event."""
    return event_name == COMPLETE_EVENT


def dispatch(event_name: str, payload: Any) -> List[Folded]:
    """
    Classify one decoded event.

    Args:
        event_name: SSE event name (``"unknown"`` when the frame had none)
        payload: Parsed JSON payload

    Returns:
        Zero or more ``(ContentBlock, FoldMode)`` pairs in fold order. An empty
        list means the event is ignored.
    """
    kind = EVENT_KINDS.get(event_name)
    if kind is not None:
        return [(ContentBlock(kind=kind, content=payload), fold_mode_for(kind))]

    if event_name == VISUALIZATION_EVENT:
        return _dispatch_visualization(payload)

    if event_name == COMPLETE_EVENT:
        return []

    logger.warning(f"Ignoring unknown event: {event_name}")
    return []


def _dispatch_visualization(payload: Any) -> List[Folded]:
    """A visualization may carry a chart, a metrics list, both, or neither."""
    if not isinstance(payload, dict):
        logger.debug("Visualization payload is not an object, ignoring")
        return []

    folded: List[Folded] = []
    if payload.get("chartConfig"):
        folded.append((ContentBlock(kind=BlockKind.CHART, content=payload), FoldMode.APPEND))

    metrics = payload.get("metrics")
    if isinstance(metrics, list) and metrics:
        folded.append((ContentBlock(kind=BlockKind.METRICS, content=metrics), FoldMode.APPEND))

    return folded
