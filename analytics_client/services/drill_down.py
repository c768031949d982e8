"""Drill-down state machine for chart data point exploration."""
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from ..models.drill import (
    BreadcrumbItem,
    ClickedElement,
    DrillContext,
    DrillOption,
    DrillResult,
    DrillState,
)
from .analytics_api import AnalyticsAPI, AnalyticsClientError

logger = logging.getLogger(__name__)


class DrillDownStateMachine:
    """
    Runs the options-then-execute drill protocol for one clicked data point.

    States move ``idle -> options_loading -> options_ready -> executing -> idle``.
    ``reset`` and ``go_back`` return to idle from any state. Each click gets a
    token; a response arriving after its click was superseded is discarded.
    """

    def __init__(self, api: AnalyticsAPI):
        """
        Initialize the drill-down state machine.

        Args:
            api: Client used for the options round-trip and the streamed execution
        """
        self.api = api
        self._state = DrillState.IDLE
        self._clicked: Optional[ClickedElement] = None
        self._context: Optional[DrillContext] = None
        self._options: List[DrillOption] = []
        self._breadcrumb: List[BreadcrumbItem] = []
        self._click_token = 0

    @property
    def state(self) -> DrillState:
        return self._state

    @property
    def options(self) -> List[DrillOption]:
        return list(self._options)

    @property
    def breadcrumb(self) -> List[BreadcrumbItem]:
        return list(self._breadcrumb)

    @property
    def clicked(self) -> Optional[ClickedElement]:
        return self._clicked

    @property
    def is_busy(self) -> bool:
        return self._state in (DrillState.OPTIONS_LOADING, DrillState.EXECUTING)

    async def fetch_options(self, clicked: ClickedElement, context: DrillContext) -> List[DrillOption]:
        """
        Request the drill options for a clicked chart element.

        Any failure degrades to an empty option list, which is a valid
        "no options available" state rather than an error.

        Args:
            clicked: The clicked data point
            context: Query context of the turn that produced the chart

        Returns:
            The options now offered (empty on failure or if superseded)
        """
        self._click_token += 1
        token = self._click_token
        self._clicked = clicked
        self._context = context
        self._options = []
        self._state = DrillState.OPTIONS_LOADING

        payload = {
            "clicked_element": clicked.to_payload(),
            "current_context": context.to_payload(),
            "breadcrumb": self._breadcrumb_payload(),
        }

        try:
            raw_options = await self.api.fetch_drill_options(payload)
            options = [DrillOption.from_dict(o) for o in raw_options]
        except AnalyticsClientError as e:
            logger.warning(f"Drill options error: {e.error.message}")
            options = []

        if token != self._click_token:
            logger.debug("Discarding drill options for a superseded click")
            return []

        self._options = options
        self._state = DrillState.OPTIONS_READY
        logger.info(f"Loaded {len(options)} drill options for {clicked.dimension}={clicked.label}")
        return list(options)

    async def execute(self, option: DrillOption) -> Optional[DrillResult]:
        """
        Execute a drill option and collect the streamed result.

        The latest ``chartConfig`` seen in the stream becomes the result chart.
        A ``breadcrumb`` payload replaces the local breadcrumb wholesale, since
        the backend owns the drill path.

        Args:
            option: The selected drill option

        Returns:
            DrillResult if a chart was produced, otherwise None. Failures are
            logged and also return None.
        """
        if self._clicked is None or self._context is None:
            logger.warning("execute() called without a clicked element; ignoring")
            return None

        token = self._click_token
        clicked = self._clicked
        self._state = DrillState.EXECUTING

        payload = {
            "clicked_element": clicked.to_payload(),
            "drill_option": option.to_payload(),
            "current_context": self._context.to_payload(),
            "breadcrumb": self._breadcrumb_payload(),
        }

        chart_config: Any = None
        new_breadcrumb: Optional[List[BreadcrumbItem]] = None

        try:
            async for event in self.api.stream_drill_down(payload):
                data = event.data
                if not isinstance(data, dict):
                    continue
                if "chartConfig" in data:
                    chart_config = data["chartConfig"]
                if "breadcrumb" in data:
                    parsed = self._parse_breadcrumb(data["breadcrumb"])
                    if parsed is not None:
                        new_breadcrumb = parsed
        except AnalyticsClientError as e:
            logger.error(f"Drill-down error: {e.error.message}", exc_info=True)
            if token == self._click_token:
                self._return_to_idle()
            return None

        if token != self._click_token:
            logger.debug("Discarding drill-down result for a superseded click")
            return None

        if new_breadcrumb is not None:
            self._breadcrumb = new_breadcrumb
        self._return_to_idle()

        if not chart_config:
            logger.info(f"Drill-down '{option.label}' finished without a chart")
            return None

        return DrillResult(
            chart_config=chart_config,
            option=option,
            clicked=clicked,
            breadcrumb=list(self._breadcrumb)
        )

    def go_back(self) -> None:
        """Step back one level in the drill path; no network call is made."""
        if self._breadcrumb:
            self._breadcrumb = self._breadcrumb[:-1]
        self._click_token += 1
        self._return_to_idle()

    def reset(self) -> None:
        """Clear the clicked element, options and breadcrumb unconditionally."""
        self._click_token += 1
        self._breadcrumb = []
        self._return_to_idle()

    def _return_to_idle(self) -> None:
        self._clicked = None
        self._context = None
        self._options = []
        self._state = DrillState.IDLE

    def _breadcrumb_payload(self) -> List[Dict[str, Any]]:
        return [asdict(item) for item in self._breadcrumb]

    @staticmethod
    def _parse_breadcrumb(raw: Any) -> Optional[List[BreadcrumbItem]]:
        if not isinstance(raw, list):
            logger.warning(f"Ignoring malformed breadcrumb payload: {raw!r}")
            return None
        return [BreadcrumbItem.from_dict(item) for item in raw if isinstance(item, dict)]


def synthesize_drill_query(option: DrillOption, clicked: Optional[ClickedElement]) -> str:
    """
    Build the natural-language follow-up query for a drill selection.

    Args:
        option: Selected drill option
        clicked: Element the drill started from

    Returns:
        Query text sent as a regular chat message
    """
    label = clicked.label if clicked and clicked.label else "the selected item"

    if option.drill_type == "breakdown":
        dimension = (option.target_dimension or "category").replace("_", " ")
        return f"Break down {label} by {dimension}"
    if option.drill_type == "trend":
        return f"Show {label} trend over time"
    if option.drill_type == "compare":
        return f"Compare {label} with others"
    if option.drill_type == "details":
        return f"Show all records for {label}"
    return option.label
