"""Conversation session orchestrating chat requests, drill-down and pinned view."""
import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..models.content import BlockKind, ContentBlock
from ..models.conversation import Conversation, Role, Turn, generate_id
from ..models.drill import ClickedElement, DrillContext, DrillOption
from .analytics_api import AnalyticsAPI, AnalyticsClientError
from .drill_down import DrillDownStateMachine, synthesize_drill_query
from .event_dispatcher import dispatch
from .pinned_view import PinnedViewAggregator
from .turn_builder import TurnBuilder

logger = logging.getLogger(__name__)

TranscriptListener = Callable[[List[Turn]], None]

CONNECTION_ERROR_MESSAGE = "Connection Error"


class ConversationSession:
    """
    Owns one conversation: its identifier, transcript and collaborators.

    Every request gets its own TurnBuilder bound to the session generation at
    request start. ``clear_messages`` and ``new_conversation`` bump the
    generation, so streams still in flight from before can no longer write
    into the transcript.
    """

    def __init__(
        self,
        api: AnalyticsAPI,
        pinned: Optional[PinnedViewAggregator] = None,
        drill: Optional[DrillDownStateMachine] = None
    ):
        """
        Initialize the conversation session.

        Args:
            api: Analytics service client
            pinned: Pinned view fed with every finalized assistant turn
            drill: Drill-down state machine (created over ``api`` if omitted)
        """
        self.api = api
        self.pinned = pinned or PinnedViewAggregator()
        self.drill = drill or DrillDownStateMachine(api)
        self.conversation_id = generate_id()
        self.created_at = datetime.now()
        self.error: Optional[str] = None
        self._turns: List[Turn] = []
        self._listeners: List[TranscriptListener] = []
        self._generation = 0
        self._in_flight = 0
        logger.info(f"Started conversation {self.conversation_id}")

    @property
    def turns(self) -> List[Turn]:
        return list(self._turns)

    @property
    def is_loading(self) -> bool:
        return self._in_flight > 0

    def conversation(self) -> Conversation:
        """Point-in-time record of the conversation."""
        return Conversation(
            conversation_id=self.conversation_id,
            turns=self.turns,
            created_at=self.created_at
        )

    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        """
        Register a listener called with the transcript after every change.

        Returns:
            A function that unregisters the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def send_message(self, query: str) -> Optional[Turn]:
        """
        Send a query and fold the streamed answer into a new assistant turn.

        The user turn is appended before any network activity. Transport
        failures become a single error block in the assistant turn.

        Args:
            query: Natural-language question; blank input is ignored

        Returns:
            The finalized assistant turn, or None if nothing was produced or
            the transcript was cleared while the request was streaming
        """
        if not query or not query.strip():
            return None

        self.error = None
        self._append_turn(Turn(
            turn_id=generate_id(),
            role=Role.USER,
            blocks=[ContentBlock(kind=BlockKind.TEXT, content=query)],
            created_at=datetime.now()
        ))

        generation = self._generation
        builder = TurnBuilder(
            publish=self._commit,
            is_current=lambda: generation == self._generation
        )

        self._in_flight += 1
        try:
            logger.info(f"Sending query: {query[:100]}")
            async for event in self.api.stream_chat(query, self.conversation_id):
                for block, mode in dispatch(event.name, event.data):
                    builder.fold(block, mode)
        except AnalyticsClientError as e:
            logger.error(f"Chat stream failed: {e.error.message}", exc_info=True)
            if generation == self._generation:
                self.error = e.error.message
            endpoint = e.endpoint or self.api.base_url
            builder.fail(
                CONNECTION_ERROR_MESSAGE,
                f"Failed to connect to the analytics service at {endpoint}. "
                "Please ensure the Python backend is running."
            )
        finally:
            self._in_flight -= 1
            final = builder.finish()

        if final is not None:
            self.pinned.update_from_turn(final.blocks)
        return final

    async def retry_last_query(self) -> Optional[Turn]:
        """Resubmit the text of the most recent user turn, if any."""
        for turn in reversed(self._turns):
            if turn.role == Role.USER and turn.text():
                return await self.send_message(turn.text())
        logger.info("No previous user query to retry")
        return None

    def clear_messages(self) -> None:
        """Discard the transcript; the conversation identifier is kept."""
        self._generation += 1
        self._turns = []
        self.error = None
        self._notify()

    def new_conversation(self) -> None:
        """Start over with a fresh conversation identifier and an empty transcript."""
        self.conversation_id = generate_id()
        self.created_at = datetime.now()
        self.clear_messages()
        logger.info(f"Started conversation {self.conversation_id}")

    async def open_drill(self, clicked: ClickedElement, turn: Turn) -> List[DrillOption]:
        """
        Start a drill-down from a chart point of ``turn``.

        Args:
            clicked: The clicked data point
            turn: Assistant turn that rendered the chart

        Returns:
            Offered drill options; empty when the turn carries no SQL context
        """
        context = DrillContext.from_turn(turn)
        if not context.sql_query:
            logger.warning(f"Missing SQL context for drill down on turn {turn.turn_id}")
            return []
        return await self.drill.fetch_options(clicked, context)

    async def select_drill_option(self, option: DrillOption) -> Optional[Turn]:
        """
        Execute a drill option and, if it yields a chart, ask the follow-up query.

        The drill result is never spliced into history; it arrives as a fresh
        user turn and its answer.

        Returns:
            The assistant turn answering the synthesized query, or None
        """
        result = await self.drill.execute(option)
        if result is None:
            return None
        query = synthesize_drill_query(result.option, result.clicked)
        logger.info(f"Drill-down produced follow-up query: {query}")
        return await self.send_message(query)

    def preceding_query(self, turn: Turn) -> Optional[str]:
        """Text of the user turn that prompted ``turn``."""
        query = None
        for candidate in self._turns:
            if candidate.turn_id == turn.turn_id:
                return query
            if candidate.role == Role.USER:
                query = candidate.text()
        return None

    def _append_turn(self, turn: Turn) -> None:
        self._turns.append(turn)
        self._notify()

    def _commit(self, turn: Turn) -> None:
        """Insert or replace a published turn snapshot in the transcript."""
        for index, existing in enumerate(self._turns):
            if existing.turn_id == turn.turn_id:
                self._turns[index] = turn
                break
        else:
            self._turns.append(turn)
        self._notify()

    def _notify(self) -> None:
        snapshot = self.turns
        for listener in list(self._listeners):
            listener(snapshot)
