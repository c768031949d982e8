"""Turn builder folding content blocks into one assistant turn."""
import logging
from datetime import datetime
from typing import Callable, Optional

from ..models.content import BlockKind, ContentBlock, FoldMode
from ..models.conversation import Role, Turn, generate_id

logger = logging.getLogger(__name__)

Publisher = Callable[[Turn], None]


class TurnBuilder:
    """
    Accumulates the blocks of a single request into its own assistant turn.

    A builder is created per request and is bound to that request's token via
    ``is_current``: once the owning session moves on (clear, new conversation)
    every further fold is dropped instead of leaking into the new transcript.
    """

    def __init__(self, publish: Publisher, is_current: Optional[Callable[[], bool]] = None):
        """
        Initialize the turn builder.

        Args:
            publish: Called with a snapshot of the turn after every committed fold
            is_current: Token check evaluated before each commit; defaults to always current
        """
        self._publish = publish
        self._is_current = is_current or (lambda: True)
        self._turn: Optional[Turn] = None
        self._finished = False

    @property
    def turn(self) -> Optional[Turn]:
        """Snapshot of the turn built so far, or None before the first block."""
        return self._turn.snapshot() if self._turn else None

    @property
    def is_finished(self) -> bool:
        return self._finished

    def fold(self, block: ContentBlock, mode: FoldMode = FoldMode.APPEND) -> bool:
        """
        Merge a block into the in-progress turn and publish a snapshot.

        Args:
            block: Dispatched content block
            mode: REPLACE removes existing blocks of the same kind before appending

        Returns:
            True if the fold was committed, False if the request is stale or finished
        """
        if self._finished:
            logger.debug(f"Dropping {block.kind.value} block for finished turn")
            return False
        if not self._is_current():
            logger.debug(f"Dropping {block.kind.value} block from superseded request")
            return False

        if self._turn is None:
            self._turn = Turn(
                turn_id=generate_id(),
                role=Role.ASSISTANT,
                blocks=[],
                created_at=datetime.now()
            )

        if mode == FoldMode.REPLACE:
            self._turn.blocks = [b for b in self._turn.blocks if b.kind != block.kind]
        self._turn.blocks.append(block)

        self._publish(self._turn.snapshot())
        return True

    def fail(self, message: str, details: str) -> bool:
        """Append the single error block reported for a transport failure."""
        return self.fold(
            ContentBlock(kind=BlockKind.ERROR, content={"message": message, "details": details}),
            FoldMode.APPEND
        )

    def finish(self) -> Optional[Turn]:
        """
        Finalize the turn: strip any thinking indicator and publish the final snapshot.

        Returns:
            The finalized turn, or None if no block was ever folded or the
            request was superseded before completion
        """
        if self._finished:
            return self.turn
        self._finished = True

        if self._turn is None:
            return None

        self._turn.blocks = [b for b in self._turn.blocks if b.kind != BlockKind.THINKING]

        if not self._is_current():
            logger.debug("Not publishing final snapshot of superseded request")
            return None

        final = self._turn.snapshot()
        self._publish(final)
        return final
