"""Decoder for server-sent event streams from the analytics service."""
import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"
UNKNOWN_EVENT = "unknown"

Chunk = Union[bytes, str]


@dataclass(frozen=True)
class SSEEvent:
    """One decoded ``(event_name, payload)`` pair."""
    name: str
    data: Any


class FrameDecoder:
    """
    Incremental decoder turning raw body chunks into SSE events.

    Chunks may split lines, or multi-byte characters, at any position. The
    decoder keeps only the partial-line buffer and the pending event name;
    events it has already returned are never revisited.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._event_name: Optional[str] = None

    def feed(self, chunk: Chunk) -> List[SSEEvent]:
        """
        Append a chunk and return every event completed by it.

        Args:
            chunk: Raw bytes or already-decoded text from the response body

        Returns:
            Events in arrival order, possibly empty
        """
        if isinstance(chunk, bytes):
            text = self._decoder.decode(chunk)
        else:
            text = chunk
        self._buffer += text

        *lines, self._buffer = self._buffer.split("\n")
        events = []
        for line in lines:
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def close(self) -> List[SSEEvent]:
        """Flush the decoder at end of stream, processing any unterminated last line."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        events = []
        for line in remainder.split("\n"):
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def _process_line(self, line: str) -> Optional[SSEEvent]:
        line = line.rstrip("\r")
        if not line or line.startswith(":"):
            return None

        if line.startswith("event:"):
            self._event_name = line[len("event:"):].strip() or None
            return None

        if not line.startswith("data:"):
            return None

        data = line[len("data:"):]
        if data.startswith(" "):
            data = data[1:]
        if data.strip() == DONE_SENTINEL:
            return None

        try:
            payload = json.loads(data)
        except ValueError:
            logger.debug(f"Dropping undecodable data line: {data[:80]!r}")
            return None

        return SSEEvent(name=self._event_name or UNKNOWN_EVENT, data=payload)


def iter_events(chunks: Iterable[Chunk]) -> Iterator[SSEEvent]:
    """Lazily decode a synchronous chunk producer."""
    decoder = FrameDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
    yield from decoder.close()


async def aiter_events(chunks: AsyncIterable[Chunk]) -> AsyncIterator[SSEEvent]:
    """Lazily decode an asynchronous chunk producer, e.g. ``response.aiter_bytes()``."""
    decoder = FrameDecoder()
    async for chunk in chunks:
        for event in decoder.feed(chunk):
            yield event
    for event in decoder.close():
        yield event
