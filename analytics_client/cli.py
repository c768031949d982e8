"""Interactive terminal chat against the analytics service."""
import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from . import config
from .logger import setup_logging
from .models.content import BlockKind, ContentBlock
from .models.conversation import Role, Turn
from .models.drill import ClickedElement, DrillOption
from .services.analytics_api import AnalyticsAPI
from .services.bookmark_store import BookmarkStore
from .services.conversation_session import ConversationSession
from .services.health_monitor import BackendStatus, HealthMonitor

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /retry                     resend the last question
  /clear                     clear the transcript
  /new                       start a new conversation
  /pins                      list pinned data sections
  /drill <dimension> <label> drill into a point of the last chart
  /pick <n>                  execute drill option n
  /back                      step back one drill level
  /bookmark                  bookmark the last answer
  /bookmarks                 list bookmarks
  /quit                      exit"""


def _first(payload: Any, *keys: str) -> Any:
    if not isinstance(payload, dict):
        return None
    for key in keys:
        if payload.get(key):
            return payload[key]
    return None


def format_block(block: ContentBlock) -> str:
    """One-line (or short multi-line) terminal rendering of a content block."""
    content = block.content
    kind = block.kind

    if kind == BlockKind.TEXT:
        return str(content)
    if kind == BlockKind.THINKING:
        return f"... {_first(content, 'message', 'step', 'status') or content}"
    if kind == BlockKind.SQL:
        label = "SQL (retry)" if _first(content, "corrected_sql") else "SQL"
        return f"[{label}]\n{_first(content, 'sql', 'corrected_sql') or content}"
    if kind == BlockKind.DATA:
        rows = _first(content, "data") or []
        count = content.get("row_count", len(rows)) if isinstance(content, dict) else len(rows)
        return f"[data] {count} rows"
    if kind == BlockKind.CHART:
        chart_config = _first(content, "chartConfig") or {}
        return f"[chart] {chart_config.get('title') or config.DEFAULT_CHART_TITLE}"
    if kind == BlockKind.METRICS:
        parts = [f"{m.get('label')}: {m.get('value')}" for m in content if isinstance(m, dict)]
        return "[metrics] " + ", ".join(parts)
    if kind == BlockKind.ERROR:
        message = _first(content, "message", "error") or content
        details = _first(content, "details")
        return f"[error] {message}" + (f" ({details})" if details else "")
    if kind == BlockKind.SUGGESTIONS:
        items = _first(content, "suggestions", "queries") or content
        if isinstance(items, list):
            return "[suggestions]\n" + "\n".join(f"  - {s}" for s in items)
        return f"[suggestions] {items}"

    text = _first(content, "summary", "text", "message", "question", "content")
    return f"[{kind.value}] {text if text is not None else json.dumps(content, default=str)}"


class TranscriptPrinter:
    """Prints each newly committed block of the transcript exactly once."""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self._printed: Dict[str, int] = {}  # turn id -> non-thinking blocks printed
        self._thinking: Dict[str, ContentBlock] = {}

    def __call__(self, turns: List[Turn]) -> None:
        if not turns:
            self._printed.clear()
            self._thinking.clear()
            return
        for turn in turns:
            if turn.role != Role.ASSISTANT:
                continue
            for block in turn.blocks_of(BlockKind.THINKING):
                if self._thinking.get(turn.turn_id) is not block:
                    self._thinking[turn.turn_id] = block
                    print(format_block(block), file=self.out)
            settled = [b for b in turn.blocks if b.kind != BlockKind.THINKING]
            for block in settled[self._printed.get(turn.turn_id, 0):]:
                print(format_block(block), file=self.out)
            self._printed[turn.turn_id] = len(settled)


async def _read_line(prompt: str) -> Optional[str]:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return None


def _last_chart_turn(session: ConversationSession) -> Optional[Turn]:
    for turn in reversed(session.turns):
        if turn.role == Role.ASSISTANT and turn.blocks_of(BlockKind.CHART):
            return turn
    return None


async def run_chat(api: AnalyticsAPI, bookmarks: BookmarkStore) -> None:
    """Read queries and commands from stdin until EOF or /quit."""
    session = ConversationSession(api)
    session.subscribe(TranscriptPrinter())
    monitor = HealthMonitor(api)
    monitor.on_change(lambda status: print(f"(analytics service {status.value})"))
    monitor.start()
    options: List[DrillOption] = []

    print(f"Connected to {api.base_url}. Type /help for commands.")
    try:
        while True:
            line = await _read_line("> ")
            if line is None:
                break
            line = line.strip()
            if not line:
                continue

            command, _, argument = line.partition(" ")
            if command == "/quit":
                break
            elif command == "/help":
                print(HELP_TEXT)
            elif command == "/retry":
                await session.retry_last_query()
            elif command == "/clear":
                session.clear_messages()
            elif command == "/new":
                session.new_conversation()
                print(f"New conversation {session.conversation_id}")
            elif command == "/pins":
                for section in session.pinned.sections:
                    title = section.chart.title if section.chart else "-"
                    rows = section.table.row_count if section.table else 0
                    print(f"{section.section_id}  chart={title}  rows={rows}")
            elif command == "/drill":
                turn = _last_chart_turn(session)
                dimension, _, label = argument.partition(" ")
                if turn is None or not label:
                    print("Usage: /drill <dimension> <label> (after a chart)")
                    continue
                clicked = ClickedElement(dimension=dimension, value=None, label=label)
                options = await session.open_drill(clicked, turn)
                if not options:
                    print("No drill options available")
                for index, option in enumerate(options, start=1):
                    print(f"  {index}. {option.icon} {option.label} - {option.description}")
            elif command == "/pick":
                if not argument.isdigit() or not 1 <= int(argument) <= len(options):
                    print("Usage: /pick <n>")
                    continue
                await session.select_drill_option(options[int(argument) - 1])
                options = []
            elif command == "/back":
                session.drill.go_back()
                options = []
                print(f"Drill depth: {len(session.drill.breadcrumb)}")
            elif command == "/bookmark":
                answers = [t for t in session.turns if t.role == Role.ASSISTANT]
                if not answers:
                    print("Nothing to bookmark yet")
                    continue
                query = session.preceding_query(answers[-1]) or ""
                bookmark = bookmarks.add_from_turn(answers[-1], query)
                print(f"Saved bookmark '{bookmark.title}'")
            elif command == "/bookmarks":
                for bookmark in bookmarks.bookmarks:
                    print(f"{bookmark.bookmark_id}  {bookmark.title}  [{', '.join(bookmark.tags)}]")
            elif command.startswith("/"):
                print(f"Unknown command {command}")
            else:
                if monitor.status == BackendStatus.OFFLINE:
                    print("(analytics service appears offline, sending anyway)")
                await session.send_message(line)
    finally:
        await monitor.stop()


def main():
    parser = argparse.ArgumentParser(
        description="Chat with the analytics service from the terminal"
    )
    parser.add_argument(
        "--api-url",
        default=config.ANALYTICS_API_URL,
        help=f"Base URL of the analytics service (default: {config.ANALYTICS_API_URL})"
    )
    parser.add_argument(
        "--bookmarks",
        default=config.BOOKMARKS_PATH,
        help="Path of the bookmarks JSON file"
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit structured JSON logs"
    )
    parser.add_argument(
        "--log-level",
        default=config.LOG_LEVEL,
        help=f"Log level (default: {config.LOG_LEVEL})"
    )
    args = parser.parse_args()

    if args.json_logs:
        setup_logging(args.log_level)
    else:
        logging.getLogger().setLevel(getattr(logging, args.log_level.upper()))

    async def _run():
        async with AnalyticsAPI(base_url=args.api_url) as api:
            await run_chat(api, BookmarkStore(args.bookmarks))

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
