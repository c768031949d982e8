"""Demo analytics backend serving canned SSE streams for local development."""
import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

Frame = Tuple[str, Any]

SAMPLE_ROWS = [
    {"category": "Technology", "courses": 45},
    {"category": "Business", "courses": 32},
    {"category": "Design", "courses": 18},
]

SAMPLE_CHART = {
    "type": "bar",
    "title": "Courses by Category",
    "data": SAMPLE_ROWS,
    "xAxis": "category",
    "yAxis": "courses",
}


def default_chat_frames(query: str) -> List[Frame]:
    """Scripted answer to any chat query."""
    return [
        ("thinking", {"message": "Understanding your question..."}),
        ("thinking", {"message": "Generating SQL..."}),
        ("sql_generated", {
            "sql": "SELECT category, COUNT(*) AS courses FROM courses GROUP BY category",
            "tables_used": ["courses"],
        }),
        ("data_retrieved", {"data": SAMPLE_ROWS, "row_count": len(SAMPLE_ROWS)}),
        ("analysis", {"summary": f"Technology leads course counts for: {query}"}),
        ("visualization", {
            "chartConfig": SAMPLE_CHART,
            "metrics": [{"label": "Total courses", "value": 95}],
        }),
        ("suggestions", {"suggestions": ["Show enrollment trend", "Compare categories"]}),
        ("complete", {"status": "done"}),
    ]


DEFAULT_DRILL_OPTIONS = [
    {
        "id": "breakdown-level",
        "icon": "🔍",
        "label": "Break down by level",
        "description": "Split this category by course level",
        "drill_type": "breakdown",
        "target_dimension": "course_level",
    },
    {
        "id": "trend",
        "icon": "📈",
        "label": "Show trend",
        "description": "Monthly trend for this category",
        "drill_type": "trend",
    },
]


def encode_frame(event: Optional[str], data: Any) -> bytes:
    """Serialize one frame in the wire format the client decodes."""
    payload = data if isinstance(data, str) else json.dumps(data)
    head = f"event: {event}\n" if event else ""
    return f"{head}data: {payload}\n\n".encode("utf-8")


def create_app(
    chat_frames=default_chat_frames,
    drill_options: Optional[List[Dict[str, Any]]] = None,
    drill_frames: Optional[List[Frame]] = None,
    delay: float = 0.0
) -> FastAPI:
    """
    Build the demo backend.

    Args:
        chat_frames: Callable mapping a query to the frames streamed back
        drill_options: Options returned by ``/api/analytics/drill-options``
        drill_frames: Frames streamed by ``/api/analytics/drill-down``
        delay: Seconds to sleep between frames

    Returns:
        FastAPI application exposing the analytics endpoints
    """
    app = FastAPI(title="Analytics Demo Backend", version="1.0.0")
    app.state.requests = []
    options = DEFAULT_DRILL_OPTIONS if drill_options is None else drill_options

    async def _stream(frames: List[Frame]) -> AsyncIterator[bytes]:
        for event, data in frames:
            yield encode_frame(event, data)
            if delay:
                await asyncio.sleep(delay)
        yield encode_frame(None, "[DONE]")

    def _sse(frames: List[Frame]) -> StreamingResponse:
        return StreamingResponse(
            _stream(frames),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no"  # Disable buffering in nginx
            }
        )

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "analytics-demo-backend"}

    @app.post("/api/analytics/chat")
    async def chat(request: Request):
        body = await request.json()
        app.state.requests.append(("chat", body))
        logger.info(f"Demo chat query: {body.get('query', '')[:100]}")
        return _sse(chat_frames(body.get("query", "")))

    @app.post("/api/analytics/drill-options")
    async def drill_options_endpoint(request: Request):
        body = await request.json()
        app.state.requests.append(("drill-options", body))
        return {"options": options}

    @app.post("/api/analytics/drill-down")
    async def drill_down(request: Request):
        body = await request.json()
        app.state.requests.append(("drill-down", body))
        frames = drill_frames
        if frames is None:
            clicked = body.get("clicked_element", {})
            option = body.get("drill_option", {})
            crumb = {
                "dimension": clicked.get("dimension", ""),
                "value": str(clicked.get("label", "")),
                "drill_type": option.get("drill_type", ""),
            }
            frames = [
                ("thinking", {"message": "Drilling down..."}),
                ("visualization", {"chartConfig": {**SAMPLE_CHART, "title": f"{crumb['value']} breakdown"}}),
                ("complete", {"breadcrumb": body.get("breadcrumb", []) + [crumb]}),
            ]
        return _sse(frames)

    return app


if __name__ == "__main__":
    from urllib.parse import urlparse

    import uvicorn
    from . import config

    port = urlparse(config.ANALYTICS_API_URL).port or 8001
    logger.info(f"Starting demo analytics backend on port {port}")
    uvicorn.run(create_app(delay=0.3), host="127.0.0.1", port=port)
