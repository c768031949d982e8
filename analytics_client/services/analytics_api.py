"""HTTP client for the analytics service endpoints."""
import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from .. import config
from .frame_decoder import SSEEvent, aiter_events

logger = logging.getLogger(__name__)


@dataclass
class AnalyticsError:
    """Structured error from an analytics service call."""
    code: str
    message: str
    details: Dict[str, Any]


class AnalyticsClientError(Exception):
    """Transport-level failure talking to the analytics service."""

    def __init__(self, error: AnalyticsError):
        self.error = error
        super().__init__(error.message)

    @property
    def endpoint(self) -> str:
        return self.error.details.get("endpoint", "")


class AnalyticsAPI:
    """Async client for the chat, drill-down and health endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the analytics API client.

        Args:
            base_url: Service root (defaults to ANALYTICS_API_URL from environment)
            timeout: Per-operation timeout in seconds (defaults to REQUEST_TIMEOUT)
            transport: Optional httpx transport, e.g. a mock or ASGI app in tests
        """
        self.base_url = (base_url or config.ANALYTICS_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.REQUEST_TIMEOUT
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            transport=transport
        )
        logger.info(f"AnalyticsAPI initialized for {self.base_url}")

    async def __aenter__(self) -> "AnalyticsAPI":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def endpoint(self, path: str) -> str:
        """Absolute URL of an endpoint path, used in error details."""
        return f"{self.base_url}{path}"

    def stream_chat(self, query: str, conversation_id: str) -> AsyncIterator[SSEEvent]:
        """
        Stream the events answering one chat query.

        Args:
            query: Natural-language question
            conversation_id: Session conversation identifier

        Returns:
            Async iterator of decoded events, ending when the body ends

        Raises:
            AnalyticsClientError: While iterating, on non-2xx status or transport failure
        """
        return self._stream(config.CHAT_PATH, {"query": query, "conversation_id": conversation_id})

    def stream_drill_down(self, payload: Dict[str, Any]) -> AsyncIterator[SSEEvent]:
        """Stream the events of an executed drill-down."""
        return self._stream(config.DRILL_DOWN_PATH, payload)

    async def fetch_drill_options(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Fetch the drill options offered for a clicked element.

        Args:
            payload: ``{clicked_element, current_context, breadcrumb}``

        Returns:
            Raw option objects from the ``options`` field (empty if absent)

        Raises:
            AnalyticsClientError: On non-2xx status, transport failure or a non-JSON body
        """
        path = config.DRILL_OPTIONS_PATH
        start_time = time.time()
        try:
            response = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            raise self._transport_error(path, e, start_time) from e

        self._check_status(path, response)

        try:
            body = response.json()
        except ValueError as e:
            raise AnalyticsClientError(AnalyticsError(
                code="INVALID_RESPONSE",
                message="Drill options response is not valid JSON",
                details={"endpoint": self.endpoint(path), "original_error": str(e)}
            )) from e

        options = body.get("options") if isinstance(body, dict) else None
        return [o for o in options or [] if isinstance(o, dict)]

    async def check_health(self) -> bool:
        """Return True if the health endpoint answers with a 2xx status."""
        try:
            response = await self._client.get(config.HEALTH_PATH, timeout=5.0)
        except httpx.HTTPError as e:
            logger.debug(f"Health check failed: {e}")
            return False
        return response.is_success

    async def _stream(self, path: str, payload: Dict[str, Any]) -> AsyncIterator[SSEEvent]:
        start_time = time.time()
        headers = {"Accept": "text/event-stream"}
        try:
            async with self._client.stream("POST", path, json=payload, headers=headers) as response:
                self._check_status(path, response)
                async for event in aiter_events(response.aiter_bytes()):
                    yield event
        except (httpx.HTTPError, httpx.StreamError) as e:
            raise self._transport_error(path, e, start_time) from e

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"Stream from {path} finished in {latency_ms}ms")

    def _check_status(self, path: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        error = AnalyticsError(
            code="HTTP_ERROR",
            message=f"HTTP error! status: {response.status_code}",
            details={"endpoint": self.endpoint(path), "status_code": response.status_code}
        )
        logger.error(f"Analytics service returned {response.status_code} for {path}")
        raise AnalyticsClientError(error)

    def _transport_error(self, path: str, exc: Exception, start_time: float) -> AnalyticsClientError:
        latency_ms = int((time.time() - start_time) * 1000)
        if isinstance(exc, httpx.TimeoutException):
            code, message = "TIMEOUT_ERROR", f"Request timed out after {self.timeout}s"
        else:
            code, message = "NETWORK_ERROR", f"Network error: {exc}"
        error = AnalyticsError(
            code=code,
            message=message,
            details={
                "endpoint": self.endpoint(path),
                "latency_ms": latency_ms,
                "original_error": str(exc),
                "error_type": type(exc).__name__
            }
        )
        logger.error(
            f"Transport error: endpoint={path}, latency={latency_ms}ms, error={exc}",
            extra={"error_code": error.code, "error_details": error.details}
        )
        return AnalyticsClientError(error)
