"""Periodic health polling of the analytics service."""
import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from .. import config
from .analytics_api import AnalyticsAPI

logger = logging.getLogger(__name__)


class BackendStatus(str, Enum):
    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"


class HealthMonitor:
    """Polls ``/health`` and reports online/offline transitions."""

    def __init__(self, api: AnalyticsAPI, interval: Optional[float] = None):
        self.api = api
        self.interval = interval if interval is not None else config.HEALTH_POLL_INTERVAL
        self.status = BackendStatus.CHECKING
        self._listeners: List[Callable[[BackendStatus], None]] = []
        self._task: Optional[asyncio.Task] = None

    def on_change(self, listener: Callable[[BackendStatus], None]) -> None:
        self._listeners.append(listener)

    async def check(self) -> BackendStatus:
        """Run one health check and update the status."""
        healthy = await self.api.check_health()
        status = BackendStatus.ONLINE if healthy else BackendStatus.OFFLINE
        if status != self.status:
            logger.info(f"Analytics service is {status.value}")
            self.status = status
            for listener in list(self._listeners):
                listener(status)
        return status

    def start(self) -> None:
        """Start polling on the running event loop."""
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._poll())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _poll(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self.interval)
