"""Unit tests for HealthMonitor."""
import asyncio

from analytics_client.services.health_monitor import BackendStatus, HealthMonitor


class FakeHealthAPI:
    def __init__(self, answers):
        self.answers = list(answers)
        self.calls = 0

    async def check_health(self):
        self.calls += 1
        if len(self.answers) > 1:
            return self.answers.pop(0)
        return self.answers[0]


class TestHealthMonitor:
    """Test suite for HealthMonitor."""

    def test_initial_status(self):
        """Test the monitor starts in the checking state."""
        assert HealthMonitor(FakeHealthAPI([True]), interval=1).status == BackendStatus.CHECKING

    def test_listener_notified_only_on_change(self):
        """Test repeated identical results notify once."""
        api = FakeHealthAPI([True, True, False, False, True])
        monitor = HealthMonitor(api, interval=1)
        changes = []
        monitor.on_change(changes.append)

        async def scenario():
            for _ in range(5):
                await monitor.check()

        asyncio.run(scenario())

        assert changes == [BackendStatus.ONLINE, BackendStatus.OFFLINE, BackendStatus.ONLINE]
        assert monitor.status == BackendStatus.ONLINE

    def test_polling_start_and_stop(self):
        """Test the background poll runs until stopped."""
        api = FakeHealthAPI([False])
        monitor = HealthMonitor(api, interval=0.01)

        async def scenario():
            monitor.start()
            await asyncio.sleep(0.05)
            await monitor.stop()
            calls = api.calls
            await asyncio.sleep(0.03)
            return calls

        calls = asyncio.run(scenario())

        assert calls >= 2
        assert api.calls == calls
        assert monitor.status == BackendStatus.OFFLINE

    def test_stop_without_start(self):
        """Test stopping an idle monitor is harmless."""
        asyncio.run(HealthMonitor(FakeHealthAPI([True]), interval=1).stop())
