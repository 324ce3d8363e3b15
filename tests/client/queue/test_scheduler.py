"""Tests for RetryScheduler."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from orderqueue.client.queue.connectivity import ConnectivityMonitor
from orderqueue.client.queue.scheduler import RESYNC_JOB_ID, RetryScheduler


class TestRetryScheduler:
    """Tests for RetryScheduler."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self) -> None:
        """Should register the interval job and remove it on stop."""
        scheduler = RetryScheduler(MagicMock(), ConnectivityMonitor(), interval=30.0)

        scheduler.start()
        assert scheduler.running
        assert scheduler._scheduler is not None
        job = scheduler._scheduler.get_job(RESYNC_JOB_ID)
        assert job is not None
        assert job.trigger.interval.total_seconds() == 30.0

        scheduler.stop()
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self) -> None:
        """A second start() keeps the existing scheduler."""
        scheduler = RetryScheduler(MagicMock(), ConnectivityMonitor())
        scheduler.start()
        first = scheduler._scheduler
        scheduler.start()
        assert scheduler._scheduler is first
        scheduler.stop()

    @pytest.mark.asyncio
    async def test_tick_triggers_resync(self) -> None:
        """The periodic job asks for a pass."""
        trigger = MagicMock()
        scheduler = RetryScheduler(trigger, ConnectivityMonitor())

        await scheduler._tick()

        trigger.assert_called_once_with("timer")

    @pytest.mark.asyncio
    async def test_tick_swallows_errors(self) -> None:
        """A failing trigger does not kill the job."""
        scheduler = RetryScheduler(MagicMock(side_effect=RuntimeError("boom")), ConnectivityMonitor())
        await scheduler._tick()

    @pytest.mark.asyncio
    async def test_timer_fires(self) -> None:
        """The interval job runs on the event loop."""
        trigger = MagicMock()
        scheduler = RetryScheduler(trigger, ConnectivityMonitor(), interval=0.05)

        scheduler.start()
        try:
            await asyncio.sleep(0.3)
        finally:
            scheduler.stop()

        assert trigger.call_count >= 1
        trigger.assert_called_with("timer")

    @pytest.mark.asyncio
    async def test_reconnect_triggers_resync(self) -> None:
        """Coming back online asks for a pass, until stopped."""
        trigger = MagicMock()
        connectivity = ConnectivityMonitor(initially_online=False)
        scheduler = RetryScheduler(trigger, connectivity)
        scheduler.start()

        connectivity.set_online(True)
        trigger.assert_called_once_with("reconnect")

        scheduler.stop()
        connectivity.set_online(False)
        connectivity.set_online(True)
        trigger.assert_called_once()
