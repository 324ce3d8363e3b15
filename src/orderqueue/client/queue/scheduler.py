"""Retry scheduler: periodic and reconnect-driven resync triggers.

Two independent sources ask the queue for a pass:
- an APScheduler interval job (every ``sync_interval`` seconds)
- the connectivity monitor, once per offline -> online transition

Neither calls the executor directly; both go through the queue's
single-flight dispatcher.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from orderqueue.client.queue.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

RESYNC_JOB_ID = "queue_resync"

SyncTrigger = Callable[[str], object]


class RetryScheduler:
    """Fires resync requests on a timer and after reconnection."""

    def __init__(
        self,
        trigger: SyncTrigger,
        connectivity: ConnectivityMonitor,
        interval: float = 30.0,
    ) -> None:
        """Initialize the scheduler.

        Args:
            trigger: Dispatcher called with the trigger reason.
            connectivity: Monitor whose reconnect events trigger a resync.
            interval: Seconds between periodic resync requests.
        """
        self._trigger = trigger
        self._connectivity = connectivity
        self._interval = interval
        self._scheduler: AsyncIOScheduler | None = None
        self._remove_listener: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        """True between start() and stop()."""
        return self._scheduler is not None

    async def _tick(self) -> None:
        """Job function for the periodic resync."""
        try:
            self._trigger("timer")
        except Exception:
            logger.exception("Error during scheduled resync")

    def _on_reconnect(self) -> None:
        self._trigger("reconnect")

    def start(self) -> None:
        """Start the timer and subscribe to reconnect events.

        Must be called from a running event loop.
        """
        if self._scheduler is not None:
            return  # Already running

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(seconds=self._interval),
            id=RESYNC_JOB_ID,
            name="Periodic queue resync",
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        self._scheduler.start()
        self._remove_listener = self._connectivity.add_listener(self._on_reconnect)
        logger.info("Retry scheduler started (every %.0fs)", self._interval)

    def stop(self) -> None:
        """Stop the timer and drop the reconnect listener."""
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
            logger.info("Retry scheduler stopped")
