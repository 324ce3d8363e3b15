"""Connectivity monitoring for the submission queue.

The monitor holds a single "is the order store reachable" flag. It can be
driven externally (set_online from a platform network event) or by polling
a probe coroutine, typically OrderStoreClient.health_check.

Listeners fire once per offline -> online transition, synchronously and in
registration order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

# Default interval between reachability probes
NETWORK_CHECK_INTERVAL = 5.0  # seconds

Probe = Callable[[], Awaitable[bool]]
ReconnectListener = Callable[[], None]


class ConnectivityMonitor:
    """Track offline/online state and announce reconnections."""

    def __init__(
        self,
        probe: Probe | None = None,
        check_interval: float = NETWORK_CHECK_INTERVAL,
        initially_online: bool = True,
    ) -> None:
        """Initialize the monitor.

        Args:
            probe: Coroutine returning True when the store is reachable.
            check_interval: Seconds between probes while polling.
            initially_online: Assumed state before the first probe.
        """
        self._probe = probe
        self._check_interval = check_interval
        self._online = initially_online
        self._listeners: list[ReconnectListener] = []
        self._task: asyncio.Task[None] | None = None

    @property
    def is_online(self) -> bool:
        """Whether the order store is currently considered reachable."""
        return self._online

    def add_listener(self, listener: ReconnectListener) -> Callable[[], None]:
        """Register a callback for offline -> online transitions.

        Returns:
            Function removing the listener; safe to call more than once.
        """
        self._listeners.append(listener)

        def remove() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return remove

    def set_online(self, online: bool) -> None:
        """Record the current reachability.

        Fires the reconnect listeners when transitioning from offline to
        online; every other transition is silent.
        """
        was_online = self._online
        self._online = online
        if online and not was_online:
            logger.info("Connection restored, notifying %d listener(s)", len(self._listeners))
            for listener in list(self._listeners):
                try:
                    listener()
                except Exception:
                    logger.exception("Reconnect listener failed")
        elif was_online and not online:
            logger.warning("Order store unreachable, queue switches to offline mode")

    async def check(self) -> bool:
        """Run the probe once and update the state.

        Returns:
            The new online state (unchanged if no probe is configured).
        """
        if self._probe is None:
            return self._online
        try:
            reachable = bool(await self._probe())
        except Exception as e:
            logger.debug("Connectivity probe failed: %s", e)
            reachable = False
        self.set_online(reachable)
        return reachable

    async def _poll(self) -> None:
        while True:
            await self.check()
            await asyncio.sleep(self._check_interval)

    def start(self) -> None:
        """Start polling the probe on the running event loop."""
        if self._probe is None or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll())
        logger.debug("Connectivity polling started (every %.1fs)", self._check_interval)

    def stop(self) -> None:
        """Stop polling. The current state is kept."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
            logger.debug("Connectivity polling stopped")
