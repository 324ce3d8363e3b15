"""Status publisher: fan-out of queue status snapshots to subscribers."""

from __future__ import annotations

import logging
from collections.abc import Callable

from orderqueue.client.queue.types import QueueStatus, StatusListener

logger = logging.getLogger(__name__)


class StatusPublisher:
    """Multi-subscriber registry for QueueStatus snapshots.

    Subscribers are called synchronously in subscription order. A new
    subscriber immediately receives the current snapshot.
    """

    def __init__(self, snapshot: Callable[[], QueueStatus]) -> None:
        """Initialize the publisher.

        Args:
            snapshot: Callable producing the current status.
        """
        self._snapshot = snapshot
        self._listeners: dict[int, StatusListener] = {}
        self._next_token = 0

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener and send it the current status.

        Returns:
            Unsubscribe function; idempotent.
        """
        token = self._next_token
        self._next_token += 1
        self._listeners[token] = listener

        def unsubscribe() -> None:
            self._listeners.pop(token, None)

        self._deliver(listener, self._snapshot())
        return unsubscribe

    def publish(self) -> QueueStatus:
        """Send the current status to every subscriber.

        Returns:
            The snapshot that was sent.
        """
        status = self._snapshot()
        # dict preserves insertion order, i.e. subscription order
        for listener in list(self._listeners.values()):
            self._deliver(listener, status)
        return status

    def clear(self) -> None:
        """Drop every subscriber."""
        self._listeners.clear()

    @staticmethod
    def _deliver(listener: StatusListener, status: QueueStatus) -> None:
        try:
            listener(status)
        except Exception:
            logger.exception("Status listener %r failed", listener)
