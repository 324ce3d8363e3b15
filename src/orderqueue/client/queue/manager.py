"""Queue manager: the public entry point of the submission queue.

The manager owns the in-memory pending list and mirrors every change to the
durable store before returning (write-through). All triggers that want a
sync pass (enqueue, timer, reconnect, retry_failed) go through
request_sync(), which keeps at most one drain task alive and collapses
requests that arrive during a pass into a single follow-up pass.

Usage:
    store = MutationStore(config_dir / "queue.db")
    queue = OfflineOrderQueue(store, order_store=client, recorder=client)
    queue.start()                      # timer + connectivity polling

    unsubscribe = queue.subscribe(print)
    mutation_id = queue.enqueue({"businessId": "b1", "items": [...]})

    queue.destroy()                    # persisted state is kept
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from orderqueue.client.api import extract_consumption_items
from orderqueue.client.queue.connectivity import ConnectivityMonitor
from orderqueue.client.queue.executor import SyncExecutor
from orderqueue.client.queue.publisher import StatusPublisher
from orderqueue.client.queue.scheduler import RetryScheduler
from orderqueue.client.queue.store import MutationStore
from orderqueue.client.queue.types import (
    ConsumptionRecorder,
    OrderStore,
    PassResult,
    PendingMutation,
    PersistenceError,
    QueueStatus,
    StatusListener,
    new_mutation_id,
)
from orderqueue.core.config import QueueConfig
from orderqueue.core.types import MutationMode

logger = logging.getLogger(__name__)


class OfflineOrderQueue:
    """Durable, retrying queue of order creations and edits."""

    def __init__(
        self,
        store: MutationStore,
        order_store: OrderStore,
        recorder: ConsumptionRecorder | None = None,
        connectivity: ConnectivityMonitor | None = None,
        config: QueueConfig | None = None,
        clock: Callable[[], float] = time.time,
        items_extractor: Callable[[Any], list[dict[str, Any]]] = extract_consumption_items,
    ) -> None:
        """Initialize the queue and load persisted records.

        Args:
            store: Durable record store.
            order_store: Remote order store.
            recorder: Optional consumption recorder for successful creates.
            connectivity: Reachability monitor (defaults to always online
                until told otherwise).
            config: Queue configuration.
            clock: Time source (seconds since epoch).
            items_extractor: Maps a payload to consumption line items.
        """
        self._config = config or QueueConfig()
        self._store = store
        self._clock = clock
        self._connectivity = connectivity or ConnectivityMonitor()
        self._records: list[PendingMutation] = store.load()

        self._publisher = StatusPublisher(self.status)
        self._executor = SyncExecutor(
            self._records,
            store,
            order_store,
            self._connectivity,
            self._publisher,
            config=self._config,
            recorder=recorder,
            clock=clock,
            items_extractor=items_extractor,
        )
        self._scheduler = RetryScheduler(
            self.request_sync,
            self._connectivity,
            interval=self._config.sync_interval,
        )

        self._drain_task: asyncio.Task[PassResult | None] | None = None
        self._rerun_requested = False
        self._destroyed = False

    @property
    def config(self) -> QueueConfig:
        """Queue configuration."""
        return self._config

    @property
    def connectivity(self) -> ConnectivityMonitor:
        """Connectivity monitor driving offline/online behavior."""
        return self._connectivity

    # === Lifecycle ===

    def start(self) -> None:
        """Start the periodic timer and connectivity polling.

        Must be called from a running event loop.
        """
        self._scheduler.start()
        self._connectivity.start()

    def destroy(self) -> None:
        """Stop timers and listeners. The queue contents stay persisted."""
        self._destroyed = True
        self._scheduler.stop()
        self._connectivity.stop()
        self._publisher.clear()
        logger.debug("Queue destroyed with %d record(s) persisted", len(self._records))

    async def wait_idle(self) -> None:
        """Wait for the current drain task (if any) to finish."""
        task = self._drain_task
        if task is not None and not task.done():
            await asyncio.wait({task})

    # === Mutations ===

    def _persist(self) -> None:
        self._store.save(self._records)

    def enqueue(
        self,
        payload: Any,
        mode: MutationMode | str = MutationMode.CREATE,
        target_id: str | None = None,
        scope_id: str | None = None,
    ) -> str:
        """Add a mutation to the queue.

        The record is persisted before this returns. When online, a sync
        pass is requested in the background.

        Args:
            payload: Order body, stored as-is. Must be JSON serializable.
            mode: CREATE or EDIT.
            target_id: Remote order id; required for EDIT.
            scope_id: Owning business id (defaults to payload["businessId"]).

        Returns:
            Client-side mutation id.

        Raises:
            ValueError: If an EDIT has no target_id.
            PersistenceError: If the record cannot be persisted.
        """
        mode = MutationMode(mode)
        if scope_id is None:
            scope_id = str(payload.get("businessId", "")) if isinstance(payload, dict) else ""

        mutation_id = new_mutation_id()
        while any(r.id == mutation_id for r in self._records):
            mutation_id = new_mutation_id()

        record = PendingMutation(
            id=mutation_id,
            payload=payload,
            mode=mode,
            target_id=target_id,
            scope_id=scope_id,
            created_at=self._clock(),
        )

        self._records.append(record)
        try:
            self._persist()
        except PersistenceError:
            self._records.remove(record)
            raise

        logger.info("Queued %s mutation %s (queue size: %d)", mode.value, mutation_id, len(self._records))
        self._publisher.publish()
        self.request_sync("enqueue")
        return mutation_id

    def remove(self, mutation_id: str) -> bool:
        """Remove a mutation regardless of its state.

        Returns:
            True if a record was removed, False if the id was unknown.
        """
        for index, record in enumerate(self._records):
            if record.id == mutation_id:
                break
        else:
            return False

        del self._records[index]
        try:
            self._persist()
        except PersistenceError:
            self._records.insert(index, record)
            raise

        logger.info("Removed mutation %s", mutation_id)
        self._publisher.publish()
        return True

    async def retry_failed(self) -> int:
        """Give dead-lettered mutations a fresh attempt budget and sync now.

        Returns:
            Number of records that were reset.
        """
        failed = [r for r in self._records if r.is_dead_lettered(self._config.max_attempts)]
        previous = [(r.attempt_count, r.last_attempt_at, r.last_error) for r in failed]
        for record in failed:
            record.attempt_count = 0
            record.last_attempt_at = None
            record.last_error = None

        if failed:
            try:
                self._persist()
            except PersistenceError:
                for record, (count, attempted_at, error) in zip(failed, previous, strict=True):
                    record.attempt_count = count
                    record.last_attempt_at = attempted_at
                    record.last_error = error
                raise
            logger.info("Reset %d failed mutation(s) for retry", len(failed))
            self._publisher.publish()

        task = self.request_sync("retry")
        if task is not None:
            await task
        return len(failed)

    def clear(self) -> int:
        """Delete every queued mutation, in memory and on disk.

        Returns:
            Number of records removed.
        """
        count = len(self._records)
        self._store.clear()
        self._records.clear()
        logger.warning("Cleared %d mutation(s) from queue", count)
        self._publisher.publish()
        return count

    # === Sync dispatch ===

    def request_sync(self, reason: str = "manual") -> asyncio.Task[PassResult | None] | None:
        """Ask for a sync pass.

        At most one drain task exists at a time. A request made while a pass
        is running schedules exactly one follow-up pass.

        Args:
            reason: Trigger name, for logging.

        Returns:
            The drain task that will serve this request, or None if nothing
            will run (offline, empty queue, destroyed, or no event loop).
        """
        if self._destroyed:
            return None
        if not self._connectivity.is_online:
            logger.debug("Sync requested (%s) while offline, ignoring", reason)
            return None
        if self._drain_task is not None and not self._drain_task.done():
            logger.debug("Sync requested (%s) during a pass, will rerun", reason)
            self._rerun_requested = True
            return self._drain_task
        if not self._records:
            return None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("Sync requested (%s) without a running event loop", reason)
            return None

        logger.debug("Starting sync (%s)", reason)
        self._drain_task = loop.create_task(self._drain())
        self._drain_task.add_done_callback(self._on_drain_done)
        return self._drain_task

    async def sync_now(self) -> PassResult | None:
        """Request a pass and wait for it (and any follow-up) to finish."""
        task = self.request_sync("manual")
        if task is None:
            return None
        return await task

    async def _drain(self) -> PassResult | None:
        result: PassResult | None = None
        while True:
            self._rerun_requested = False
            result = await self._executor.run_pass()
            if not self._rerun_requested:
                return result

    @staticmethod
    def _on_drain_done(task: asyncio.Task[PassResult | None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Sync pass aborted: %s", error, exc_info=error)

    # === Observation ===

    def status(self) -> QueueStatus:
        """Current aggregate status."""
        max_attempts = self._config.max_attempts
        current = self._executor.current_id
        failed = 0
        pending = 0
        for record in self._records:
            if record.is_dead_lettered(max_attempts):
                failed += 1
            elif record.id != current:
                pending += 1
        return QueueStatus(
            pending=pending,
            in_flight=self._executor.in_flight,
            failed=failed,
            last_sync_at=self._executor.last_sync_at,
            online=self._connectivity.is_online,
        )

    def list_pending(self) -> list[PendingMutation]:
        """Copies of every queued record, in queue order."""
        return [record.model_copy(deep=True) for record in self._records]

    def get(self, mutation_id: str) -> PendingMutation | None:
        """Copy of one queued record, or None."""
        for record in self._records:
            if record.id == mutation_id:
                return record.model_copy(deep=True)
        return None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a status listener; it receives the current status at once.

        Returns:
            Unsubscribe function; safe to call more than once.
        """
        return self._publisher.subscribe(listener)

    def __len__(self) -> int:
        return len(self._records)
