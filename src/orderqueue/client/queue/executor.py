"""Sync executor: drains eligible pending mutations against the order store.

One pass:
    1. Bail out if a pass is already running or the store is unreachable.
    2. Snapshot the pending list; records enqueued meanwhile wait for the
       next pass.
    3. For every eligible record, in snapshot order, submit it. A success
       removes the record (after a best-effort consumption call for creates);
       a failure bumps attempt_count, last_attempt_at and last_error.
    4. Persist the list once and publish the new status.

Records are only ever removed after the order store confirmed success.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from orderqueue.client.api import extract_consumption_items
from orderqueue.client.queue.retry import (
    backoff_delay,
    describe_error,
    is_eligible,
    is_permanent_failure,
)
from orderqueue.client.queue.types import (
    ConsumptionRecorder,
    OrderStore,
    PassResult,
    PendingMutation,
)
from orderqueue.core.config import QueueConfig
from orderqueue.core.types import MutationMode

if TYPE_CHECKING:
    from orderqueue.client.queue.connectivity import ConnectivityMonitor
    from orderqueue.client.queue.publisher import StatusPublisher
    from orderqueue.client.queue.store import MutationStore

logger = logging.getLogger(__name__)


class SyncExecutor:
    """Runs single-flight sync passes over a shared pending list."""

    def __init__(
        self,
        records: list[PendingMutation],
        store: MutationStore,
        order_store: OrderStore,
        connectivity: ConnectivityMonitor,
        publisher: StatusPublisher,
        config: QueueConfig | None = None,
        recorder: ConsumptionRecorder | None = None,
        clock: Callable[[], float] = time.time,
        items_extractor: Callable[[Any], list[dict[str, Any]]] = extract_consumption_items,
    ) -> None:
        """Initialize the executor.

        Args:
            records: Pending list owned by the queue manager, mutated in place.
            store: Durable store the list is persisted to after each pass.
            order_store: Remote order store.
            connectivity: Reachability state; passes never start offline.
            publisher: Status publisher notified at pass start and end.
            config: Retry configuration.
            recorder: Optional consumption recorder called after creates.
            clock: Time source (seconds since epoch).
            items_extractor: Maps a payload to consumption line items.
        """
        self._records = records
        self._store = store
        self._order_store = order_store
        self._connectivity = connectivity
        self._publisher = publisher
        self._config = config or QueueConfig()
        self._recorder = recorder
        self._clock = clock
        self._items_extractor = items_extractor

        self._in_flight = False
        self._current_id: str | None = None
        self._last_sync_at: float | None = None
        self._passes = 0

    @property
    def in_flight(self) -> bool:
        """True while a pass is running."""
        return self._in_flight

    @property
    def current_id(self) -> str | None:
        """Id of the record whose remote call is outstanding, if any."""
        return self._current_id

    @property
    def last_sync_at(self) -> float | None:
        """Completion time of the last pass that attempted a record."""
        return self._last_sync_at

    @property
    def passes(self) -> int:
        """Number of passes that actually ran."""
        return self._passes

    async def run_pass(self) -> PassResult | None:
        """Run one pass over the pending list.

        Returns:
            PassResult, or None if the pass was skipped (already running or
            offline).

        Raises:
            PersistenceError: If the updated list cannot be persisted. The
                in-memory list is not rolled back: records the order store
                accepted stay removed in memory but remain on disk, so they
                are submitted again after a restart (at-least-once).
        """
        if self._in_flight:
            logger.debug("Sync pass already running, skipping")
            return None
        if not self._connectivity.is_online:
            logger.debug("Offline, skipping sync pass")
            return None

        self._in_flight = True
        self._passes += 1
        try:
            self._publisher.publish()
            result = await self._drain(list(self._records))
            if result.attempted:
                self._last_sync_at = self._clock()
            self._store.save(self._records)
        finally:
            self._in_flight = False
            self._current_id = None
            self._publisher.publish()

        logger.info(
            "Sync pass done: %d attempted, %d succeeded, %d failed, %d waiting",
            result.attempted,
            len(result.succeeded),
            len(result.failed),
            result.skipped,
        )
        return result

    async def _drain(self, snapshot: list[PendingMutation]) -> PassResult:
        result = PassResult()
        for record in snapshot:
            if not self._contains(record.id):
                # Removed by the caller while an earlier record was in flight
                continue
            if not self._connectivity.is_online:
                logger.info("Went offline during sync pass, stopping early")
                break
            if not is_eligible(
                record,
                self._clock(),
                self._config.max_attempts,
                self._config.initial_delay,
                self._config.max_delay,
            ):
                result.skipped += 1
                continue

            result.attempted += 1
            self._current_id = record.id
            try:
                remote_id = await self._submit(record)
            except Exception as e:
                self._record_failure(record, e, result)
            else:
                if record.mode == MutationMode.CREATE and remote_id is not None:
                    await self._record_consumption(record, remote_id)
                self._discard(record.id)
                result.succeeded.append(record.id)
                logger.info("Mutation %s applied (%s)", record.id, record.mode.value)
            finally:
                self._current_id = None
        return result

    async def _submit(self, record: PendingMutation) -> str | None:
        if record.mode == MutationMode.CREATE:
            return await self._order_store.submit_create(record.payload)
        # target_id is guaranteed by PendingMutation validation
        await self._order_store.submit_edit(record.target_id or "", record.payload)
        return None

    async def _record_consumption(self, record: PendingMutation, remote_id: str) -> None:
        """Best-effort consumption call; failures never affect the mutation."""
        if self._recorder is None:
            return
        date_key = datetime.fromtimestamp(self._clock(), tz=UTC).date().isoformat()
        try:
            items = self._items_extractor(record.payload)
            await self._recorder.record_consumption(record.scope_id, items, date_key, remote_id)
        except Exception:
            logger.exception(
                "Recording consumption for order %s (mutation %s) failed",
                remote_id,
                record.id,
            )

    def _record_failure(
        self, record: PendingMutation, error: Exception, result: PassResult
    ) -> None:
        max_attempts = self._config.max_attempts
        record.attempt_count += 1
        record.last_attempt_at = self._clock()
        record.last_error = describe_error(error)

        if self._config.dead_letter_permanent_failures and is_permanent_failure(error):
            record.attempt_count = max(record.attempt_count, max_attempts)

        result.failed.append(record.id)
        if record.is_dead_lettered(max_attempts):
            result.dead_lettered.append(record.id)
            logger.error(
                "Mutation %s failed after %d attempt(s), giving up: %s",
                record.id,
                record.attempt_count,
                record.last_error,
            )
        else:
            logger.warning(
                "Mutation %s attempt %d/%d failed: %s. Next retry in %.1fs",
                record.id,
                record.attempt_count,
                max_attempts,
                record.last_error,
                backoff_delay(
                    record.attempt_count,
                    self._config.initial_delay,
                    self._config.max_delay,
                ),
            )

    def _contains(self, mutation_id: str) -> bool:
        return any(r.id == mutation_id for r in self._records)

    def _discard(self, mutation_id: str) -> None:
        for index, existing in enumerate(self._records):
            if existing.id == mutation_id:
                del self._records[index]
                return
