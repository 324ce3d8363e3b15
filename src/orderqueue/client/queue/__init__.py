"""Offline-resilient submission queue for order mutations.

Architecture:
    caller → OfflineOrderQueue → MutationStore (persist)
                               → StatusPublisher (notify)
                               → SyncExecutor (drain, single-flight)
    RetryScheduler (timer) ─┐
    ConnectivityMonitor ────┴→ OfflineOrderQueue.request_sync()

Components:
- **MutationStore**: SQLite-backed durable copy of the pending list
- **ConnectivityMonitor**: offline/online state, fires on reconnection
- **backoff_delay**: exponential backoff policy
- **SyncExecutor**: one bounded pass over eligible records
- **RetryScheduler**: periodic and reconnect-driven resync triggers
- **StatusPublisher**: status fan-out to any number of subscribers
- **OfflineOrderQueue**: public entry point tying everything together
"""

from orderqueue.client.queue.connectivity import NETWORK_CHECK_INTERVAL, ConnectivityMonitor
from orderqueue.client.queue.executor import SyncExecutor
from orderqueue.client.queue.manager import OfflineOrderQueue
from orderqueue.client.queue.publisher import StatusPublisher
from orderqueue.client.queue.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_BACKOFF,
    NETWORK_EXCEPTIONS,
    backoff_delay,
    describe_error,
    is_eligible,
    is_permanent_failure,
)
from orderqueue.client.queue.scheduler import RESYNC_JOB_ID, RetryScheduler
from orderqueue.client.queue.store import SCHEMA_VERSION, MutationStore
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

__all__ = [
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_MAX_BACKOFF",
    "NETWORK_CHECK_INTERVAL",
    "NETWORK_EXCEPTIONS",
    "RESYNC_JOB_ID",
    "SCHEMA_VERSION",
    "ConnectivityMonitor",
    "ConsumptionRecorder",
    "MutationStore",
    "OfflineOrderQueue",
    "OrderStore",
    "PassResult",
    "PendingMutation",
    "PersistenceError",
    "QueueStatus",
    "RetryScheduler",
    "StatusListener",
    "StatusPublisher",
    "SyncExecutor",
    "backoff_delay",
    "describe_error",
    "is_eligible",
    "is_permanent_failure",
    "new_mutation_id",
]
