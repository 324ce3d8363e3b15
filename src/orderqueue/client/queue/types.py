"""Types for the submission queue.

This module provides:
- PendingMutation: a locally persisted create/edit waiting for the order store
- QueueStatus: aggregate snapshot broadcast to subscribers
- PassResult: outcome of one sync pass
- OrderStore / ConsumptionRecorder: collaborator protocols
- PersistenceError: raised when the durable store cannot be written
"""

from __future__ import annotations

import secrets
import string
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, Field, model_validator

from orderqueue.core.types import MutationMode, SyncState

_ID_ALPHABET = string.ascii_lowercase + string.digits


class PersistenceError(Exception):
    """The durable record store could not be read or written."""


def new_mutation_id() -> str:
    """Generate a client-side mutation id (pending_<epoch-ms>_<random>)."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"pending_{int(time.time() * 1000)}_{suffix}"


class PendingMutation(BaseModel):
    """A create or edit that has not yet been accepted by the order store.

    The payload is opaque: the queue stores and forwards it without looking
    inside, except for deriving consumption items after a successful create.
    """

    id: str = Field(frozen=True, min_length=1)
    payload: Any
    mode: MutationMode
    target_id: str | None = None
    scope_id: str = ""
    attempt_count: int = Field(default=0, ge=0)
    created_at: float
    last_attempt_at: float | None = None
    last_error: str | None = None

    @model_validator(mode="after")
    def _check_target(self) -> PendingMutation:
        if self.mode == MutationMode.EDIT and not self.target_id:
            raise ValueError("edit mutations require a target_id")
        return self

    def is_dead_lettered(self, max_attempts: int) -> bool:
        """Check whether the retry budget is exhausted."""
        return self.attempt_count >= max_attempts

    def __repr__(self) -> str:
        return (
            f"PendingMutation({self.id}, {self.mode.value}, "
            f"target={self.target_id}, attempts={self.attempt_count})"
        )


@dataclass
class QueueStatus:
    """Aggregate status of the queue.

    Attributes:
        pending: Records waiting for an attempt (excludes failed and the one
            currently being applied).
        in_flight: True while a sync pass is running.
        failed: Records that exhausted their attempt budget.
        last_sync_at: Completion time of the last pass that attempted anything.
        online: Whether the order store is currently considered reachable.
    """

    pending: int = 0
    in_flight: bool = False
    failed: int = 0
    last_sync_at: float | None = None
    online: bool = True

    @property
    def state(self) -> SyncState:
        """Collapse the counters into a single state."""
        if self.in_flight:
            return SyncState.SYNCING
        if not self.online:
            return SyncState.OFFLINE
        if self.failed:
            return SyncState.ERROR
        return SyncState.IDLE

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "state": self.state.value,
            "pending": self.pending,
            "in_flight": self.in_flight,
            "failed": self.failed,
            "last_sync_at": self.last_sync_at,
            "online": self.online,
        }


@dataclass
class PassResult:
    """Outcome of a single sync pass."""

    attempted: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    dead_lettered: list[str] = field(default_factory=list)
    skipped: int = 0


StatusListener = Callable[[QueueStatus], None]


class OrderStore(Protocol):
    """Remote system of record for orders."""

    async def submit_create(self, payload: Any) -> str:
        """Create an order and return the id assigned by the store."""
        ...

    async def submit_edit(self, target_id: str, payload: Any) -> None:
        """Apply payload to an existing order."""
        ...


class ConsumptionRecorder(Protocol):
    """Secondary recorder notified after a successful create."""

    async def record_consumption(
        self,
        scope_id: str,
        items: list[dict[str, Any]],
        date_key: str,
        remote_id: str,
    ) -> None:
        """Record inventory consumption for a created order."""
        ...
