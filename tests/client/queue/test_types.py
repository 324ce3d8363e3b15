"""Tests for queue types."""

from __future__ import annotations

import re

import pytest
from pydantic import ValidationError

from orderqueue.client.queue.types import (
    PendingMutation,
    QueueStatus,
    new_mutation_id,
)
from orderqueue.core.types import MutationMode, SyncState


class TestNewMutationId:
    """Tests for new_mutation_id."""

    def test_format(self) -> None:
        """Ids look like pending_<ms>_<9 base36 chars>."""
        assert re.fullmatch(r"pending_\d+_[a-z0-9]{9}", new_mutation_id())

    def test_unique(self) -> None:
        """Ids generated back to back differ."""
        ids = {new_mutation_id() for _ in range(200)}
        assert len(ids) == 200


class TestPendingMutation:
    """Tests for PendingMutation model."""

    def test_defaults(self) -> None:
        """New records start with no attempts."""
        record = PendingMutation(
            id="pending_1_a", payload={"a": 1}, mode=MutationMode.CREATE, created_at=1.0
        )
        assert record.attempt_count == 0
        assert record.last_attempt_at is None
        assert record.last_error is None
        assert record.target_id is None

    def test_edit_requires_target(self) -> None:
        """Edits without a target id are invalid."""
        with pytest.raises(ValidationError):
            PendingMutation(id="pending_1_a", payload={}, mode=MutationMode.EDIT, created_at=1.0)

    def test_id_is_immutable(self) -> None:
        """The id cannot be reassigned."""
        record = PendingMutation(id="pending_1_a", payload={}, mode="create", created_at=1.0)
        with pytest.raises(ValidationError):
            record.id = "other"

    def test_negative_attempts_rejected(self) -> None:
        """attempt_count must be >= 0."""
        with pytest.raises(ValidationError):
            PendingMutation(
                id="pending_1_a", payload={}, mode="create", created_at=1.0, attempt_count=-1
            )

    def test_is_dead_lettered(self) -> None:
        """Dead-lettered once attempt_count reaches the budget."""
        record = PendingMutation(
            id="pending_1_a", payload={}, mode="create", created_at=1.0, attempt_count=5
        )
        assert record.is_dead_lettered(5)
        assert not record.is_dead_lettered(6)


class TestQueueStatus:
    """Tests for QueueStatus dataclass."""

    def test_state(self) -> None:
        """State collapses the counters."""
        assert QueueStatus().state == SyncState.IDLE
        assert QueueStatus(failed=1).state == SyncState.ERROR
        assert QueueStatus(failed=1, in_flight=True).state == SyncState.SYNCING
        assert QueueStatus(failed=1, online=False).state == SyncState.OFFLINE
        assert QueueStatus(online=False, in_flight=True).state == SyncState.SYNCING

    def test_to_dict(self) -> None:
        """Should convert to a JSON-friendly dict."""
        data = QueueStatus(pending=2, failed=1, last_sync_at=5.0).to_dict()
        assert data == {
            "state": "error",
            "pending": 2,
            "in_flight": False,
            "failed": 1,
            "last_sync_at": 5.0,
            "online": True,
        }
