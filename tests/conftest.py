"""Shared fixtures for orderqueue tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from orderqueue.client.queue import MutationStore
from tests.fakes import FakeClock, FakeOrderStore, FakeRecorder


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Path of the queue database."""
    return tmp_path / "queue.db"


@pytest.fixture
def store(db_path: Path) -> Iterator[MutationStore]:
    """Create a test mutation store."""
    store = MutationStore(db_path)
    yield store
    store.close()


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock."""
    return FakeClock()


@pytest.fixture
def order_store() -> FakeOrderStore:
    """Fake remote order store."""
    return FakeOrderStore()


@pytest.fixture
def recorder() -> FakeRecorder:
    """Fake consumption recorder."""
    return FakeRecorder()
