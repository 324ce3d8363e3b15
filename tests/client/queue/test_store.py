"""Tests for the durable mutation store."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from orderqueue.client.queue.store import SCHEMA_VERSION, MutationStore
from orderqueue.client.queue.types import PendingMutation, PersistenceError
from orderqueue.core.types import MutationMode


def make_record(mutation_id: str, **overrides: object) -> PendingMutation:
    data: dict[str, object] = {
        "id": mutation_id,
        "payload": {"businessId": "biz-1", "items": []},
        "mode": MutationMode.CREATE,
        "scope_id": "biz-1",
        "created_at": 1.0,
    }
    data.update(overrides)
    return PendingMutation.model_validate(data)


def raw_value(db_path: Path, key: str) -> str | None:
    conn = sqlite3.connect(str(db_path))
    try:
        row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    finally:
        conn.close()
    return None if row is None else row[0]


class TestMutationStore:
    """Tests for MutationStore."""

    def test_empty_store_loads_nothing(self, store: MutationStore) -> None:
        """A new store has no records."""
        assert store.load() == []

    def test_save_and_reload(self, db_path: Path) -> None:
        """Records survive closing and reopening the store."""
        store = MutationStore(db_path)
        records = [
            make_record("pending_1_a"),
            make_record("pending_2_b", mode=MutationMode.EDIT, target_id="X", attempt_count=2),
        ]
        store.save(records)
        store.close()

        reopened = MutationStore(db_path)
        try:
            loaded = reopened.load()
        finally:
            reopened.close()

        assert [r.id for r in loaded] == ["pending_1_a", "pending_2_b"]
        assert loaded[1].mode == MutationMode.EDIT
        assert loaded[1].target_id == "X"
        assert loaded[1].attempt_count == 2

    def test_versioned_layout(self, store: MutationStore, db_path: Path) -> None:
        """The list is stored as a versioned JSON envelope under one key."""
        store.save([make_record("pending_1_a")])
        document = json.loads(raw_value(db_path, "pending_orders") or "")
        assert document["version"] == SCHEMA_VERSION
        assert document["mutations"][0]["id"] == "pending_1_a"

    def test_custom_storage_key(self, db_path: Path) -> None:
        """Records go under the configured key."""
        store = MutationStore(db_path, storage_key="other_queue")
        try:
            store.save([make_record("pending_1_a")])
        finally:
            store.close()
        assert raw_value(db_path, "other_queue") is not None
        assert raw_value(db_path, "pending_orders") is None

    def test_legacy_array_accepted(self, store: MutationStore, db_path: Path) -> None:
        """A bare JSON array (unversioned) is still readable."""
        legacy = [make_record("pending_1_a").model_dump(mode="json")]
        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?)",
            ("pending_orders", json.dumps(legacy)),
        )
        conn.commit()
        conn.close()

        assert [r.id for r in store.load()] == ["pending_1_a"]

    def test_corrupt_value_is_quarantined(self, store: MutationStore, db_path: Path) -> None:
        """Unreadable data is moved aside and the queue starts empty."""
        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?)",
            ("pending_orders", "{not json"),
        )
        conn.commit()
        conn.close()

        assert store.load() == []
        assert raw_value(db_path, "pending_orders") is None

        conn = sqlite3.connect(str(db_path))
        keys = [row[0] for row in conn.execute("SELECT key FROM kv_store")]
        conn.close()
        assert len(keys) == 1
        assert keys[0].startswith("pending_orders.corrupt.")

    def test_unknown_version_is_quarantined(self, store: MutationStore, db_path: Path) -> None:
        """A future schema version is not silently misread."""
        conn = sqlite3.connect(str(db_path))
        conn.execute(
            "INSERT INTO kv_store (key, value) VALUES (?, ?)",
            ("pending_orders", json.dumps({"version": 99, "mutations": []})),
        )
        conn.commit()
        conn.close()

        assert store.load() == []
        assert raw_value(db_path, "pending_orders") is None

    def test_unserializable_payload(self, store: MutationStore) -> None:
        """Payloads that cannot be encoded raise PersistenceError."""
        record = make_record("pending_1_a", payload={"when": object()})
        with pytest.raises(PersistenceError):
            store.save([record])

    def test_clear(self, store: MutationStore) -> None:
        """clear() removes the persisted list."""
        store.save([make_record("pending_1_a")])
        store.clear()
        assert store.load() == []

    def test_closed_store_raises(self, db_path: Path) -> None:
        """Using a closed store raises PersistenceError."""
        store = MutationStore(db_path)
        store.close()
        with pytest.raises(PersistenceError):
            store.save([])
        store.close()  # idempotent

    def test_unopenable_path(self, tmp_path: Path) -> None:
        """A path that cannot hold a database raises PersistenceError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceError):
            MutationStore(blocker / "queue.db")
