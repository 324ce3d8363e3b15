"""Durable record store for pending mutations.

The whole pending list is kept as one JSON document under a single key in a
small SQLite key/value table::

    {"version": 1, "mutations": [{...}, {...}]}

A bare JSON array (the unversioned layout) is still accepted on load and is
rewritten in the versioned form on the next save.

Durability:
    The connection runs in autocommit mode with WAL journaling, so every
    save() is committed before it returns. A failed write raises
    PersistenceError; callers roll back their in-memory change.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from orderqueue.client.queue.types import PendingMutation, PersistenceError
from orderqueue.core.config import DEFAULT_STORAGE_KEY

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class MutationStore:
    """SQLite-backed persistence for the pending mutation list."""

    def __init__(self, db_path: Path, storage_key: str = DEFAULT_STORAGE_KEY) -> None:
        """Open (or create) the store.

        Args:
            db_path: Path to the SQLite database file.
            storage_key: Key the pending list is stored under.
        """
        self._db_path = Path(db_path)
        self._key = storage_key
        self._conn: sqlite3.Connection | None = None
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(self._db_path),
                isolation_level=None,  # Autocommit mode
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)
        except (OSError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot open mutation store at {self._db_path}: {e}") from e
        logger.debug("Opened mutation store at %s", self._db_path)

    @property
    def path(self) -> Path:
        """Path of the underlying database file."""
        return self._db_path

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise PersistenceError("Mutation store is closed")
        return self._conn

    def _read_raw(self, key: str) -> str | None:
        row = self._connection().execute(
            "SELECT value FROM kv_store WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    def _write_raw(self, key: str, value: str) -> None:
        self._connection().execute(
            "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
            (key, value),
        )

    def load(self) -> list[PendingMutation]:
        """Load the persisted pending list.

        A value that cannot be decoded is moved aside under
        ``<key>.corrupt.<timestamp>`` and an empty list is returned.

        Returns:
            Records in persisted order.
        """
        try:
            raw = self._read_raw(self._key)
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot read pending mutations: {e}") from e
        if raw is None:
            return []

        try:
            records = self._decode(raw)
        except (ValueError, ValidationError) as e:
            quarantine_key = f"{self._key}.corrupt.{int(time.time())}"
            logger.error(
                "Persisted queue under %r is unreadable (%s); moved to %r",
                self._key,
                e,
                quarantine_key,
            )
            try:
                self._write_raw(quarantine_key, raw)
                self._connection().execute("DELETE FROM kv_store WHERE key = ?", (self._key,))
            except sqlite3.Error as write_error:
                raise PersistenceError(
                    f"Cannot quarantine corrupt queue: {write_error}"
                ) from write_error
            return []

        if records:
            logger.info("Loaded %d pending mutations from %s", len(records), self._db_path)
        return records

    @staticmethod
    def _decode(raw: str) -> list[PendingMutation]:
        document: Any = json.loads(raw)
        if isinstance(document, list):
            # Unversioned layout
            items = document
        elif isinstance(document, dict):
            version = document.get("version")
            if version != SCHEMA_VERSION:
                raise ValueError(f"unsupported queue schema version: {version!r}")
            items = document.get("mutations", [])
            if not isinstance(items, list):
                raise ValueError("'mutations' must be a list")
        else:
            raise ValueError("queue document must be an object or a list")
        return [PendingMutation.model_validate(item) for item in items]

    def save(self, records: list[PendingMutation]) -> None:
        """Persist the complete pending list, replacing what was stored.

        Raises:
            PersistenceError: If the list cannot be serialized or written.
        """
        try:
            value = json.dumps(
                {
                    "version": SCHEMA_VERSION,
                    "mutations": [record.model_dump(mode="json") for record in records],
                }
            )
            self._write_raw(self._key, value)
        except (TypeError, ValueError, sqlite3.Error) as e:
            raise PersistenceError(f"Cannot persist pending mutations: {e}") from e

    def clear(self) -> None:
        """Delete the persisted pending list."""
        try:
            self._connection().execute("DELETE FROM kv_store WHERE key = ?", (self._key,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot clear pending mutations: {e}") from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
