"""Shared types for orderqueue.

This module defines enums used by the queue, the HTTP client and the CLI.
"""

from __future__ import annotations

from enum import Enum


class MutationMode(str, Enum):
    """Which remote operation a pending mutation maps to."""

    CREATE = "create"
    EDIT = "edit"


class SyncState(str, Enum):
    """Aggregate state of the queue, as shown to operators."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"
    OFFLINE = "offline"
