"""Core module - Shared configuration and enums."""

from orderqueue.core.config import DEFAULT_STORAGE_KEY, QueueConfig, ServerConfig
from orderqueue.core.types import MutationMode, SyncState

__all__ = [
    # Config
    "DEFAULT_STORAGE_KEY",
    "QueueConfig",
    "ServerConfig",
    # Types
    "MutationMode",
    "SyncState",
]
