"""Shared configuration classes for orderqueue.

This module defines configuration classes used by the HTTP client, the queue
and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_STORAGE_KEY = "pending_orders"


@dataclass
class ServerConfig:
    """Configuration for connecting to the remote order store.

    Attributes:
        server_url: Base URL of the order store (e.g., "https://orders.example.com").
        token: Bearer token sent with every request.
        timeout: Request timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    token: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")


@dataclass
class QueueConfig:
    """Tuning knobs for the submission queue.

    Attributes:
        max_attempts: Failed attempts before a mutation is dead-lettered.
        initial_delay: Backoff delay in seconds after the first failure.
        max_delay: Upper bound for the backoff delay in seconds.
        sync_interval: Seconds between periodic resync passes.
        connectivity_check_interval: Seconds between reachability probes.
        dead_letter_permanent_failures: Move permanently rejected mutations
            straight to the failed bucket instead of retrying them.
        storage_key: Key the pending list is persisted under.
    """

    max_attempts: int = 5
    initial_delay: float = 1.0
    max_delay: float = 60.0
    sync_interval: float = 30.0
    connectivity_check_interval: float = 5.0
    dead_letter_permanent_failures: bool = True
    storage_key: str = DEFAULT_STORAGE_KEY

    def __post_init__(self) -> None:
        """Validate values."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("backoff delays must not be negative")
        if self.max_delay < self.initial_delay:
            raise ValueError("max_delay must be >= initial_delay")
        if self.sync_interval <= 0:
            raise ValueError("sync_interval must be positive")
        if self.connectivity_check_interval <= 0:
            raise ValueError("connectivity_check_interval must be positive")
        if not self.storage_key:
            raise ValueError("storage_key must not be empty")
