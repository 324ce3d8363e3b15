"""Tests for core configuration classes."""

from __future__ import annotations

import pytest

from orderqueue.core.config import QueueConfig, ServerConfig


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with required fields."""
        config = ServerConfig(server_url="https://example.com", token="test-token")
        assert config.server_url == "https://example.com"
        assert config.token == "test-token"
        assert config.timeout == 30.0
        assert config.verify_ssl is True

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from server URL."""
        config = ServerConfig(server_url="https://example.com/", token="test-token")
        assert config.server_url == "https://example.com"

    def test_is_secure(self) -> None:
        """Should detect HTTPS URLs."""
        assert ServerConfig(server_url="https://example.com", token="t").is_secure is True
        assert ServerConfig(server_url="http://localhost:8000", token="t").is_secure is False


class TestQueueConfig:
    """Tests for QueueConfig class."""

    def test_defaults(self) -> None:
        """Defaults match the documented retry policy."""
        config = QueueConfig()
        assert config.max_attempts == 5
        assert config.initial_delay == 1.0
        assert config.max_delay == 60.0
        assert config.sync_interval == 30.0
        assert config.dead_letter_permanent_failures is True
        assert config.storage_key == "pending_orders"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"initial_delay": -1.0},
            {"initial_delay": 10.0, "max_delay": 5.0},
            {"sync_interval": 0},
            {"connectivity_check_interval": -5},
            {"storage_key": ""},
        ],
    )
    def test_invalid_values(self, kwargs: dict[str, object]) -> None:
        """Nonsensical settings are rejected."""
        with pytest.raises(ValueError):
            QueueConfig(**kwargs)  # type: ignore[arg-type]
