"""Configuration utilities for the orderqueue CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from orderqueue.core.config import QueueConfig, ServerConfig

CONFIG_DIR_ENV = "ORDERQUEUE_HOME"


def get_config_dir() -> Path:
    """Get the configuration directory for orderqueue.

    Returns:
        $ORDERQUEUE_HOME if set, otherwise ~/.orderqueue.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".orderqueue"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_store_path() -> Path:
    """Get the path to the durable queue database."""
    return get_config_dir() / "queue.db"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_server_config() -> ServerConfig | None:
    """Build the order store connection settings.

    Returns:
        ServerConfig if a server URL and token are configured, None otherwise.
    """
    config = load_config()
    if not config.get("server_url") or not config.get("token"):
        return None
    return ServerConfig(
        server_url=config["server_url"],
        token=config["token"],
        timeout=float(config.get("timeout", 30.0)),
        verify_ssl=bool(config.get("verify_ssl", True)),
    )


def get_queue_config() -> QueueConfig:
    """Build the queue tuning from the optional "queue" section."""
    section = load_config().get("queue") or {}
    return QueueConfig(**section)
