"""Helpers shared by the queue commands."""

from __future__ import annotations

import logging
import sys
from typing import Any

import click

from orderqueue.client.api import APIError
from orderqueue.client.cli.config import get_queue_config, get_store_path
from orderqueue.client.queue import (
    ConnectivityMonitor,
    ConsumptionRecorder,
    MutationStore,
    OfflineOrderQueue,
    OrderStore,
    PersistenceError,
)
from orderqueue.core.config import QueueConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool) -> None:
    """Attach a stderr handler to the orderqueue logger."""
    root_logger = logging.getLogger("orderqueue")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    # Replace handlers bound to a previous sys.stderr
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)


class UnconfiguredOrderStore:
    """Order store used by commands that never talk to the server."""

    async def submit_create(self, payload: Any) -> str:
        raise APIError("Order store is not configured")

    async def submit_edit(self, target_id: str, payload: Any) -> None:
        raise APIError("Order store is not configured")


def open_store() -> MutationStore:
    """Open the durable store, exiting with a message on failure."""
    config = get_queue_config()
    try:
        return MutationStore(get_store_path(), storage_key=config.storage_key)
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def open_queue(
    store: MutationStore,
    order_store: OrderStore | None = None,
    recorder: ConsumptionRecorder | None = None,
    connectivity: ConnectivityMonitor | None = None,
    config: QueueConfig | None = None,
) -> OfflineOrderQueue:
    """Build a queue over ``store``.

    Without an order store the queue is opened offline, so nothing is ever
    submitted. ``config`` defaults to the "queue" section of the config file.
    """
    if order_store is None:
        order_store = UnconfiguredOrderStore()
        connectivity = ConnectivityMonitor(initially_online=False)
    return OfflineOrderQueue(
        store,
        order_store=order_store,
        recorder=recorder,
        connectivity=connectivity,
        config=config or get_queue_config(),
    )
