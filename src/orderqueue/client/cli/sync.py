"""Sync commands for the orderqueue CLI.

Commands:
- sync: Run one pass against the order store
- retry: Reset failed mutations and run a pass
- run: Keep syncing in the foreground until interrupted
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys

import click

from orderqueue.client.api import OrderStoreClient
from orderqueue.client.cli.common import open_queue, open_store
from orderqueue.client.cli.config import get_queue_config, get_server_config
from orderqueue.client.cli.queue import echo_status
from orderqueue.client.queue import ConnectivityMonitor, PersistenceError, QueueStatus
from orderqueue.core.config import ServerConfig

logger = logging.getLogger(__name__)


def _require_server_config() -> ServerConfig:
    server_config = get_server_config()
    if server_config is None:
        click.echo(
            "Error: Order store not configured. Run 'orderqueue configure' first.",
            err=True,
        )
        sys.exit(1)
    return server_config


async def _sync_once(server_config: ServerConfig, reset_failed: bool) -> QueueStatus | None:
    store = open_store()
    try:
        async with OrderStoreClient(server_config) as client:
            connectivity = ConnectivityMonitor(probe=client.health_check, initially_online=False)
            queue = open_queue(store, order_store=client, recorder=client, connectivity=connectivity)
            if not await connectivity.check():
                return None
            if reset_failed:
                reset = await queue.retry_failed()
                click.echo(f"Reset {reset} failed mutation(s)")
            else:
                await queue.sync_now()
            return queue.status()
    finally:
        store.close()


@click.command()
def sync() -> None:
    """Submit eligible queued mutations once."""
    server_config = _require_server_config()
    try:
        result = asyncio.run(_sync_once(server_config, reset_failed=False))
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if result is None:
        click.echo("Order store unreachable, nothing submitted.", err=True)
        sys.exit(2)
    echo_status(result)


@click.command()
def retry() -> None:
    """Give failed mutations a new attempt budget and submit them."""
    server_config = _require_server_config()
    try:
        result = asyncio.run(_sync_once(server_config, reset_failed=True))
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if result is None:
        click.echo("Order store unreachable, nothing submitted.", err=True)
        sys.exit(2)
    echo_status(result)


async def _run_forever(server_config: ServerConfig, stop: asyncio.Event | None = None) -> None:
    """Sync until ``stop`` is set (SIGINT/SIGTERM when not given)."""
    if stop is None:
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            # Not available on Windows event loops
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(sig, stop.set)

    queue_config = get_queue_config()
    store = open_store()
    try:
        async with OrderStoreClient(server_config) as client:
            connectivity = ConnectivityMonitor(
                probe=client.health_check,
                check_interval=queue_config.connectivity_check_interval,
                initially_online=False,
            )
            queue = open_queue(
                store,
                order_store=client,
                recorder=client,
                connectivity=connectivity,
                config=queue_config,
            )
            unsubscribe = queue.subscribe(echo_status)
            queue.start()
            try:
                await stop.wait()
            finally:
                unsubscribe()
                queue.destroy()
                await queue.wait_idle()
    finally:
        store.close()


@click.command()
def run() -> None:
    """Sync continuously until interrupted (Ctrl+C)."""
    server_config = _require_server_config()
    click.echo(f"Syncing queue with {server_config.server_url} (Ctrl+C to stop)")
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_run_forever(server_config))
    click.echo("Stopped. Queued mutations stay persisted.")
