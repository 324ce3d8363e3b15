"""Command-line interface for orderqueue.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store the order store URL and token
- enqueue: Queue an order creation or edit
- list: Show queued mutations
- status: Show queue counters
- remove: Cancel a queued mutation
- clear: Delete every queued mutation
- sync: Submit eligible mutations once
- retry: Reset failed mutations and submit them
- run: Sync continuously in the foreground
"""

from __future__ import annotations

import click

from orderqueue.client.cli.common import setup_logging
from orderqueue.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_server_config,
    get_store_path,
    load_config,
    save_config,
)
from orderqueue.client.cli.configure import configure
from orderqueue.client.cli.queue import clear, enqueue, list_cmd, remove, status
from orderqueue.client.cli.sync import retry, run, sync


@click.group()
@click.version_option(package_name="orderqueue")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """OrderQueue - offline-resilient order submission queue."""
    setup_logging(verbose)


# Setup
cli.add_command(configure)

# Queue commands
cli.add_command(enqueue)
cli.add_command(list_cmd)
cli.add_command(status)
cli.add_command(remove)
cli.add_command(clear)

# Sync commands
cli.add_command(sync)
cli.add_command(retry)
cli.add_command(run)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "get_server_config",
    "get_store_path",
    "load_config",
    "save_config",
]
