"""Queue commands for the orderqueue CLI.

Commands:
- enqueue: Add an order creation or edit to the queue
- list: Show queued mutations
- status: Show queue counters
- remove: Cancel a queued mutation
- clear: Delete every queued mutation
"""

from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import IO

import click

from orderqueue.client.cli.common import open_queue, open_store
from orderqueue.client.queue import PersistenceError, QueueStatus
from orderqueue.core.types import MutationMode


def _format_time(timestamp: float | None) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def echo_status(status: QueueStatus) -> None:
    """Print a one-line status summary."""
    click.echo(
        f"{status.state.value}: {status.pending} pending, {status.failed} failed, "
        f"last sync {_format_time(status.last_sync_at)}"
    )


@click.command()
@click.argument("payload_file", type=click.File("r"))
@click.option(
    "--mode",
    type=click.Choice([m.value for m in MutationMode]),
    default=MutationMode.CREATE.value,
    show_default=True,
    help="Create a new order or edit an existing one.",
)
@click.option("--target-id", help="Remote order id (required with --mode edit).")
@click.option("--scope-id", help="Owning business id (defaults to payload businessId).")
def enqueue(
    payload_file: IO[str],
    mode: str,
    target_id: str | None,
    scope_id: str | None,
) -> None:
    """Queue the JSON order in PAYLOAD_FILE ('-' for stdin)."""
    try:
        payload = json.load(payload_file)
    except json.JSONDecodeError as e:
        click.echo(f"Error: invalid JSON payload: {e}", err=True)
        sys.exit(1)

    store = open_store()
    try:
        queue = open_queue(store)
        mutation_id = queue.enqueue(payload, mode, target_id=target_id, scope_id=scope_id)
    except (ValueError, PersistenceError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()
    click.echo(mutation_id)


@click.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print raw records as JSON.")
def list_cmd(as_json: bool) -> None:
    """Show queued mutations."""
    store = open_store()
    try:
        queue = open_queue(store)
        records = queue.list_pending()
        max_attempts = queue.config.max_attempts
    finally:
        store.close()

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return
    if not records:
        click.echo("Queue is empty.")
        return
    for record in records:
        state = "FAILED" if record.is_dead_lettered(max_attempts) else "pending"
        target = record.target_id or "-"
        line = (
            f"{record.id}  {record.mode.value:<6} target={target} "
            f"attempts={record.attempt_count}/{max_attempts} {state}"
        )
        if record.last_error:
            line += f"  ({record.last_error})"
        click.echo(line)


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Print status as JSON.")
def status(as_json: bool) -> None:
    """Show queue counters."""
    store = open_store()
    try:
        current = open_queue(store).status()
    finally:
        store.close()
    if as_json:
        click.echo(json.dumps(current.to_dict()))
    else:
        echo_status(current)


@click.command()
@click.argument("mutation_id")
def remove(mutation_id: str) -> None:
    """Cancel the queued mutation MUTATION_ID."""
    store = open_store()
    try:
        removed = open_queue(store).remove(mutation_id)
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()
    if not removed:
        click.echo(f"Error: no queued mutation {mutation_id}", err=True)
        sys.exit(1)
    click.echo(f"Removed {mutation_id}")


@click.command()
@click.confirmation_option(prompt="Delete every queued mutation? This cannot be undone.")
def clear() -> None:
    """Delete every queued mutation."""
    store = open_store()
    try:
        count = open_queue(store).clear()
    except PersistenceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()
    click.echo(f"Cleared {count} mutation(s)")
