"""Configure command for the orderqueue CLI."""

from __future__ import annotations

import click

from orderqueue.client.cli.config import get_config_file, load_config, save_config
from orderqueue.core.config import ServerConfig


@click.command()
@click.option("--server-url", required=True, help="Base URL of the order store.")
@click.option("--token", required=True, help="Bearer token for the order store.")
@click.option("--timeout", type=float, default=30.0, show_default=True, help="Request timeout in seconds.")
@click.option("--insecure", is_flag=True, help="Skip SSL certificate verification.")
def configure(server_url: str, token: str, timeout: float, insecure: bool) -> None:
    """Store the order store connection settings."""
    server = ServerConfig(server_url=server_url, token=token, timeout=timeout, verify_ssl=not insecure)
    if not server.is_secure:
        click.echo("Warning: the server URL is not HTTPS, the token will be sent unencrypted.", err=True)

    config = load_config()
    config["server_url"] = server.server_url
    config["token"] = server.token
    config["timeout"] = server.timeout
    config["verify_ssl"] = server.verify_ssl
    save_config(config)
    click.echo(f"Configuration saved to {get_config_file()}")
