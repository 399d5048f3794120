#!/usr/bin/env python3
"""
TripCode Client Node - command line interface

Commands:
- run: start the node and serve its HTTP API
- status: show the connection and validator status of a running node
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Dict

import click
import requests
from rich.console import Console
from rich.table import Table

from tripnode.core.config import NodeConfig
from tripnode.core.exceptions import ConfigurationError
from tripnode.core.logging_config import setup_logging

logger = logging.getLogger(__name__)

console = Console()

DEFAULT_NODE_URL = "http://localhost:3100"
DEFAULT_TIMEOUT = 10.0


def _cli_fail(exc: Exception, exit_code: int = 1) -> None:
    """Centralized CLI error handler for consistent messaging."""
    logger.error("CLI error: %s", exc, extra={"event": "cli.error"})
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


@click.group()
def cli() -> None:
    """TripCode client node."""


@cli.command("run")
def run_node() -> None:
    """Start the node and serve its API on NODE_HOST:NODE_PORT."""
    from tripnode.api import create_app
    from tripnode.node import ClientNode

    try:
        config = NodeConfig.from_env()
    except ConfigurationError as exc:
        _cli_fail(exc)
        return

    setup_logging(
        name="tripnode",
        log_file=config.log_file,
        level=config.log_level,
        environment=config.environment,
    )

    node = ClientNode.from_config(config)
    app = create_app(node)
    node.start()
    try:
        app.run(host=config.node_host, port=config.node_port, threaded=True, use_reloader=False)
    finally:
        node.stop()


def _fetch(node_url: str, path: str, timeout: float) -> Dict[str, Any]:
    response = requests.get(f"{node_url.rstrip('/')}{path}", timeout=timeout)
    response.raise_for_status()
    return response.json()


@cli.command("status")
@click.option("--node-url", default=DEFAULT_NODE_URL, show_default=True, help="Base URL of a running node")
@click.option("--timeout", default=DEFAULT_TIMEOUT, show_default=True, type=float, help="Request timeout in seconds")
def show_status(node_url: str, timeout: float) -> None:
    """Show seed node connection and validator status."""
    try:
        status = _fetch(node_url, "/p2p/status", timeout)
        validators = _fetch(node_url, "/validators", timeout)
    except (requests.RequestException, ValueError) as exc:
        _cli_fail(exc)
        return

    connection = Table(title="Seed node connection")
    connection.add_column("Field")
    connection.add_column("Value")
    for key in ("nodeAddress", "seedNodeAddress", "connected", "registrationStatus", "lastPingTime"):
        connection.add_row(key, str(status.get(key)))
    console.print(connection)

    table = Table(title=f"Validators ({validators.get('active', 0)}/{validators.get('total', 0)} active)")
    table.add_column("Address")
    table.add_column("Responding")
    table.add_column("Last seen")
    table.add_column("Version")
    for peer in validators.get("validators", []):
        table.add_row(
            str(peer.get("address")),
            "[green]yes[/]" if peer.get("isResponding") else "[red]no[/]",
            str(peer.get("lastSeen") or "-"),
            str(peer.get("version") or "-"),
        )
    console.print(table)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
