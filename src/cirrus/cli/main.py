"""Main CLI implementation using Typer."""

from pathlib import Path
from typing import Callable, Any

import typer
from rich.console import Console
from rich.markup import escape

from cirrus.cli.commands import (
    create_server,
    read_server,
    update_server,
    delete_server,
    list_servers,
    validate_config,
)
from cirrus.errors import CirrusError


# Create Typer app
app = typer.Typer(
    name="cirrusctl",
    help="Cirrus - declarative lifecycle management for cloud servers",
    add_completion=False,
)

# Console for rich output
console = Console()

CONFIG_OPTION = typer.Option(
    Path("./configs"), "--config-dir", "-c", help="Configuration directory"
)


def _run_cli_command(handler: Callable[..., Any], config_dir: Path, **kwargs: Any):
    """Helper to run a CLI command with error handling."""
    try:
        handler(config_dir, **kwargs)
    except (CirrusError, FileNotFoundError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


@app.command("create")
def create_command(
    name: str = typer.Argument(..., help="Server name"),
    config_dir: Path = CONFIG_OPTION,
):
    """Create a server and wait until it is running."""
    _run_cli_command(create_server, config_dir=config_dir, name=name)


@app.command("read")
def read_command(
    name: str = typer.Argument(..., help="Server name"),
    config_dir: Path = CONFIG_OPTION,
):
    """Refresh a server from the API and show it."""
    _run_cli_command(read_server, config_dir=config_dir, name=name)


@app.command("update")
def update_command(
    name: str = typer.Argument(..., help="Server name"),
    config_dir: Path = CONFIG_OPTION,
):
    """Apply the configured power state of a server."""
    _run_cli_command(update_server, config_dir=config_dir, name=name)


@app.command("delete")
def delete_command(
    name: str = typer.Argument(..., help="Server name"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete without confirmation"
    ),
    config_dir: Path = CONFIG_OPTION,
):
    """Delete a server."""
    if not force:
        confirm = typer.confirm(f"Delete server {name}?")
        if not confirm:
            raise typer.Abort()
    _run_cli_command(delete_server, config_dir=config_dir, name=name)


@app.command("list")
def list_command(
    config_dir: Path = CONFIG_OPTION,
):
    """List configured servers."""
    _run_cli_command(list_servers, config_dir=config_dir)


# Config subcommands
config_app = typer.Typer(help="Configuration commands")
app.add_typer(config_app, name="config")


@config_app.command("validate")
def config_validate_command(
    config_dir: Path = CONFIG_OPTION,
):
    """Validate configuration files."""
    _run_cli_command(validate_config, config_dir=config_dir)


def main():
    """Main entry point for CLI."""
    app()
