"""Command implementations for CLI."""

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn

from cirrus.config import ConfigManager, TOKEN_ENV_VAR
from cirrus.engine.controller import ServerController
from cirrus.errors import CirrusError
from cirrus.models.record import ServerRecord
from cirrus.models.server import ServerSpec
from cirrus.providers.cloudscale import CloudscaleClient
from cirrus.store import RecordStore
from cirrus.utils.logging import setup_logging


console = Console()

T = TypeVar("T")


class Workspace:
    """Loaded configuration plus the client, controller and store built from it."""

    def __init__(self, config_manager: ConfigManager, client: CloudscaleClient, store: RecordStore):
        """Initialize workspace."""
        self.config_manager = config_manager
        self.client = client
        self.store = store
        self.controller = ServerController(client, config_manager.config.wait)

    @classmethod
    async def open(cls, config_dir: Path) -> "Workspace":
        """Load configuration and connect to the API."""
        config_manager = ConfigManager(config_dir)
        await config_manager.load()

        config = config_manager.config
        setup_logging(config.log_level)

        if not config.api.token:
            raise CirrusError(f"No API token configured; set api.token or {TOKEN_ENV_VAR}")

        client = CloudscaleClient(
            token=config.api.token,
            base_url=config.api.url,
            timeout=config.api.timeout,
        )

        state_dir = Path(config.state_dir)
        if not state_dir.is_absolute():
            state_dir = config_manager.config_dir / state_dir

        return cls(config_manager, client, RecordStore(state_dir))

    async def close(self) -> None:
        """Close the API client."""
        await self.client.close()

    def spec(self, name: str) -> ServerSpec:
        """Get a configured server spec or fail."""
        spec = self.config_manager.get_server_spec(name)
        if spec is None:
            raise CirrusError(f"Server {name} not found in configuration")
        return spec

    async def record(self, name: str) -> ServerRecord:
        """Get the saved record of a created server or fail."""
        record = await self.store.load(name)
        if record is None or not record.exists:
            raise CirrusError(f"Server {name} has not been created")
        return record


def _with_workspace(config_dir: Path, action: Callable[[Workspace], Awaitable[T]]) -> T:
    """Run an async action against a freshly opened workspace."""

    async def runner():
        workspace = await Workspace.open(config_dir)
        try:
            return await action(workspace)
        finally:
            await workspace.close()

    return asyncio.run(runner())


@contextmanager
def _progress(description: str, quiet: bool):
    """Show a spinner labelled with ``description`` while the block runs."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        disable=quiet,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=None)

        yield progress

        progress.update(task, completed=True)


def show_record(name: str, record: ServerRecord):
    """Print a server record as a table."""
    table = Table(title=f"Server {name}", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    table.add_row("ID", record.id or "[dim]absent[/dim]")
    table.add_row("Status", _status_text(record.status))
    table.add_row("Desired state", record.state or "-")
    table.add_row("Flavor", record.flavor or "-")
    table.add_row("Image", record.image or "-")
    table.add_row("IPv4", record.ipv4_address or "-")
    table.add_row("IPv6", record.ipv6_address or "-")
    table.add_row("Private IPv4", record.ipv4_private_address or "-")
    table.add_row("Private IPv6", record.ipv6_private_address or "-")
    for volume in record.volumes:
        table.add_row("Volume", f"{volume.type} {volume.device_path} ({volume.size_gb} GB)")
    for fingerprint in record.ssh_fingerprints:
        table.add_row("SSH fingerprint", fingerprint)

    console.print(table)


def _status_text(status: Optional[str]) -> str:
    if status is None:
        return "-"
    color = {"running": "green", "stopped": "yellow", "changing": "blue"}.get(status, "red")
    return f"[{color}]{status}[/{color}]"


def create_server(config_dir: Path, name: str, quiet: bool = False):
    """Create a configured server and wait until it runs."""

    async def action(workspace: Workspace):
        spec = workspace.spec(name)
        existing = await workspace.store.load(name)
        if existing is not None and existing.exists:
            raise CirrusError(f"Server {name} already exists ({existing.id})")

        record = ServerRecord()
        try:
            with _progress(f"Creating server {name}...", quiet):
                await workspace.controller.create(spec, record)
        finally:
            await workspace.store.save(name, record)
        return record

    record = _with_workspace(config_dir, action)
    if not quiet:
        console.print(f"[green]✓[/green] Server {name} created ({record.id})")
        show_record(name, record)


def read_server(config_dir: Path, name: str):
    """Refresh and show a server."""

    async def action(workspace: Workspace):
        record = await workspace.record(name)
        await workspace.controller.read(record)
        await workspace.store.save(name, record)
        return record

    record = _with_workspace(config_dir, action)
    if not record.exists:
        console.print(f"[yellow]Server {name} no longer exists[/yellow]")
    else:
        show_record(name, record)


def update_server(config_dir: Path, name: str, quiet: bool = False):
    """Apply the configured power state of a server."""

    async def action(workspace: Workspace):
        spec = workspace.spec(name)
        record = await workspace.record(name)
        try:
            with _progress(f"Updating server {name}...", quiet):
                await workspace.controller.update(record, spec)
        finally:
            await workspace.store.save(name, record)
        return record

    record = _with_workspace(config_dir, action)
    if not quiet:
        console.print(f"[green]✓[/green] Server {name} updated")
        show_record(name, record)


def delete_server(config_dir: Path, name: str, quiet: bool = False):
    """Delete a server."""

    async def action(workspace: Workspace):
        record = await workspace.record(name)
        with _progress(f"Deleting server {name}...", quiet):
            await workspace.controller.delete(record)
        await workspace.store.save(name, record)

    _with_workspace(config_dir, action)
    if not quiet:
        console.print(f"[green]✓[/green] Server {name} deleted")


def list_servers(config_dir: Path):
    """List configured servers with their saved records."""

    async def action(workspace: Workspace):
        return workspace.config_manager.servers, await workspace.store.load_all()

    specs, records = _with_workspace(config_dir, action)

    table = Table(title="Servers")
    table.add_column("Name", style="cyan")
    table.add_column("ID", style="dim")
    table.add_column("Status")
    table.add_column("Flavor", style="magenta")
    table.add_column("Image")
    table.add_column("IPv4")

    for name in sorted(set(specs) | set(records)):
        spec = specs.get(name)
        record = records.get(name)
        table.add_row(
            name,
            record.id if record and record.id else "-",
            _status_text(record.status if record else None),
            (record.flavor if record else None) or (spec.flavor if spec else "-"),
            (record.image if record else None) or (spec.image if spec else "-"),
            (record.ipv4_address if record else None) or "-",
        )

    console.print(table)


def validate_config(config_dir: Path):
    """Validate configuration files without contacting the API."""
    config_manager = ConfigManager(config_dir)
    asyncio.run(config_manager.load())

    if config_manager.errors:
        console.print("[red]✗[/red] Configuration has errors:")
        for source, error in config_manager.errors.items():
            console.print(f"  [red]•[/red] {source}: {error}")
        raise CirrusError(f"{len(config_manager.errors)} invalid server definition(s)")

    console.print(
        f"[green]✓[/green] Configuration is valid "
        f"({len(config_manager.servers)} server(s))"
    )
