"""Registry and probe CLI commands - list, scan."""
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sctercset.cli_support import handle_cli_error, iter_readings, print_info, resolve_config
from sctercset.core.errors import SctercsetError
from sctercset.core.registry import DriveRegistry

# Module-level console instance (will be set by register function)
console: Console = Console()


def _load_registry(registry_path: Path, verbose: bool) -> DriveRegistry:
    try:
        return DriveRegistry(registry_path, read_only=True)
    except SctercsetError as e:
        handle_cli_error(e, console, verbose)


def list_drives(
    registry: Optional[Path] = typer.Option(None, "--registry", "-r", help="Drive registry CSV file"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="sctercset.yml config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Show the drive registry and which drives 'run' will act on."""
    config = resolve_config(console, config_path, registry, verbose)
    drive_registry = _load_registry(config.registry_path, verbose)

    if not len(drive_registry):
        print_info(console, f"Registry {config.registry_path} is empty. Run 'sctercset run' to register drives.")
        return

    table = Table(title=f"Drive registry ({config.registry_path})", show_header=True, header_style="bold")
    table.add_column("Serial", style="cyan")
    table.add_column("SCT ERC support")
    table.add_column("is_raid_disk")
    table.add_column("On next run")

    for row in drive_registry:
        if row.is_raid_member:
            plan = "[green]set SCT ERC[/green]" if row.supports_fast_recovery == "yes" else "[green]set SCSI timeout[/green]"
        else:
            plan = "[dim]no changes[/dim]"
        table.add_row(escape(row.serial), escape(row.supports_fast_recovery), escape(row.raid_membership), plan)

    console.print(table)
    console.print("[dim]'On next run' assumes SCT ERC support has not changed since the drive was registered.[/dim]")


def scan(
    devices: Optional[List[str]] = typer.Argument(None, help="Devices to probe"),
    registry: Optional[Path] = typer.Option(None, "--registry", "-r", help="Drive registry CSV file"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="sctercset.yml config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Probe drives and show their SCT ERC status without changing anything."""
    config = resolve_config(console, config_path, registry, verbose)
    drive_registry = _load_registry(config.registry_path, verbose)

    table = Table(title="Detected drives", show_header=True, header_style="bold")
    table.add_column("Device", style="cyan")
    table.add_column("Serial")
    table.add_column("SCT ERC support")
    table.add_column("SCT ERC timeout", justify="right")
    table.add_column("is_raid_disk")

    found = 0
    for reading in iter_readings(config, devices):
        row = drive_registry.get(reading.serial) if reading.serial else None
        table.add_row(
            reading.device_id,
            escape(reading.serial) or "[dim]none[/dim]",
            reading.support_flag,
            escape(reading.timeout_display),
            escape(row.raid_membership) if row else "[dim]not registered[/dim]",
        )
        found += 1

    if not found:
        print_info(console, "No drives with SMART support found")
        return

    console.print(table)


def register_registry_commands(app: typer.Typer, shared_console: Console):
    """Register list and scan with the main Typer app."""
    global console
    console = shared_console

    app.command("list")(list_drives)
    app.command()(scan)
