"""The run command - register new drives and set RAID timeouts."""
import shutil
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from sctercset.cli_support import (
    handle_cli_error,
    is_mock,
    iter_readings,
    print_error,
    print_info,
    print_success,
    print_warning,
    resolve_config,
)
from sctercset.core.errors import SctercsetError
from sctercset.core.lock import registry_lock
from sctercset.core.logger import configure_logging
from sctercset.core.reconciler import DriveReconciler, DriveResult, Outcome
from sctercset.core.registry import DriveRegistry
from sctercset.services.timeouts import TimeoutApplicator

# Module-level console instance (will be set by register function)
console: Console = Console()


def _print_result(result: DriveResult) -> None:
    """Per-drive progress line(s) as each drive is reconciled."""
    reading = result.reading
    serial = escape(reading.serial)

    if result.outcome == Outcome.NEW:
        console.print("[bold yellow]----- New drive detected -----[/bold yellow]")
        console.print(f"    Device          : {reading.device_id}")
        console.print(f"    Serial          : {serial}")
        console.print(f"    SCT ERC support : {reading.support_flag}")
        console.print(f"    SCT ERC timeout : {escape(reading.timeout_display)}")
    elif result.outcome == Outcome.APPLIED:
        print_success(console, f"{result.action.description} on {reading.device_id} (Serial: {serial})")
    elif result.outcome == Outcome.FAILED:
        print_error(console, f"{result.action.description} on {reading.device_id} (Serial: {serial}) failed")
    elif result.outcome == Outcome.UNCHANGED:
        print_info(
            console,
            f"Making no changes to {reading.device_id} (Serial: {serial}), "
            "it is not marked as forming part of a RAID array.",
        )


def _print_new_drives_banner(registry_path: Path, dry_run: bool = False) -> None:
    if dry_run:
        body = (
            "New drives were detected.\n"
            f"This was a dry run, so they were not added to {registry_path}. "
            "Re-run without --dry-run (and with SCTERCSET_MOCK unset) to register them."
        )
    else:
        body = (
            "New drives were detected.\n"
            f"Please change the is_raid_disk value in {registry_path} to yes for drives "
            "that form part of a RAID array, then re-run sctercset to set SCT ERC / SCSI "
            "timeouts for them."
        )
    console.print(Panel(body, title="New drives", border_style="yellow"))


def run(
    devices: Optional[List[str]] = typer.Argument(
        None, help="Devices to process (default: /dev/sd[a-z] and /dev/sd[a-z][a-z])"
    ),
    registry: Optional[Path] = typer.Option(None, "--registry", "-r", help="Drive registry CSV file"),
    config_path: Optional[str] = typer.Option(None, "--config", "-c", help="sctercset.yml config file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would change without touching drives or the registry"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also log to this file ('-' for /var/log/sctercset/sctercset.log)"),
):
    """Register new drives and set RAID timeouts on drives marked is_raid_disk=yes.

    Drives seen for the first time are added to the registry as
    is_raid_disk=unknown. Drives marked yes get SCT ERC set to 7 seconds, or
    the linux SCSI command timeout raised to 180 seconds when the drive has
    no SCT ERC support.
    """
    configure_logging(verbose=verbose, log_file=log_file)

    config = resolve_config(console, config_path, registry, verbose)
    mock = dry_run or is_mock()

    if not mock and shutil.which(config.smartctl) is None:
        print_warning(console, f"{config.smartctl} not found; no drives can be probed")

    applicator = TimeoutApplicator(
        smartctl=config.smartctl,
        sysfs_block_root=config.sysfs_block_root,
        mock=mock,
        timeout=config.command_timeout,
    )

    try:
        if mock:
            drive_registry = DriveRegistry(config.registry_path, read_only=True)
            report = _reconcile(drive_registry, applicator, config, devices)
        else:
            with registry_lock(config.registry_path):
                drive_registry = DriveRegistry(config.registry_path)
                report = _reconcile(drive_registry, applicator, config, devices)
    except SctercsetError as e:
        handle_cli_error(e, console, verbose)

    if not report.results:
        print_info(console, "No drives with SMART support found")

    if report.new_drives:
        _print_new_drives_banner(config.registry_path, dry_run=mock)


def _reconcile(drive_registry, applicator, config, devices):
    reconciler = DriveReconciler(
        drive_registry,
        applicator,
        fast_recovery_centiseconds=config.fast_recovery_centiseconds,
        host_timeout_seconds=config.host_timeout_seconds,
        on_result=_print_result,
    )
    return reconciler.reconcile(iter_readings(config, devices))


def register_run_commands(app: typer.Typer, shared_console: Console):
    """Register the run command with the main Typer app."""
    global console
    console = shared_console

    app.command()(run)
