"""Shared utilities for sctercset CLI modules."""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, Optional

import typer
from rich.console import Console

from sctercset.core.config import SctercsetConfig, load_config
from sctercset.core.errors import SctercsetError
from sctercset.discovery.devices import DeviceEnumerator
from sctercset.discovery.smartctl import SmartctlProbe
from sctercset.models.drive import DriveReading


def is_mock() -> bool:
    """Return True when CLI runs in mock mode."""
    return os.environ.get("SCTERCSET_MOCK", "").lower() in ("1", "true")


def resolve_config(
    console: Console,
    config_path: Optional[str] = None,
    registry: Optional[Path] = None,
    verbose: bool = False,
) -> SctercsetConfig:
    """Load configuration, applying a --registry override."""
    try:
        config = load_config(config_path)
    except SctercsetError as e:
        handle_cli_error(e, console, verbose)

    if registry is not None:
        config.registry_path = Path(registry).expanduser()
    return config


def iter_readings(
    config: SctercsetConfig,
    devices: Optional[Iterable[str]] = None,
    probe: Optional[SmartctlProbe] = None,
) -> Iterator[DriveReading]:
    """Probe devices one at a time, yielding readings for those that answer."""
    enumerator = DeviceEnumerator(config.device_patterns)
    probe = probe or SmartctlProbe(config.smartctl, timeout=config.command_timeout)
    for device in enumerator.devices(devices):
        reading = probe.probe(device)
        if reading is not None:
            yield reading


def handle_cli_error(
    e: Exception,
    console: Console,
    verbose: bool = False,
    exit_code: int = 1
) -> None:
    """Handle CLI errors with consistent formatting.

    Args:
        e: Exception to handle
        console: Rich console for output
        verbose: Show exception traceback if True
        exit_code: Exit code to use
    """
    console.print(f"[red]Error:[/red] {e}")
    if verbose:
        console.print_exception()
    raise typer.Exit(exit_code)


def print_success(console: Console, message: str, prefix: str = "✓") -> None:
    console.print(f"[green]{prefix}[/green] {message}")


def print_error(console: Console, message: str, prefix: str = "✗") -> None:
    console.print(f"[red]{prefix}[/red] {message}")


def print_warning(console: Console, message: str, prefix: str = "⚠") -> None:
    console.print(f"[yellow]{prefix}[/yellow] {message}")


def print_info(console: Console, message: str, prefix: str = "ℹ") -> None:
    console.print(f"[cyan]{prefix}[/cyan] {message}")
