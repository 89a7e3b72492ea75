#!/usr/bin/env python3
"""sctercset CLI - SCT ERC / SCSI timeouts for RAID member drives."""

import typer
from rich.console import Console

from sctercset import __version__
from sctercset.cli_registry_commands import register_registry_commands
from sctercset.cli_run_commands import register_run_commands

app = typer.Typer(
    name="sctercset",
    help="""sctercset - keep RAID from kicking out slow-recovering drives

First run registers every drive in ~/scterc_set/scterc_conf.csv.
Mark RAID members with is_raid_disk=yes, then run again:
drives with SCT ERC get a 7 second error recovery limit,
drives without it get a 180 second linux SCSI timeout.

  sctercset scan     # Show drives and SCT ERC status
  sctercset run      # Register drives / apply timeouts
  sctercset list     # Show the registry
""",
    add_completion=False,
)

console = Console()


def version():
    """Show sctercset version."""
    console.print(f"sctercset v{__version__}")


register_run_commands(app, console)
register_registry_commands(app, console)
app.command()(version)

if __name__ == "__main__":
    app()
