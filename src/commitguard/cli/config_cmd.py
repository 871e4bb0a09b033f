"""commitguard config command."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from commitguard.core.config import load_config
from commitguard.core.errors import ConfigError
from commitguard.core.output import console, print_config


@click.command()
@click.option("--target", "-t", "target", default=".", help="Project directory (default: current dir)")
def config(target: str):
    """Show the effective configuration (file + environment)."""
    try:
        effective = load_config(Path(target).resolve())
    except ConfigError as exc:
        console.print(f"\n  [red]{exc}[/red]\n")
        sys.exit(1)
    console.print()
    print_config(effective)
    console.print()
