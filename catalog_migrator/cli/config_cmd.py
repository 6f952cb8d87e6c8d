"""CLI command handler for the init-config subcommand."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from catalog_migrator.cli.common import cli
from catalog_migrator.core.config import create_default_config


@cli.command("init-config")
@click.option(
    "--output",
    default="config.yaml",
    show_default=True,
    help="Where to write the default configuration",
)
def init_config(output: str) -> None:
    """Write a default configuration file (never overwrites)."""
    if not create_default_config(Path(output)):
        click.echo(f"Config file not created: {output}", err=True)
        sys.exit(1)
    click.echo(f"Default configuration written to {output}")
