"""CLI command handler for writing a default configuration file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from site_migrator.cli.common import cli
from site_migrator.core.config import create_default_config


@cli.command("init-config")
@click.option(
    "--output",
    default="config.yaml",
    show_default=True,
    help="Where to write the configuration file",
)
def init_config(output: str) -> None:
    """Write a configuration file with the default settings.

    An existing file is never overwritten.
    """
    if create_default_config(Path(output)):
        click.echo(f"Default configuration written to {output}")
    else:
        click.echo(f"Configuration not written: {output} already exists or is not writable")
        sys.exit(1)
