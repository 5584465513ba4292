"""
Command-line entry point for the site content migration tool.

Importing this module registers every subcommand on the ``cli`` group.
"""

from site_migrator.cli import config_cmd, erase_cmd, migrate_cmd  # noqa: F401
from site_migrator.cli.common import cli, handle_exception

__all__ = ["cli", "handle_exception", "main"]


def main() -> None:
    """Main entry point for the ``site-migrator`` console script."""
    cli()
