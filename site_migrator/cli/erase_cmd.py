"""CLI command handler for emptying a destination list."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from site_migrator.cli.common import cli, common_options, handle_exception
from site_migrator.core.config import load_config
from site_migrator.core.eraser import erase_all_records
from site_migrator.exceptions import MigratorError
from site_migrator.providers.filesystem import DirectoryDestination
from site_migrator.utils.logging import setup_logger
from site_migrator.utils.retry import RetryingProvider

# ---------------------------------------------------------------------------
# erase subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--destination",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Path to the destination site directory",
)
@click.option("--list", "list_title", required=True, help="Title of the list to empty")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def erase(
    config: str,
    verbose: bool,
    destination: str,
    list_title: str,
    yes: bool,
) -> None:
    """Delete every record of one destination list.

    Used to reset a list before a clean re-migration.  Record ids are not
    reused by the destination, so a list emptied this way does not restart
    at id 1.

    Args:
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        destination: Path to the destination site directory.
        list_title: Title of the list to empty.
        yes: Skip confirmation prompt.
    """
    setup_logger(verbose)

    if not yes:
        if not click.confirm(
            f"This will permanently delete every record of '{list_title}'. Continue?"
        ):
            click.echo("Erase cancelled.")
            sys.exit(0)

    try:
        cfg = load_config(Path(config))
        store = RetryingProvider(
            DirectoryDestination(destination),
            max_retries=cfg.max_retries,
            retry_delay=cfg.retry_delay,
            max_delay=cfg.max_retry_delay,
        )
        handle = store.find_list(list_title)
        if handle is None:
            raise MigratorError(f"List '{list_title}' not found in {destination}")
        result = erase_all_records(
            store, handle, page_size=cfg.erase_page_size, show_progress=True
        )
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    click.echo(
        f"Deleted {result.records_deleted} records from '{list_title}' "
        f"({result.pages_fetched} pages)"
    )
