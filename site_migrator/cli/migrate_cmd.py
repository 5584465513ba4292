"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path

import click

from site_migrator.cli.common import cli, common_options, handle_exception
from site_migrator.cli.report import (
    create_output_directory,
    generate_report,
    print_summary,
)
from site_migrator.core.config import load_config
from site_migrator.core.migrator import SiteMigrator
from site_migrator.providers.filesystem import DirectoryDestination, ExportDirectorySource
from site_migrator.utils.logging import log_with_context, setup_logger

# Exit code for a pass in which at least one list failed
EXIT_LIST_FAILURES = 2


def log_startup_info(
    source: str, destination: str, config: str, dry_run: bool, workers: int
) -> None:
    """Log the parameters of this run."""
    log_with_context(logging.INFO, "Starting site content migration")
    log_with_context(logging.INFO, f"Source export: {source}")
    log_with_context(logging.INFO, f"Destination: {destination}")
    log_with_context(logging.INFO, f"Config: {config}")
    log_with_context(logging.INFO, f"Workers: {workers}")
    if dry_run:
        log_with_context(logging.INFO, "[DRY RUN] No changes will be made to the destination")


# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option(
    "--source",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Path to the source site export directory",
)
@click.option(
    "--destination",
    required=True,
    type=click.Path(file_okay=False),
    help="Path to the destination site directory",
)
@click.option(
    "--dry-run",
    "dry_run",
    is_flag=True,
    default=False,
    help="Log every write instead of performing it",
)
@click.option(
    "--workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of lists migrated in parallel (overrides max_workers)",
)
@click.option(
    "--output-dir",
    "output_dir",
    default="migration_output",
    show_default=True,
    help="Directory that receives the run logs and report",
)
def migrate(
    config: str,
    verbose: bool,
    source: str,
    destination: str,
    dry_run: bool,
    workers: int | None,
    output_dir: str,
) -> None:
    """Run one migration pass over every list of the source site.

    Re-running after an interrupted or partial pass only adds what is still
    missing in the destination.

    Args:
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        source: Path to the source site export.
        destination: Path to the destination site directory.
        dry_run: Log writes instead of performing them.
        workers: Override for the worker pool size.
        output_dir: Base directory for run logs and the report.
    """
    run_dir = create_output_directory(output_dir)
    setup_logger(verbose, run_dir)

    try:
        cfg = load_config(Path(config))
        if workers is not None:
            cfg = dataclasses.replace(cfg, max_workers=workers)
        log_startup_info(source, destination, config, dry_run, cfg.max_workers)
        log_with_context(logging.INFO, f"Output directory: {run_dir}")

        migrator = SiteMigrator(
            ExportDirectorySource(source),
            DirectoryDestination(destination),
            config=cfg,
            dry_run=dry_run,
            verbose=verbose,
            output_dir=run_dir,
        )
        state = migrator.run_migration()
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    report_file = generate_report(
        state, run_dir, dry_run=dry_run, source=source, destination=destination
    )
    print_summary(state, dry_run=dry_run, report_file=report_file)

    if state.has_failures:
        sys.exit(EXIT_LIST_FAILURES)
