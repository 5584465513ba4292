"""
Report generation functionality for site content migration
"""

from __future__ import annotations

import datetime
import os
from typing import Any

import click
import yaml

from site_migrator.core.state import MigrationState
from site_migrator.types import OutcomeStatus
from site_migrator.utils.logging import logger

REPORT_FILENAME = "migration_report.yaml"


def create_output_directory(base_dir: str = "migration_output") -> str:
    """Create the timestamped output directory for this migration run."""
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    run_output_dir = os.path.join(base_dir, f"run_{timestamp}")

    os.makedirs(run_output_dir, exist_ok=True)
    os.makedirs(os.path.join(run_output_dir, "list_logs"), exist_ok=True)

    logger.info(f"Created output directory structure at {run_output_dir}")
    return run_output_dir


def build_report(
    state: MigrationState,
    dry_run: bool = False,
    source: str | None = None,
    destination: str | None = None,
) -> dict[str, Any]:
    """Build the report mapping for a finished migration pass."""
    summary = dict(state.summary)
    for status in OutcomeStatus:
        summary[f"lists_{status.value}"] = len(state.with_status(status))

    return {
        "migration_summary": {
            "started_at": state.started_at.isoformat() if state.started_at else None,
            "finished_at": state.finished_at.isoformat() if state.finished_at else None,
            "duration_seconds": round(state.duration, 3),
            "dry_run": dry_run,
            "source": source,
            "destination": destination,
            **summary,
        },
        "lists": [
            outcome.to_dict()
            for outcome in sorted(state.outcomes.values(), key=lambda o: o.title)
        ],
    }


def generate_report(
    state: MigrationState,
    output_dir: str,
    dry_run: bool = False,
    source: str | None = None,
    destination: str | None = None,
) -> str:
    """Write ``migration_report.yaml`` into the run output directory.

    Returns:
        The path of the written report.
    """
    report = build_report(state, dry_run=dry_run, source=source, destination=destination)
    os.makedirs(output_dir, exist_ok=True)
    report_path = os.path.join(output_dir, REPORT_FILENAME)

    with open(report_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)

    logger.info(f"Migration report written to {report_path}")
    return report_path


def print_summary(state: MigrationState, dry_run: bool = False, report_file: str | None = None) -> None:
    """Print a summary of the migration pass to the console."""
    summary = state.summary
    title = "DRY RUN SUMMARY" if dry_run else "MIGRATION SUMMARY"
    verb = "that would be " if dry_run else ""

    click.echo("\n" + "=" * 80)
    click.echo(title)
    click.echo("=" * 80)
    click.echo(f"Lists processed: {summary['lists_processed']}")
    for status in OutcomeStatus:
        click.echo(f"  {status.value}: {len(state.with_status(status))}")
    click.echo(f"Records {verb}inserted: {summary['records_inserted']}")
    click.echo(f"Records skipped: {summary['records_skipped']}")
    click.echo(f"Files {verb}copied: {summary['files_copied']}")
    click.echo(f"Folders {verb}created: {summary['folders_created']}")
    if summary["invariant_violations"]:
        click.echo(f"Id sequence drift detected: {summary['invariant_violations']} records")

    failed = state.with_status(OutcomeStatus.FAILED)
    if failed:
        click.echo("\nFailed lists:")
        for outcome in failed:
            click.echo(f"  - {outcome.title}: {outcome.reason}")

    if report_file:
        click.echo(f"\nDetailed report saved to {report_file}")
    click.echo("=" * 80)
    if dry_run:
        click.echo("\nTo perform the actual migration, run again without --dry-run")
