"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from typing import Callable

import click

import site_migrator
from site_migrator.exceptions import (
    ConfigError,
    MigratorError,
    RemoteUnavailableError,
)
from site_migrator.utils.logging import log_with_context

# Create logger instance
logger = logging.getLogger("site_migrator")


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across multiple subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Path to config YAML",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=site_migrator.__version__, prog_name="site-migrator")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Site content migration tool: lists, records and document libraries.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Handle different types of exceptions.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, ConfigError):
        log_with_context(logging.ERROR, f"Configuration error: {e}")
        log_with_context(
            logging.INFO,
            "Run 'site-migrator init-config' to create a config file with default settings.",
        )
    elif isinstance(e, RemoteUnavailableError):
        log_with_context(logging.ERROR, f"Content store unavailable: {e}")
        log_with_context(
            logging.INFO,
            "This is likely a temporary issue. Re-running the migration resumes where it stopped.",
        )
    elif isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"File not found: {e}")
        log_with_context(
            logging.INFO,
            "Please check that all required files exist and paths are correct.",
        )
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Migration interrupted by user.")
        log_with_context(
            logging.INFO,
            "Re-running the migration adds only what is still missing.",
        )
    else:
        log_with_context(logging.ERROR, f"Migration failed: {e}", exc_info=True)
