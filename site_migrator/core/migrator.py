"""
Main migrator class for the site content migration tool
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any

from tqdm import tqdm

from site_migrator.core.config import MigrationConfig, should_process_list
from site_migrator.core.context import MigrationContext
from site_migrator.core.provisioner import ListProvisioner
from site_migrator.core.record_sync import RecordSynchronizer
from site_migrator.core.state import MigrationState
from site_migrator.core.tree_mirror import TreeMirror
from site_migrator.exceptions import MigrationCancelledError
from site_migrator.providers.dry_run import DryRunDestination
from site_migrator.types import ContentList, ListOutcome, ListType, OutcomeStatus
from site_migrator.utils.logging import close_handler, log_with_context, setup_list_logger
from site_migrator.utils.retry import RetryingProvider


class SiteMigrator:
    """Migrates every list and library of one site into the destination.

    Lists are independent units of work: each one runs on a bounded thread
    pool, and a failure in one list is recorded in its outcome without
    affecting the others.  ``cancel()`` (or Ctrl-C during ``run_migration``)
    stops in-flight lists at their next record/file boundary and marks lists
    that have not started as cancelled.
    """

    def __init__(
        self,
        source: Any,
        destination: Any,
        config: MigrationConfig | None = None,
        dry_run: bool = False,
        verbose: bool = False,
        output_dir: str | None = None,
        show_progress: bool = True,
    ):
        self.config = config or MigrationConfig()
        self.dry_run = dry_run
        self.output_dir = output_dir
        self.show_progress = show_progress

        retry_settings = {
            "max_retries": self.config.max_retries,
            "retry_delay": self.config.retry_delay,
            "max_delay": self.config.max_retry_delay,
        }
        wrapped_destination: Any = RetryingProvider(destination, **retry_settings)
        if dry_run:
            wrapped_destination = DryRunDestination(wrapped_destination)

        self.ctx = MigrationContext(
            source=RetryingProvider(source, **retry_settings),
            destination=wrapped_destination,
            config=self.config,
            dry_run=dry_run,
            verbose=verbose,
            output_dir=output_dir,
        )
        self.state = MigrationState()

    def cancel(self) -> None:
        """Request cooperative cancellation of the running pass."""
        if not self.ctx.cancelled:
            log_with_context(logging.WARNING, "Cancellation requested")
        self.ctx.cancel_event.set()

    def run_migration(self) -> MigrationState:
        """Run one migration pass over every source list.

        Returns:
            The MigrationState holding one outcome per source list.

        Raises:
            ProviderError: if the source's lists cannot be enumerated.
        """
        self.state.start()
        log_with_context(logging.INFO, f"{self.ctx.log_prefix}Starting migration pass")

        content_lists = self.ctx.source.list_all_lists()
        log_with_context(logging.INFO, f"Found {len(content_lists)} lists on the source site")

        to_migrate: list[ContentList] = []
        for content_list in content_lists:
            outcome = self._precheck(content_list)
            if outcome is not None:
                self.state.record(outcome)
            else:
                to_migrate.append(content_list)

        try:
            self._run_pool(to_migrate)
        finally:
            self.state.finish()

        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Migration pass finished in {self.state.duration:.1f}s: "
            f"{len(self.state.with_status(OutcomeStatus.SUCCEEDED))} succeeded, "
            f"{len(self.state.with_status(OutcomeStatus.FAILED))} failed",
        )
        return self.state

    def _precheck(self, content_list: ContentList) -> ListOutcome | None:
        """Return a skipped outcome for lists that are not migrated at all."""
        title = content_list.title
        if not should_process_list(title, self.config):
            log_with_context(
                logging.INFO,
                f"Skipping list '{title}' based on configuration",
            )
            return ListOutcome(
                title, content_list.list_type, OutcomeStatus.SKIPPED, "excluded by configuration"
            )
        if content_list.list_type is ListType.OTHER:
            log_with_context(
                logging.WARNING,
                f"Skipping list '{title}': unsupported template {content_list.base_template}",
            )
            return ListOutcome(
                title,
                content_list.list_type,
                OutcomeStatus.SKIPPED,
                f"unsupported template {content_list.base_template}",
            )
        return None

    def _run_pool(self, content_lists: list[ContentList]) -> None:
        if not content_lists:
            return

        executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="list-worker"
        )
        futures: dict[Future[ListOutcome], ContentList] = {
            executor.submit(self.migrate_list, content_list): content_list
            for content_list in content_lists
        }
        try:
            with tqdm(
                total=len(futures),
                desc="Migrating lists",
                unit="list",
                disable=not self.show_progress,
            ) as pbar:
                for future in as_completed(futures):
                    self.state.record(future.result())
                    pbar.update(1)
        except KeyboardInterrupt:
            log_with_context(logging.WARNING, "Migration interrupted by user, cancelling")
            self.cancel()
            self._drain(futures)
        finally:
            executor.shutdown(wait=True)

    def _drain(self, futures: dict[Future[ListOutcome], ContentList]) -> None:
        """Collect outcomes after cancellation, marking unstarted lists cancelled."""
        for future, content_list in futures.items():
            if future.cancel():
                self.state.record(self._cancelled(content_list, "not started"))
        for future in futures:
            if not future.cancelled():
                self.state.record(future.result())

    def _cancelled(self, content_list: ContentList, reason: str) -> ListOutcome:
        return ListOutcome(
            content_list.title, content_list.list_type, OutcomeStatus.CANCELLED, reason
        )

    def migrate_list(self, content_list: ContentList) -> ListOutcome:
        """Provision and migrate one list; never raises for list-level errors."""
        title = content_list.title
        if self.ctx.cancelled:
            return self._cancelled(content_list, "not started")

        handler = None
        try:
            if self.output_dir:
                handler = setup_list_logger(self.output_dir, title, self.ctx.verbose)
            log_with_context(
                logging.INFO,
                f"{self.ctx.log_prefix}Processing {content_list.list_type.value} '{title}'",
                list_title=title,
            )
            provisioner = ListProvisioner(self.ctx.destination, self.ctx.log_prefix)
            handle = provisioner.ensure_list(
                title, content_list.list_type, content_list.template
            )

            if content_list.list_type is ListType.GENERIC_LIST:
                sync = RecordSynchronizer(self.ctx).sync_list(
                    handle, content_list.source_item_count
                )
                return ListOutcome(
                    title, content_list.list_type, OutcomeStatus.SUCCEEDED, sync=sync
                )

            mirror = TreeMirror(self.ctx).mirror_library(handle)
            return ListOutcome(
                title, content_list.list_type, OutcomeStatus.SUCCEEDED, mirror=mirror
            )
        except MigrationCancelledError:
            log_with_context(
                logging.WARNING,
                f"Migration of '{title}' cancelled",
                list_title=title,
            )
            return self._cancelled(content_list, "cancelled while running")
        except Exception as e:
            log_with_context(
                logging.ERROR,
                f"Migration of '{title}' failed: {e}",
                list_title=title,
                exc_info=True,
            )
            return ListOutcome(
                title,
                content_list.list_type,
                OutcomeStatus.FAILED,
                f"{type(e).__name__}: {e}",
            )
        finally:
            if handler is not None:
                close_handler(handler)
