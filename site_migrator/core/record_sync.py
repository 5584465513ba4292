"""Incremental replay of generic list records into the destination.

Each pass starts from the destination's high-water mark and walks the source
ids above it in increasing order.  Every id becomes a blank destination
record, which is then filled with the source record's attributes and
attachments and committed.

Source and destination ids are assumed to advance in lockstep because both
lists are append-only and dense.  The source id is also stamped on each
migrated record (``source_id_field``) so the correlation survives drift, and
any record whose destination id differs from its source id is counted as an
invariant violation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import ExitStack
from typing import TYPE_CHECKING, BinaryIO

from site_migrator.exceptions import EntityGoneError, InvariantViolationError
from site_migrator.types import ListHandle, SyncCursor, SyncResult
from site_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from site_migrator.core.context import MigrationContext


class RecordSynchronizer:
    """Replays source records into one destination generic list."""

    def __init__(self, ctx: MigrationContext) -> None:
        self.ctx = ctx
        self.source = ctx.source
        self.destination = ctx.destination
        self.config = ctx.config

    def compute_cursor(self, handle: ListHandle, source_item_count: int) -> SyncCursor:
        return SyncCursor(
            destination_high_water_mark=self.destination.max_record_id(handle),
            source_high_water_mark=source_item_count,
        )

    def sync_list(self, handle: ListHandle, source_item_count: int) -> SyncResult:
        """Copy every source record above the destination high-water mark.

        Args:
            handle: The destination list.
            source_item_count: The source's exclusive upper bound on ids.

        Returns:
            SyncResult with inserted/skipped/invariant violation counts.

        Raises:
            MigrationCancelledError: when cancellation is requested; records
                committed so far stay in place.
        """
        title = handle.title
        result = SyncResult()
        cursor = self.compute_cursor(handle, source_item_count)
        pending = cursor.pending_ids

        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Syncing records of '{title}': destination at "
            f"{cursor.destination_high_water_mark}, source bound "
            f"{cursor.source_high_water_mark}, {len(pending)} pending",
            list_title=title,
        )

        for source_id in pending:
            self.ctx.check_cancelled()
            if self._copy_record(handle, source_id, result):
                result.inserted += 1
            else:
                result.skipped += 1

        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Records of '{title}': inserted {result.inserted}, "
            f"skipped {result.skipped}",
            list_title=title,
        )
        return result

    def _copy_record(self, handle: ListHandle, source_id: int, result: SyncResult) -> bool:
        """Create, fill and commit one destination record.

        Everything is read from the source before the destination record is
        created, so a failed read leaves no blank behind and the next pass
        starts again at the same id. Returns False when the source record is
        gone; a blank destination record still takes its id.
        """
        title = handle.title
        try:
            attributes = self.source.get_record_attributes(title, source_id)
        except EntityGoneError:
            attributes = {}

        attachments: Mapping[str, BinaryIO] = {}
        if attributes:
            try:
                attachments = self.source.get_record_attachments(title, source_id)
            except EntityGoneError:
                pass

        with ExitStack() as stack:
            for stream in attachments.values():
                stack.enter_context(stream)

            record_id = self.destination.create_blank_record(handle)
            if record_id != source_id:
                result.invariant_violations += 1
                violation = InvariantViolationError(
                    f"Destination assigned id {record_id} to source record {source_id}"
                )
                log_with_context(
                    logging.WARNING,
                    f"Id sequence drift in '{title}': {violation}",
                    list_title=title,
                    source_id=source_id,
                    record_id=record_id,
                )

            if not attributes:
                log_with_context(
                    logging.DEBUG,
                    f"Source record {source_id} of '{title}' does not exist, skipping",
                    list_title=title,
                )
                return False

            values = {
                key: attributes[key]
                for key in self.config.record_attributes
                if key in attributes
            }
            if self.config.stamp_source_id:
                values[self.config.source_id_field] = str(source_id)
            self.destination.set_record_attributes(handle, record_id, values)

            for filename, stream in attachments.items():
                self.destination.add_attachment(handle, record_id, filename, stream)
                log_with_context(
                    logging.DEBUG,
                    f"Attached '{filename}' to record {record_id} of '{title}'",
                    list_title=title,
                )

        self.destination.commit_record(handle, record_id)
        log_with_context(
            logging.DEBUG,
            f"{self.ctx.log_prefix}Committed record {record_id} "
            f"(source {source_id}) of '{title}'",
            list_title=title,
        )
        return True
