"""
Bulk deletion of every record in a destination list.

A maintenance primitive used to reset a destination list before a clean
re-migration.  It is not part of the default migration path.
"""

from __future__ import annotations

import logging
from typing import Any

from tqdm import tqdm

from site_migrator.exceptions import EntityGoneError
from site_migrator.providers.base import DEFAULT_PAGE_SIZE
from site_migrator.types import ListHandle, EraseResult
from site_migrator.utils.logging import log_with_context


def erase_all_records(
    destination: Any,
    handle: ListHandle,
    page_size: int = DEFAULT_PAGE_SIZE,
    show_progress: bool = False,
) -> EraseResult:
    """Delete every record of a list, one page at a time.

    Fetches a page of at most ``page_size`` record ids, deletes each record
    individually, and continues while the destination returns a continuation
    token.

    Args:
        destination: The destination content store.
        handle: The list to empty.
        page_size: Maximum records per page.
        show_progress: Show a tqdm progress bar of deleted records.

    Returns:
        EraseResult with the number of pages fetched and records deleted.
    """
    result = EraseResult()
    token: str | None = None

    log_with_context(
        logging.INFO,
        f"Erasing all records of '{handle.title}'",
        list_title=handle.title,
    )

    with tqdm(desc=f"Erasing {handle.title}", unit="record", disable=not show_progress) as pbar:
        while True:
            record_ids, token = destination.page_records(handle, token, page_size)
            result.pages_fetched += 1

            for record_id in record_ids:
                try:
                    destination.delete_record(handle, record_id)
                except EntityGoneError:
                    log_with_context(
                        logging.DEBUG,
                        f"Record {record_id} already deleted",
                        list_title=handle.title,
                    )
                    continue
                result.records_deleted += 1
                pbar.update(1)

            if token is None:
                break

    log_with_context(
        logging.INFO,
        f"Erased {result.records_deleted} records of '{handle.title}' "
        f"in {result.pages_fetched} pages",
        list_title=handle.title,
    )
    return result
