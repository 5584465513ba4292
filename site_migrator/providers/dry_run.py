"""No-op destination for dry-run mode.

Wraps a real destination: reads pass through so the run sees the actual
destination state, while every write is logged instead of performed.
Values that callers read back from writes (list handles, record ids) are
simulated so the rest of the pipeline runs unchanged.

Injected in place of the real destination when ``dry_run=True``, so the
core code carries no ``if dry_run`` checks.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any, BinaryIO

from site_migrator.providers.base import (
    DEFAULT_PAGE_SIZE,
    ContentDestination,
    join_path,
    normalize_path,
)
from site_migrator.types import ListHandle, ListType
from site_migrator.utils.logging import log_with_context


class DryRunDestination(ContentDestination):
    """Destination that reads through to ``wrapped`` and never writes."""

    def __init__(self, wrapped: Any) -> None:
        self._wrapped = wrapped
        self._lock = threading.Lock()
        self._created_lists: dict[str, ListHandle] = {}
        self._next_ids: dict[str, int] = {}
        self._created_folders: set[str] = set()

    @property
    def wrapped(self) -> Any:
        return self._wrapped

    def _is_simulated_folder(self, path: str) -> bool:
        path = normalize_path(path)
        with self._lock:
            folders = list(self._created_folders)
        return any(path == folder or path.startswith(folder + "/") for folder in folders)

    # -- Lists ----------------------------------------------------------------

    def find_list(self, title: str) -> ListHandle | None:
        if title in self._created_lists:
            return self._created_lists[title]
        return self._wrapped.find_list(title)

    def create_list(
        self, title: str, list_type: ListType, base_template: int | None = None
    ) -> ListHandle:
        log_with_context(
            logging.INFO,
            f"[DRY RUN] Would create {list_type.value} '{title}'",
            list_title=title,
        )
        handle = ListHandle(
            title=title,
            list_type=list_type,
            root_path=join_path("/", title),
            base_template=base_template,
        )
        with self._lock:
            self._created_lists[title] = handle
            if list_type is ListType.DOCUMENT_LIBRARY:
                self._created_folders.add(handle.root_path)
        return handle

    # -- Records --------------------------------------------------------------

    def create_blank_record(self, handle: ListHandle) -> int:
        with self._lock:
            if handle.title not in self._next_ids:
                self._next_ids[handle.title] = self.max_record_id(handle) + 1
            record_id = self._next_ids[handle.title]
            self._next_ids[handle.title] = record_id + 1
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would create record {record_id} in '{handle.title}'",
            list_title=handle.title,
        )
        return record_id

    def set_record_attributes(
        self, handle: ListHandle, record_id: int, attributes: Mapping[str, str]
    ) -> None:
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would set {len(attributes)} attributes on record {record_id}",
            list_title=handle.title,
        )

    def add_attachment(
        self, handle: ListHandle, record_id: int, filename: str, stream: BinaryIO
    ) -> None:
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would attach '{filename}' to record {record_id}",
            list_title=handle.title,
        )

    def commit_record(self, handle: ListHandle, record_id: int) -> None:
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would commit record {record_id}",
            list_title=handle.title,
        )

    def max_record_id(self, handle: ListHandle) -> int:
        if handle.title in self._created_lists:
            return 0
        return self._wrapped.max_record_id(handle)

    def page_records(
        self,
        handle: ListHandle,
        continuation_token: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[int], str | None]:
        if handle.title in self._created_lists:
            return [], None
        return self._wrapped.page_records(handle, continuation_token, page_size)

    def delete_record(self, handle: ListHandle, record_id: int) -> None:
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would delete record {record_id}",
            list_title=handle.title,
        )

    # -- Folders and files ----------------------------------------------------

    def list_existing_folder_names(self, path: str) -> Sequence[str]:
        if self._is_simulated_folder(path):
            return []
        return self._wrapped.list_existing_folder_names(path)

    def list_existing_file_names(self, path: str) -> Sequence[str]:
        if self._is_simulated_folder(path):
            return []
        return self._wrapped.list_existing_file_names(path)

    def create_folder(self, path: str, name: str) -> None:
        target = normalize_path(join_path(path, name))
        log_with_context(logging.DEBUG, f"[DRY RUN] Would create folder {target}")
        with self._lock:
            self._created_folders.add(target)

    def upload_file(self, path: str, name: str, stream: BinaryIO) -> None:
        log_with_context(
            logging.DEBUG,
            f"[DRY RUN] Would upload {normalize_path(join_path(path, name))}",
        )
