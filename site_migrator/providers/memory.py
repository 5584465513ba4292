"""In-memory content source and destination.

Both classes keep a whole site in plain dictionaries.  They are useful for
embedding the migrator in other tools, for reproducing a migration scenario
without either platform, and as the reference behaviour the real providers
are expected to match (dense append-only record ids, create-only uploads,
id-based pagination that survives deletion of returned records).
"""

from __future__ import annotations

import io
import threading
from collections.abc import Mapping, Sequence
from typing import BinaryIO

from site_migrator.exceptions import EntityGoneError
from site_migrator.providers.base import (
    DEFAULT_PAGE_SIZE,
    ContentDestination,
    ContentSource,
    join_path,
    normalize_path,
)
from site_migrator.types import ContentList, ListHandle, ListType, Record


def _parent(path: str) -> str:
    return normalize_path(path.rsplit("/", 1)[0]) if path.count("/") > 1 else "/"


class _FolderTree:
    """Folder/file namespace shared by both in-memory providers."""

    def __init__(self) -> None:
        self.folders: set[str] = {"/"}
        self.files: dict[str, bytes] = {}

    def add_folder(self, path: str) -> None:
        path = normalize_path(path)
        while path not in self.folders:
            self.folders.add(path)
            path = _parent(path)

    def add_file(self, path: str, content: bytes) -> None:
        path = normalize_path(path)
        self.add_folder(_parent(path))
        self.files[path] = content

    def require_folder(self, path: str) -> str:
        path = normalize_path(path)
        if path not in self.folders:
            raise EntityGoneError(f"Folder {path} does not exist")
        return path

    def folder_names(self, path: str) -> list[str]:
        path = self.require_folder(path)
        return sorted(
            f.rsplit("/", 1)[1] for f in self.folders if f != "/" and _parent(f) == path
        )

    def file_names(self, path: str) -> list[str]:
        path = self.require_folder(path)
        return sorted(f.rsplit("/", 1)[1] for f in self.files if _parent(f) == path)


class InMemorySource(ContentSource):
    """A source site held entirely in memory."""

    def __init__(self) -> None:
        self._lists: dict[str, ContentList] = {}
        self._records: dict[str, dict[int, Record]] = {}
        self.tree = _FolderTree()

    # -- Population -----------------------------------------------------------

    def add_list(
        self,
        title: str,
        list_type: ListType = ListType.GENERIC_LIST,
        base_template: int | None = None,
    ) -> None:
        self._lists[title] = ContentList(
            title=title, list_type=list_type, base_template=base_template
        )
        self._records.setdefault(title, {})
        if list_type is ListType.DOCUMENT_LIBRARY:
            self.tree.add_folder(join_path("/", title))

    def add_record(
        self,
        list_title: str,
        record_id: int,
        attributes: Mapping[str, str],
        attachments: Mapping[str, bytes] | None = None,
    ) -> Record:
        record = Record(
            list_title=list_title,
            id=record_id,
            attributes=dict(attributes),
            attachments=dict(attachments or {}),
            committed=True,
        )
        self._records[list_title][record_id] = record
        return record

    def remove_record(self, list_title: str, record_id: int) -> None:
        self._records[list_title].pop(record_id, None)

    def add_file(self, path: str, content: bytes) -> None:
        self.tree.add_file(path, content)

    def add_folder(self, path: str) -> None:
        self.tree.add_folder(path)

    # -- ContentSource --------------------------------------------------------

    def list_all_lists(self) -> Sequence[ContentList]:
        result = []
        for title, meta in self._lists.items():
            high = max(self._records[title], default=0)
            result.append(
                ContentList(
                    title=title,
                    list_type=meta.list_type,
                    source_item_count=high + 1,
                    base_template=meta.base_template,
                )
            )
        return result

    def _record(self, list_title: str, record_id: int) -> Record | None:
        if list_title not in self._records:
            raise EntityGoneError(f"List {list_title!r} does not exist")
        return self._records[list_title].get(record_id)

    def get_record_attributes(self, list_title: str, record_id: int) -> Mapping[str, str]:
        record = self._record(list_title, record_id)
        return dict(record.attributes) if record else {}

    def get_record_attachments(
        self, list_title: str, record_id: int
    ) -> Mapping[str, BinaryIO]:
        record = self._record(list_title, record_id)
        if record is None:
            raise EntityGoneError(f"Record {record_id} of {list_title!r} does not exist")
        return {name: io.BytesIO(data) for name, data in record.attachments.items()}

    def list_folder_names(self, path: str) -> Sequence[str]:
        return self.tree.folder_names(path)

    def list_file_names(self, path: str) -> Sequence[str]:
        return self.tree.file_names(path)

    def open_file_stream(self, path: str) -> BinaryIO:
        path = normalize_path(path)
        if path not in self.tree.files:
            raise EntityGoneError(f"File {path} does not exist")
        return io.BytesIO(self.tree.files[path])


class _StoredList:
    def __init__(self, handle: ListHandle) -> None:
        self.handle = handle
        self.records: dict[int, Record] = {}
        self.next_id = 1


class InMemoryDestination(ContentDestination):
    """A destination content store held entirely in memory.

    Record ids are assigned densely from 1 and never reused, so deleting
    records leaves a gap exactly like the cloud platform does.
    """

    def __init__(self) -> None:
        self._lists: dict[str, _StoredList] = {}
        self._lock = threading.Lock()
        self.tree = _FolderTree()

    # -- Inspection -----------------------------------------------------------

    def records(self, title: str) -> dict[int, Record]:
        return self._lists[title].records

    def file_content(self, path: str) -> bytes:
        return self.tree.files[normalize_path(path)]

    # -- Lists ----------------------------------------------------------------

    def find_list(self, title: str) -> ListHandle | None:
        stored = self._lists.get(title)
        return stored.handle if stored else None

    def create_list(
        self, title: str, list_type: ListType, base_template: int | None = None
    ) -> ListHandle:
        root_path = join_path("/", title)
        handle = ListHandle(
            title=title,
            list_type=list_type,
            root_path=root_path,
            base_template=base_template,
        )
        with self._lock:
            self._lists[title] = _StoredList(handle)
            if list_type is ListType.DOCUMENT_LIBRARY:
                self.tree.add_folder(root_path)
        return handle

    def _stored(self, handle: ListHandle) -> _StoredList:
        stored = self._lists.get(handle.title)
        if stored is None:
            raise EntityGoneError(f"List {handle.title!r} does not exist")
        return stored

    def _stored_record(self, handle: ListHandle, record_id: int) -> Record:
        record = self._stored(handle).records.get(record_id)
        if record is None:
            raise EntityGoneError(f"Record {record_id} of {handle.title!r} does not exist")
        return record

    # -- Records --------------------------------------------------------------

    def create_blank_record(self, handle: ListHandle) -> int:
        stored = self._stored(handle)
        with self._lock:
            record_id = stored.next_id
            stored.next_id += 1
            stored.records[record_id] = Record(list_title=handle.title, id=record_id)
        return record_id

    def set_record_attributes(
        self, handle: ListHandle, record_id: int, attributes: Mapping[str, str]
    ) -> None:
        self._stored_record(handle, record_id).attributes.update(attributes)

    def add_attachment(
        self, handle: ListHandle, record_id: int, filename: str, stream: BinaryIO
    ) -> None:
        self._stored_record(handle, record_id).attachments[filename] = stream.read()

    def commit_record(self, handle: ListHandle, record_id: int) -> None:
        self._stored_record(handle, record_id).committed = True

    def max_record_id(self, handle: ListHandle) -> int:
        return max(self._stored(handle).records, default=0)

    def page_records(
        self,
        handle: ListHandle,
        continuation_token: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[int], str | None]:
        after = int(continuation_token) if continuation_token else 0
        remaining = sorted(i for i in self._stored(handle).records if i > after)
        page = remaining[:page_size]
        next_token = str(page[-1]) if len(remaining) > page_size else None
        return page, next_token

    def delete_record(self, handle: ListHandle, record_id: int) -> None:
        stored = self._stored(handle)
        with self._lock:
            if stored.records.pop(record_id, None) is None:
                raise EntityGoneError(
                    f"Record {record_id} of {handle.title!r} does not exist"
                )

    # -- Folders and files ----------------------------------------------------

    def list_existing_folder_names(self, path: str) -> Sequence[str]:
        with self._lock:
            return self.tree.folder_names(path)

    def list_existing_file_names(self, path: str) -> Sequence[str]:
        with self._lock:
            return self.tree.file_names(path)

    def create_folder(self, path: str, name: str) -> None:
        parent = self.tree.require_folder(path)
        with self._lock:
            self.tree.add_folder(join_path(parent, name))

    def upload_file(self, path: str, name: str, stream: BinaryIO) -> None:
        parent = self.tree.require_folder(path)
        target = join_path(parent, name)
        with self._lock:
            if target in self.tree.files:
                return
            self.tree.files[target] = stream.read()
