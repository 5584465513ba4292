"""Capability interfaces for the two sides of a migration.

A :class:`ContentSource` gives read-only access to the legacy site; a
:class:`ContentDestination` is the content store being populated.  The core
synchronization code depends only on these two interfaces and receives
concrete instances through its constructors.

Every method may raise one of the provider errors from
:mod:`site_migrator.exceptions`:

- ``EntityGoneError`` when the addressed entity does not exist (any more),
- ``ThrottledError`` on a rate-limit signal,
- ``TransientRemoteError`` (or ``ConnectionError``/``TimeoutError``) for
  faults worth retrying,
- ``RemoteUnavailableError`` for connectivity or authentication failure.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import BinaryIO

from site_migrator.types import ContentList, ListHandle, ListType

DEFAULT_PAGE_SIZE = 1000


def join_path(path: str, name: str) -> str:
    """Join a site-relative folder path and a child name."""
    return posixpath.join(path or "/", name)


def normalize_path(path: str) -> str:
    """Normalize a site-relative path to ``/a/b`` form."""
    parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
    return "/" + "/".join(parts)


class ContentSource(ABC):
    """Read-only access to the source site."""

    @abstractmethod
    def list_all_lists(self) -> Sequence[ContentList]:
        """Return every list and library of the site."""

    @abstractmethod
    def get_record_attributes(self, list_title: str, record_id: int) -> Mapping[str, str]:
        """Return the attributes of a record, or an empty mapping if absent."""

    @abstractmethod
    def get_record_attachments(
        self, list_title: str, record_id: int
    ) -> Mapping[str, BinaryIO]:
        """Return the record's attachments as file name -> open binary stream."""

    @abstractmethod
    def list_folder_names(self, path: str) -> Sequence[str]:
        """Return the names of the folders directly under ``path``."""

    @abstractmethod
    def list_file_names(self, path: str) -> Sequence[str]:
        """Return the names of the files directly under ``path``."""

    @abstractmethod
    def open_file_stream(self, path: str) -> BinaryIO:
        """Open the file at ``path`` for binary reading."""


class ContentDestination(ABC):
    """The content store a migration writes into."""

    # -- Lists ----------------------------------------------------------------

    @abstractmethod
    def find_list(self, title: str) -> ListHandle | None:
        """Return the list whose title matches exactly, or ``None``."""

    @abstractmethod
    def create_list(
        self, title: str, list_type: ListType, base_template: int | None = None
    ) -> ListHandle:
        """Create a list of the given type and return its handle."""

    # -- Records --------------------------------------------------------------

    @abstractmethod
    def create_blank_record(self, handle: ListHandle) -> int:
        """Insert an empty record and return the id the store assigned."""

    @abstractmethod
    def set_record_attributes(
        self, handle: ListHandle, record_id: int, attributes: Mapping[str, str]
    ) -> None:
        """Stage attribute values on a record."""

    @abstractmethod
    def add_attachment(
        self, handle: ListHandle, record_id: int, filename: str, stream: BinaryIO
    ) -> None:
        """Stage a named binary attachment on a record."""

    @abstractmethod
    def commit_record(self, handle: ListHandle, record_id: int) -> None:
        """Finalize staged attributes and attachments of a record."""

    @abstractmethod
    def max_record_id(self, handle: ListHandle) -> int:
        """Return the greatest record id in the list, 0 when empty."""

    @abstractmethod
    def page_records(
        self,
        handle: ListHandle,
        continuation_token: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[int], str | None]:
        """Return one page of record ids and the token for the next page."""

    @abstractmethod
    def delete_record(self, handle: ListHandle, record_id: int) -> None:
        """Delete a single record."""

    # -- Folders and files ----------------------------------------------------

    @abstractmethod
    def list_existing_folder_names(self, path: str) -> Sequence[str]:
        """Return the names of the folders directly under ``path``."""

    @abstractmethod
    def list_existing_file_names(self, path: str) -> Sequence[str]:
        """Return the names of the files directly under ``path``."""

    @abstractmethod
    def create_folder(self, path: str, name: str) -> None:
        """Create folder ``name`` under ``path``."""

    @abstractmethod
    def upload_file(self, path: str, name: str, stream: BinaryIO) -> None:
        """Upload a file under ``path``; never overwrites an existing file."""
