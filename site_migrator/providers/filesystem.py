"""On-disk site export source and staging destination.

Both providers share one directory layout, so a staging directory written by
:class:`DirectoryDestination` can be read back by :class:`ExportDirectorySource`::

    <root>/
        lists/<title>/list.yaml                 # title, template, next_id
        lists/<title>/items/<id>.yaml           # record attributes
        lists/<title>/attachments/<id>/<name>   # record attachments
        site/<site-relative path>               # library folders and files

Document library content lives under ``site/`` at the library's root path
(``/<title>``).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, BinaryIO

import yaml

from site_migrator.exceptions import EntityGoneError, ProviderError
from site_migrator.providers.base import (
    DEFAULT_PAGE_SIZE,
    ContentDestination,
    ContentSource,
    join_path,
    normalize_path,
)
from site_migrator.types import ContentList, ListHandle, ListType
from site_migrator.utils.logging import log_with_context

LIST_META_FILE = "list.yaml"


def _read_yaml(path: Path, loader: type = yaml.SafeLoader) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.load(f, Loader=loader)
    except FileNotFoundError as e:
        raise EntityGoneError(f"{path} does not exist") from e
    except (yaml.YAMLError, OSError) as e:
        raise ProviderError(f"Failed to read {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def _read_item(path: Path) -> dict[str, str]:
    # BaseLoader keeps every scalar exactly as written: no dates, no None.
    return {str(k): str(v) for k, v in _read_yaml(path, yaml.BaseLoader).items()}


def _write_yaml(path: Path, data: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    with open(tmp, "w") as f:
        yaml.safe_dump(dict(data), f, default_flow_style=False, allow_unicode=True)
    tmp.replace(path)


def _item_ids(items_dir: Path) -> list[int]:
    if not items_dir.is_dir():
        return []
    return sorted(int(p.stem) for p in items_dir.glob("*.yaml") if p.stem.isdigit())


class _SiteDirectory:
    """Path arithmetic shared by both providers."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def list_dir(self, title: str) -> Path:
        return self.root / "lists" / title

    def items_dir(self, title: str) -> Path:
        return self.list_dir(title) / "items"

    def attachments_dir(self, title: str, record_id: int) -> Path:
        return self.list_dir(title) / "attachments" / str(record_id)

    def site_path(self, path: str) -> Path:
        parts = normalize_path(path).strip("/").split("/")
        if ".." in parts:
            raise ProviderError(f"Path {path} escapes the site root")
        return self.root.joinpath("site", *[p for p in parts if p])

    def folder(self, path: str) -> Path:
        folder = self.site_path(path)
        if not folder.is_dir():
            raise EntityGoneError(f"Folder {path} does not exist")
        return folder

    def folder_names(self, path: str) -> list[str]:
        return sorted(p.name for p in self.folder(path).iterdir() if p.is_dir())

    def file_names(self, path: str) -> list[str]:
        return sorted(p.name for p in self.folder(path).iterdir() if p.is_file())


class ExportDirectorySource(ContentSource):
    """Reads a site export laid out as described in the module docstring."""

    def __init__(self, root: str | Path) -> None:
        self.site = _SiteDirectory(Path(root))
        if not (self.site.root / "lists").is_dir():
            raise ProviderError(f"No lists directory found in {self.site.root}")

    def list_all_lists(self) -> Sequence[ContentList]:
        lists = []
        for list_dir in sorted((self.site.root / "lists").iterdir()):
            meta_file = list_dir / LIST_META_FILE
            if not meta_file.is_file():
                log_with_context(
                    logging.WARNING,
                    f"Skipping {list_dir.name}: no {LIST_META_FILE} found",
                )
                continue
            meta = _read_yaml(meta_file)
            template = meta.get("template")
            ids = _item_ids(self.site.items_dir(list_dir.name))
            lists.append(
                ContentList(
                    title=meta.get("title", list_dir.name),
                    list_type=ListType.from_template(template),
                    source_item_count=(ids[-1] if ids else 0) + 1,
                    base_template=template,
                )
            )
        return lists

    def get_record_attributes(self, list_title: str, record_id: int) -> Mapping[str, str]:
        item_file = self.site.items_dir(list_title) / f"{record_id}.yaml"
        if not item_file.is_file():
            return {}
        return _read_item(item_file)

    def get_record_attachments(
        self, list_title: str, record_id: int
    ) -> Mapping[str, BinaryIO]:
        attachments_dir = self.site.attachments_dir(list_title, record_id)
        if not attachments_dir.is_dir():
            return {}
        return {
            p.name: open(p, "rb")
            for p in sorted(attachments_dir.iterdir())
            if p.is_file()
        }

    def list_folder_names(self, path: str) -> Sequence[str]:
        return self.site.folder_names(path)

    def list_file_names(self, path: str) -> Sequence[str]:
        return self.site.file_names(path)

    def open_file_stream(self, path: str) -> BinaryIO:
        file_path = self.site.site_path(path)
        try:
            return open(file_path, "rb")
        except FileNotFoundError as e:
            raise EntityGoneError(f"File {path} does not exist") from e


class DirectoryDestination(ContentDestination):
    """Writes a staging copy of the site in the export layout.

    Record ids come from a per-list ``next_id`` counter in ``list.yaml`` and
    are never reused.  Attribute values are staged in memory and written when
    the record is committed.
    """

    def __init__(self, root: str | Path) -> None:
        self.site = _SiteDirectory(Path(root))
        (self.site.root / "lists").mkdir(parents=True, exist_ok=True)
        (self.site.root / "site").mkdir(parents=True, exist_ok=True)
        self._staged: dict[tuple[str, int], dict[str, str]] = {}
        self._lock = threading.Lock()

    def _meta_file(self, title: str) -> Path:
        return self.site.list_dir(title) / LIST_META_FILE

    def _item_file(self, handle: ListHandle, record_id: int) -> Path:
        item_file = self.site.items_dir(handle.title) / f"{record_id}.yaml"
        if not item_file.is_file():
            raise EntityGoneError(
                f"Record {record_id} of {handle.title!r} does not exist"
            )
        return item_file

    # -- Lists ----------------------------------------------------------------

    def find_list(self, title: str) -> ListHandle | None:
        meta_file = self._meta_file(title)
        if not meta_file.is_file():
            return None
        meta = _read_yaml(meta_file)
        template = meta.get("template")
        return ListHandle(
            title=title,
            list_type=ListType.from_template(template),
            root_path=meta.get("root_path", join_path("/", title)),
            base_template=template,
        )

    def create_list(
        self, title: str, list_type: ListType, base_template: int | None = None
    ) -> ListHandle:
        template = base_template if base_template is not None else list_type.template
        root_path = join_path("/", title)
        _write_yaml(
            self._meta_file(title),
            {"title": title, "template": template, "root_path": root_path, "next_id": 1},
        )
        self.site.items_dir(title).mkdir(parents=True, exist_ok=True)
        if list_type is ListType.DOCUMENT_LIBRARY:
            self.site.site_path(root_path).mkdir(parents=True, exist_ok=True)
        return ListHandle(
            title=title,
            list_type=list_type,
            root_path=root_path,
            base_template=template,
        )

    # -- Records --------------------------------------------------------------

    def create_blank_record(self, handle: ListHandle) -> int:
        with self._lock:
            meta = _read_yaml(self._meta_file(handle.title))
            record_id = int(meta.get("next_id", 1))
            meta["next_id"] = record_id + 1
            _write_yaml(self._meta_file(handle.title), meta)
        _write_yaml(self.site.items_dir(handle.title) / f"{record_id}.yaml", {})
        return record_id

    def set_record_attributes(
        self, handle: ListHandle, record_id: int, attributes: Mapping[str, str]
    ) -> None:
        self._item_file(handle, record_id)
        with self._lock:
            self._staged.setdefault((handle.title, record_id), {}).update(attributes)

    def add_attachment(
        self, handle: ListHandle, record_id: int, filename: str, stream: BinaryIO
    ) -> None:
        self._item_file(handle, record_id)
        target_dir = self.site.attachments_dir(handle.title, record_id)
        content = stream.read()
        target_dir.mkdir(parents=True, exist_ok=True)
        with open(target_dir / filename, "wb") as f:
            f.write(content)

    def commit_record(self, handle: ListHandle, record_id: int) -> None:
        item_file = self._item_file(handle, record_id)
        with self._lock:
            staged = self._staged.pop((handle.title, record_id), {})
        attributes = _read_item(item_file)
        attributes.update(staged)
        _write_yaml(item_file, attributes)

    def max_record_id(self, handle: ListHandle) -> int:
        ids = _item_ids(self.site.items_dir(handle.title))
        return ids[-1] if ids else 0

    def page_records(
        self,
        handle: ListHandle,
        continuation_token: str | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> tuple[list[int], str | None]:
        after = int(continuation_token) if continuation_token else 0
        remaining = [i for i in _item_ids(self.site.items_dir(handle.title)) if i > after]
        page = remaining[:page_size]
        next_token = str(page[-1]) if len(remaining) > page_size else None
        return page, next_token

    def delete_record(self, handle: ListHandle, record_id: int) -> None:
        self._item_file(handle, record_id).unlink()
        attachments_dir = self.site.attachments_dir(handle.title, record_id)
        if attachments_dir.is_dir():
            for p in attachments_dir.iterdir():
                p.unlink()
            attachments_dir.rmdir()

    # -- Folders and files ----------------------------------------------------

    def list_existing_folder_names(self, path: str) -> Sequence[str]:
        return self.site.folder_names(path)

    def list_existing_file_names(self, path: str) -> Sequence[str]:
        return self.site.file_names(path)

    def create_folder(self, path: str, name: str) -> None:
        parent = self.site.folder(path)
        (parent / name).mkdir(exist_ok=True)

    def upload_file(self, path: str, name: str, stream: BinaryIO) -> None:
        parent = self.site.folder(path)
        # A failed read must not leave an empty file that blocks later uploads
        content = stream.read()
        try:
            with open(parent / name, "xb") as f:
                f.write(content)
        except FileExistsError:
            log_with_context(
                logging.DEBUG,
                f"File {join_path(path, name)} already exists, not overwriting",
            )
