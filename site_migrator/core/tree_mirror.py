"""Recursive folder/file mirroring of document libraries."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from site_migrator.exceptions import EntityGoneError
from site_migrator.providers.base import join_path, normalize_path
from site_migrator.types import FolderNode, ListHandle, MirrorResult
from site_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from site_migrator.core.context import MigrationContext


class TreeMirror:
    """Replicates a document library's folder hierarchy file by file.

    Traversal is depth-first and strictly sequential.  At every folder the
    source and destination listings are compared and only missing files and
    folders are written, so re-running after a partial or complete pass only
    adds what is missing.  Any error other than a vanished source entry
    propagates and ends the traversal, leaving unvisited folders untouched.
    """

    def __init__(self, ctx: MigrationContext) -> None:
        self.ctx = ctx
        self.source = ctx.source
        self.destination = ctx.destination
        self.max_depth = ctx.config.max_folder_depth

    def mirror_library(self, handle: ListHandle) -> MirrorResult:
        result = MirrorResult()
        root = normalize_path(handle.root_path)
        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Mirroring library '{handle.title}' from {root}",
            list_title=handle.title,
        )
        self._populate_folder(handle.title, root, 0, result)
        log_with_context(
            logging.INFO,
            f"{self.ctx.log_prefix}Library '{handle.title}': copied {result.files_copied} "
            f"files, created {result.folders_created} folders, "
            f"{result.files_existing} files already present",
            list_title=handle.title,
        )
        return result

    def _source_node(self, path: str) -> FolderNode:
        return FolderNode(
            relative_path=path,
            file_names=frozenset(self.source.list_file_names(path)),
            folder_names=frozenset(self.source.list_folder_names(path)),
        )

    def _destination_node(self, path: str) -> FolderNode:
        return FolderNode(
            relative_path=path,
            file_names=frozenset(self.destination.list_existing_file_names(path)),
            folder_names=frozenset(self.destination.list_existing_folder_names(path)),
        )

    def _populate_folder(
        self, title: str, path: str, depth: int, result: MirrorResult
    ) -> None:
        self.ctx.check_cancelled()
        try:
            source_node = self._source_node(path)
        except EntityGoneError:
            log_with_context(
                logging.WARNING,
                f"Source folder {path} no longer exists, skipping",
                list_title=title,
            )
            result.entries_skipped += 1
            return

        existing = self._destination_node(path)

        for file_name in sorted(source_node.file_names):
            if file_name in existing.file_names:
                result.files_existing += 1
                continue
            self.ctx.check_cancelled()
            self._copy_file(title, path, file_name, result)

        for folder_name in sorted(source_node.folder_names):
            if folder_name not in existing.folder_names:
                self.ctx.check_cancelled()
                self.destination.create_folder(path, folder_name)
                result.folders_created += 1
                log_with_context(
                    logging.DEBUG,
                    f"{self.ctx.log_prefix}Created folder {join_path(path, folder_name)}",
                    list_title=title,
                )

            if depth + 1 > self.max_depth:
                log_with_context(
                    logging.WARNING,
                    f"Folder {join_path(path, folder_name)} is deeper than "
                    f"{self.max_depth} levels, not descending",
                    list_title=title,
                )
                result.entries_skipped += 1
                continue

            self._populate_folder(title, join_path(path, folder_name), depth + 1, result)

    def _copy_file(self, title: str, path: str, file_name: str, result: MirrorResult) -> None:
        file_path = join_path(path, file_name)
        try:
            stream = self.source.open_file_stream(file_path)
        except EntityGoneError:
            log_with_context(
                logging.WARNING,
                f"Source file {file_path} no longer exists, skipping",
                list_title=title,
            )
            result.entries_skipped += 1
            return

        with stream:
            self.destination.upload_file(path, file_name, stream)
        result.files_copied += 1
        log_with_context(
            logging.DEBUG,
            f"{self.ctx.log_prefix}Uploaded {file_path}",
            list_title=title,
        )
