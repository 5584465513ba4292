"""Unit tests for the Tree Mirror."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest

from site_migrator.core.tree_mirror import TreeMirror
from site_migrator.exceptions import (
    EntityGoneError,
    MigrationCancelledError,
    RemoteUnavailableError,
)
from site_migrator.types import ListType


@pytest.fixture()
def docs_handle(destination):
    return destination.create_list("Docs", ListType.DOCUMENT_LIBRARY, 101)


class TestMirrorLibrary:
    def test_copies_files_and_folders(self, library_source, destination, docs_handle, make_context):
        result = TreeMirror(make_context()).mirror_library(docs_handle)

        assert result.files_copied == 3
        assert result.folders_created == 1
        assert destination.list_existing_file_names("/Docs") == ["a.txt", "b.txt"]
        assert destination.list_existing_folder_names("/Docs") == ["Sub"]
        assert destination.file_content("/Docs/Sub/c.txt") == b"charlie"

    def test_second_pass_performs_no_writes(
        self, library_source, destination, docs_handle, make_context
    ):
        TreeMirror(make_context()).mirror_library(docs_handle)
        tracked = MagicMock(wraps=destination)

        result = TreeMirror(make_context(destination=tracked)).mirror_library(docs_handle)

        assert result.files_copied == 0
        assert result.folders_created == 0
        assert result.files_existing == 3
        tracked.upload_file.assert_not_called()
        tracked.create_folder.assert_not_called()

    def test_existing_destination_file_is_not_overwritten(
        self, library_source, destination, docs_handle, make_context
    ):
        destination.upload_file("/Docs", "a.txt", io.BytesIO(b"edited in the cloud"))

        result = TreeMirror(make_context()).mirror_library(docs_handle)

        assert result.files_copied == 2
        assert destination.file_content("/Docs/a.txt") == b"edited in the cloud"

    def test_recurses_into_existing_destination_folders(
        self, library_source, destination, docs_handle, make_context
    ):
        destination.create_folder("/Docs", "Sub")

        result = TreeMirror(make_context()).mirror_library(docs_handle)

        assert result.folders_created == 0
        assert destination.file_content("/Docs/Sub/c.txt") == b"charlie"

    def test_files_uploaded_before_subfolders(
        self, library_source, destination, docs_handle, make_context
    ):
        tracked = MagicMock(wraps=destination)

        TreeMirror(make_context(destination=tracked)).mirror_library(docs_handle)

        writes = [
            (c[0], c.args[1])
            for c in tracked.method_calls
            if c[0] in ("upload_file", "create_folder")
        ]
        assert writes == [
            ("upload_file", "a.txt"),
            ("upload_file", "b.txt"),
            ("create_folder", "Sub"),
            ("upload_file", "c.txt"),
        ]

    def test_vanished_file_is_skipped(self, library_source, destination, docs_handle, make_context):
        source = MagicMock(wraps=library_source)
        real_open = library_source.open_file_stream

        def open_stream(path):
            if path == "/Docs/b.txt":
                raise EntityGoneError("deleted mid-run")
            return real_open(path)

        source.open_file_stream.side_effect = open_stream

        result = TreeMirror(make_context(source=source)).mirror_library(docs_handle)

        assert result.files_copied == 2
        assert result.entries_skipped == 1
        assert destination.list_existing_file_names("/Docs") == ["a.txt"]

    def test_vanished_folder_is_skipped(self, library_source, destination, docs_handle, make_context):
        source = MagicMock(wraps=library_source)
        real_list = library_source.list_file_names

        def list_files(path):
            if path == "/Docs/Sub":
                raise EntityGoneError("folder deleted")
            return real_list(path)

        source.list_file_names.side_effect = list_files

        result = TreeMirror(make_context(source=source)).mirror_library(docs_handle)

        assert result.entries_skipped == 1
        assert result.folders_created == 1
        assert destination.list_existing_file_names("/Docs/Sub") == []

    def test_source_streams_are_closed(self, destination, docs_handle, make_context):
        stream = io.BytesIO(b"data")
        source = MagicMock()
        source.list_file_names.return_value = ["a.txt"]
        source.list_folder_names.return_value = []
        source.open_file_stream.return_value = stream

        TreeMirror(make_context(source=source)).mirror_library(docs_handle)

        assert stream.closed

    def test_depth_guard(self, source, destination, docs_handle, make_context):
        source.add_list("Docs", ListType.DOCUMENT_LIBRARY)
        source.add_file("/Docs/L1/L2/L3/deep.txt", b"deep")

        result = TreeMirror(make_context(max_folder_depth=2)).mirror_library(docs_handle)

        assert destination.list_existing_folder_names("/Docs/L1") == ["L2"]
        assert destination.list_existing_folder_names("/Docs/L1/L2") == ["L3"]
        assert destination.list_existing_file_names("/Docs/L1/L2/L3") == []
        assert result.entries_skipped == 1

    def test_remote_failure_aborts_traversal(
        self, library_source, destination, docs_handle, make_context
    ):
        tracked = MagicMock(wraps=destination)
        tracked.create_folder.side_effect = RemoteUnavailableError("down")

        with pytest.raises(RemoteUnavailableError):
            TreeMirror(make_context(destination=tracked)).mirror_library(docs_handle)

        # Files of the root folder were already uploaded
        assert destination.list_existing_file_names("/Docs") == ["a.txt", "b.txt"]

    def test_cancellation(self, library_source, destination, docs_handle, make_context):
        ctx = make_context()
        ctx.cancel_event.set()

        with pytest.raises(MigrationCancelledError):
            TreeMirror(ctx).mirror_library(docs_handle)

        assert destination.list_existing_file_names("/Docs") == []
