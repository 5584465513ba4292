"""Unit tests for the SiteMigrator orchestrator."""

from __future__ import annotations

import os
import threading
from unittest.mock import MagicMock, patch

import pytest

from site_migrator.core import migrator as migrator_module
from site_migrator.core.config import MigrationConfig
from site_migrator.core.migrator import SiteMigrator
from site_migrator.exceptions import RemoteUnavailableError
from site_migrator.providers.dry_run import DryRunDestination
from site_migrator.types import ListType, OutcomeStatus
from site_migrator.utils.retry import RetryingProvider


@pytest.fixture()
def site(source):
    """A source site with one generic list and one library."""
    source.add_list("Invoices", ListType.GENERIC_LIST, 100)
    for record_id in (1, 2, 3):
        source.add_record("Invoices", record_id, {"Title": f"INV-00{record_id}"})
    source.add_list("Docs", ListType.DOCUMENT_LIBRARY, 101)
    source.add_file("/Docs/a.txt", b"alpha")
    source.add_file("/Docs/Sub/c.txt", b"charlie")
    return source


def _migrator(source, destination, **kwargs):
    kwargs.setdefault("config", MigrationConfig(max_retries=0))
    kwargs.setdefault("show_progress", False)
    return SiteMigrator(source, destination, **kwargs)


class TestSiteMigratorSetup:
    def test_capabilities_are_wrapped_for_retries(self, source, destination):
        migrator = _migrator(source, destination)
        assert isinstance(migrator.ctx.source, RetryingProvider)
        assert isinstance(migrator.ctx.destination, RetryingProvider)
        assert migrator.ctx.destination.wrapped is destination

    def test_dry_run_wraps_destination(self, source, destination):
        migrator = _migrator(source, destination, dry_run=True)
        assert isinstance(migrator.ctx.destination, DryRunDestination)
        assert migrator.ctx.log_prefix == "[DRY RUN] "


class TestRunMigration:
    def test_migrates_lists_and_libraries(self, site, destination):
        state = _migrator(site, destination).run_migration()

        assert state.outcomes["Invoices"].status is OutcomeStatus.SUCCEEDED
        assert state.outcomes["Invoices"].sync.inserted == 3
        assert state.outcomes["Docs"].status is OutcomeStatus.SUCCEEDED
        assert state.outcomes["Docs"].mirror.files_copied == 2
        assert sorted(destination.records("Invoices")) == [1, 2, 3]
        assert destination.file_content("/Docs/Sub/c.txt") == b"charlie"
        assert state.finished_at is not None

    def test_second_pass_adds_only_new_content(self, site, destination):
        _migrator(site, destination).run_migration()
        site.add_record("Invoices", 4, {"Title": "INV-004"})
        site.add_file("/Docs/new.txt", b"new")

        state = _migrator(site, destination).run_migration()

        assert state.outcomes["Invoices"].sync.inserted == 1
        assert state.outcomes["Docs"].mirror.files_copied == 1
        assert state.outcomes["Docs"].mirror.folders_created == 0

    def test_list_without_template_is_created_with_type_default(self, source, destination):
        source.add_list("Notes", ListType.GENERIC_LIST)

        _migrator(source, destination).run_migration()

        assert destination.find_list("Notes").base_template == 100

    def test_unsupported_template_is_skipped(self, site, destination, caplog):
        site.add_list("Calendar", ListType.OTHER, 106)

        state = _migrator(site, destination).run_migration()

        outcome = state.outcomes["Calendar"]
        assert outcome.status is OutcomeStatus.SKIPPED
        assert "106" in outcome.reason
        assert destination.find_list("Calendar") is None
        assert not state.has_failures

    def test_excluded_list_is_skipped(self, site, destination):
        config = MigrationConfig(exclude_lists=["Docs"], max_retries=0)

        state = _migrator(site, destination, config=config).run_migration()

        assert state.outcomes["Docs"].status is OutcomeStatus.SKIPPED
        assert destination.find_list("Docs") is None
        assert state.outcomes["Invoices"].status is OutcomeStatus.SUCCEEDED

    def test_failure_in_one_list_does_not_stop_others(self, site, destination):
        source = MagicMock(wraps=site)

        def attributes(list_title, record_id):
            raise RemoteUnavailableError("source down")

        source.get_record_attributes.side_effect = attributes

        state = _migrator(source, destination).run_migration()

        failed = state.outcomes["Invoices"]
        assert failed.status is OutcomeStatus.FAILED
        assert failed.reason == "RemoteUnavailableError: source down"
        assert state.outcomes["Docs"].status is OutcomeStatus.SUCCEEDED
        assert state.has_failures

    def test_transient_errors_are_retried(self, site, destination):
        tracked = MagicMock(wraps=destination)
        real_upload = destination.upload_file
        calls = {"n": 0}

        def flaky_upload(path, name, stream):
            calls["n"] += 1
            if calls["n"] == 1:
                raise ConnectionError("reset")
            real_upload(path, name, stream)

        tracked.upload_file.side_effect = flaky_upload
        config = MigrationConfig(max_retries=2, retry_delay=0)

        state = _migrator(site, tracked, config=config).run_migration()

        assert state.outcomes["Docs"].status is OutcomeStatus.SUCCEEDED
        assert destination.file_content("/Docs/a.txt") == b"alpha"

    def test_source_enumeration_failure_propagates(self, destination):
        source = MagicMock()
        source.list_all_lists.side_effect = RemoteUnavailableError("no route")

        with pytest.raises(RemoteUnavailableError):
            _migrator(source, destination).run_migration()

    def test_dry_run_leaves_destination_untouched(self, site, destination):
        state = _migrator(site, destination, dry_run=True).run_migration()

        assert state.outcomes["Invoices"].sync.inserted == 3
        assert state.outcomes["Docs"].mirror.files_copied == 2
        assert destination.find_list("Invoices") is None
        assert destination.tree.files == {}

    def test_list_logs_written_to_output_dir(self, site, destination, tmp_path):
        _migrator(site, destination, output_dir=str(tmp_path)).run_migration()

        logs = sorted(os.listdir(tmp_path / "list_logs"))
        assert logs == ["Docs_migration.log", "Invoices_migration.log"]
        assert "Invoices" in (tmp_path / "list_logs" / "Invoices_migration.log").read_text()

    def test_workers_bound_concurrent_lists(self, source, destination):
        for n in range(6):
            source.add_list(f"List{n}", ListType.GENERIC_LIST, 100)
        migrator = _migrator(source, destination, config=MigrationConfig(max_workers=2))
        real_migrate = migrator.migrate_list
        lock = threading.Lock()
        running = {"now": 0, "peak": 0}
        pair = threading.Barrier(2, timeout=5)

        def counted(content_list):
            with lock:
                running["now"] += 1
                running["peak"] = max(running["peak"], running["now"])
            pair.wait()
            try:
                return real_migrate(content_list)
            finally:
                with lock:
                    running["now"] -= 1

        migrator.migrate_list = counted
        state = migrator.run_migration()

        assert running["peak"] == 2
        assert all(o.status is OutcomeStatus.SUCCEEDED for o in state.outcomes.values())

    def test_list_log_setup_failure_fails_only_that_list(self, site, destination, tmp_path):
        real_setup = migrator_module.setup_list_logger

        def setup(output_dir, title, verbose=False):
            if title == "Invoices":
                raise OSError("disk full")
            return real_setup(output_dir, title, verbose)

        with patch.object(migrator_module, "setup_list_logger", side_effect=setup):
            state = _migrator(site, destination, output_dir=str(tmp_path)).run_migration()

        assert state.outcomes["Invoices"].status is OutcomeStatus.FAILED
        assert state.outcomes["Invoices"].reason == "OSError: disk full"
        assert state.outcomes["Docs"].status is OutcomeStatus.SUCCEEDED


class TestCancellation:
    def test_cancel_before_run_marks_lists_cancelled(self, site, destination):
        migrator = _migrator(site, destination)
        migrator.cancel()

        state = migrator.run_migration()

        assert {o.status for o in state.outcomes.values()} == {OutcomeStatus.CANCELLED}
        assert destination.find_list("Invoices") is None

    def test_cancel_while_running_stops_at_record_boundary(self, site, destination):
        config = MigrationConfig(max_workers=1, max_retries=0, include_lists=["Invoices"])
        migrator = _migrator(site, destination, config=config)
        tracked = MagicMock(wraps=destination)
        real_commit = destination.commit_record

        def commit_then_cancel(handle, record_id):
            real_commit(handle, record_id)
            migrator.cancel()

        tracked.commit_record.side_effect = commit_then_cancel
        migrator.ctx.destination._wrapped_obj = tracked

        state = migrator.run_migration()

        assert state.outcomes["Invoices"].status is OutcomeStatus.CANCELLED
        assert sorted(destination.records("Invoices")) == [1]

    def test_keyboard_interrupt_cancels_pending_lists(self, site, destination):
        migrator = _migrator(site, destination)
        with patch("site_migrator.core.migrator.as_completed", side_effect=KeyboardInterrupt):
            state = migrator.run_migration()

        assert migrator.ctx.cancelled
        assert set(state.outcomes) == {"Invoices", "Docs"}
        for outcome in state.outcomes.values():
            assert outcome.status in (OutcomeStatus.SUCCEEDED, OutcomeStatus.CANCELLED)
