"""Tests for the retrying provider wrapper."""

from __future__ import annotations

import io
from unittest.mock import MagicMock

import pytest

from site_migrator.exceptions import (
    EntityGoneError,
    RemoteUnavailableError,
    ThrottledError,
    TransientRemoteError,
)
from site_migrator.utils.retry import RetryingProvider


def _wrap(target, **kwargs):
    sleep = MagicMock()
    kwargs.setdefault("retry_delay", 2)
    return RetryingProvider(target, sleep=sleep, **kwargs), sleep


class TestRetryingProvider:
    def test_success_passes_through(self):
        target = MagicMock()
        target.max_record_id.return_value = 5
        provider, sleep = _wrap(target)

        assert provider.max_record_id("handle") == 5
        target.max_record_id.assert_called_once_with("handle")
        sleep.assert_not_called()

    @pytest.mark.parametrize(
        "error",
        [
            TransientRemoteError("reset"),
            ThrottledError("slow down"),
            ConnectionError("refused"),
            TimeoutError("timed out"),
        ],
    )
    def test_retryable_errors_are_retried(self, error):
        target = MagicMock()
        target.find_list.side_effect = [error, "handle"]
        provider, sleep = _wrap(target)

        assert provider.find_list("Invoices") == "handle"
        assert target.find_list.call_count == 2
        sleep.assert_called_once_with(2)

    def test_exponential_backoff_with_cap(self):
        target = MagicMock()
        target.find_list.side_effect = TransientRemoteError("down")
        provider, sleep = _wrap(target, max_retries=4, retry_delay=10, max_delay=30)

        with pytest.raises(RemoteUnavailableError):
            provider.find_list("Invoices")

        assert [c.args[0] for c in sleep.call_args_list] == [10, 20, 30, 30]

    def test_retry_after_hint_is_honoured(self):
        target = MagicMock()
        target.find_list.side_effect = [ThrottledError("slow", retry_after=7), None]
        provider, sleep = _wrap(target)

        provider.find_list("Invoices")

        sleep.assert_called_once_with(7.0)

    def test_exhaustion_raises_remote_unavailable_chained(self):
        target = MagicMock()
        last = TransientRemoteError("still down")
        target.find_list.side_effect = [TransientRemoteError("down"), last]
        provider, _ = _wrap(target, max_retries=1)

        with pytest.raises(RemoteUnavailableError, match="find_list failed after 2 attempts") as exc_info:
            provider.find_list("Invoices")

        assert exc_info.value.__cause__ is last

    def test_entity_gone_is_not_retried(self):
        target = MagicMock()
        target.delete_record.side_effect = EntityGoneError("gone")
        provider, sleep = _wrap(target)

        with pytest.raises(EntityGoneError):
            provider.delete_record("handle", 3)

        assert target.delete_record.call_count == 1
        sleep.assert_not_called()

    def test_other_errors_propagate_immediately(self):
        target = MagicMock()
        target.create_folder.side_effect = PermissionError("denied")
        provider, _ = _wrap(target)

        with pytest.raises(PermissionError):
            provider.create_folder("/Docs", "Sub")

        assert target.create_folder.call_count == 1

    def test_streams_are_rewound_before_retry(self):
        seen = []

        class Target:
            def upload_file(self, path, name, stream):
                seen.append(stream.read())
                if len(seen) == 1:
                    raise TransientRemoteError("dropped")

        provider, _ = _wrap(Target())
        provider.upload_file("/Docs", "a.txt", io.BytesIO(b"alpha"))

        assert seen == [b"alpha", b"alpha"]

    def test_stream_that_cannot_be_rewound_is_not_retried(self):
        target = MagicMock()
        target.upload_file.side_effect = TransientRemoteError("dropped")
        stream = MagicMock()
        stream.seekable.return_value = False
        provider, sleep = _wrap(target)

        with pytest.raises(RemoteUnavailableError, match="cannot be retried") as exc_info:
            provider.upload_file("/Docs", "a.txt", stream)

        assert target.upload_file.call_count == 1
        assert isinstance(exc_info.value.__cause__, TransientRemoteError)
        sleep.assert_not_called()
        stream.seek.assert_not_called()

    def test_non_callable_attributes_pass_through(self):
        target = MagicMock()
        target.tree = "tree"
        provider, _ = _wrap(target)

        assert provider.tree == "tree"
        assert provider.wrapped is target
