"""Custom exception hierarchy for the site content migration tool."""

from __future__ import annotations


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class ProviderError(MigratorError):
    """Base class for errors raised by a content source or destination."""


class EntityGoneError(ProviderError):
    """Raised when a list, record, folder or file no longer exists.

    Always recovered locally as a skip; never surfaced in the report.
    """


class RemoteUnavailableError(ProviderError):
    """Raised on connectivity or authentication failure.

    Aborts the current list only.
    """


class ThrottledError(ProviderError):
    """Raised when a platform signals a rate limit."""

    def __init__(self, message: str, retry_after: float | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TransientRemoteError(ProviderError):
    """Raised for clearly transient faults such as a reset connection."""


class InvariantViolationError(MigratorError):
    """Raised when destination ids drift from the source id sequence."""


class MigrationCancelledError(MigratorError):
    """Raised inside a list task once cancellation has been requested."""
