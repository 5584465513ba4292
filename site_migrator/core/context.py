"""Immutable migration context.

MigrationContext is a frozen dataclass that holds the capability objects and
configuration for a migration run.  It is created once by the orchestrator
and shared (read-only) with every component that processes a list.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from site_migrator.core.config import MigrationConfig
from site_migrator.exceptions import MigrationCancelledError


@dataclass(frozen=True)
class MigrationContext:
    """Immutable context for a migration run. Created once, shared everywhere."""

    # Capabilities (usually wrapped in RetryingProvider)
    source: Any
    destination: Any

    # Loaded configuration
    config: MigrationConfig = field(default_factory=MigrationConfig)

    # Mode flags
    dry_run: bool = False
    verbose: bool = False

    # Where per-list log files go; no list logs when unset
    output_dir: str | None = None

    # Cooperative cancellation signal shared by all list tasks
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(self) -> None:
        """Raise MigrationCancelledError once cancellation was requested."""
        if self.cancel_event.is_set():
            raise MigrationCancelledError("Migration cancelled")

    @property
    def log_prefix(self) -> str:
        """Mode-aware log prefix, ``"[DRY RUN] "`` or empty."""
        return "[DRY RUN] " if self.dry_run else ""
