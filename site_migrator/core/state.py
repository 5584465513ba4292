"""
Migration state container for a site migration run.

Mutable tracking state for a run, separated from the immutable
MigrationContext.  Only the orchestrating thread writes to it: list tasks
return their ListOutcome and the orchestrator records it here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from site_migrator.types import ListOutcome, MigrationSummary, OutcomeStatus


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MigrationState:
    """Holds the per-list outcomes and timing of a migration run."""

    outcomes: dict[str, ListOutcome] = field(default_factory=dict)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    def start(self) -> None:
        self.outcomes = {}
        self.started_at = _now()
        self.finished_at = None

    def finish(self) -> None:
        self.finished_at = _now()

    def record(self, outcome: ListOutcome) -> None:
        self.outcomes[outcome.title] = outcome

    @property
    def duration(self) -> float:
        """Return the run duration in seconds (0.0 until started)."""
        if self.started_at is None:
            return 0.0
        end = self.finished_at or _now()
        return (end - self.started_at).total_seconds()

    def with_status(self, status: OutcomeStatus) -> list[ListOutcome]:
        return [o for o in self.outcomes.values() if o.status is status]

    @property
    def has_failures(self) -> bool:
        """Return True if any list failed."""
        return any(o.failed for o in self.outcomes.values())

    @property
    def summary(self) -> MigrationSummary:
        """Aggregate counters across every recorded list."""
        summary = MigrationSummary(
            lists_processed=len(self.outcomes),
            records_inserted=0,
            records_skipped=0,
            files_copied=0,
            folders_created=0,
            invariant_violations=0,
        )
        for outcome in self.outcomes.values():
            if outcome.sync is not None:
                summary["records_inserted"] += outcome.sync.inserted
                summary["records_skipped"] += outcome.sync.skipped
                summary["invariant_violations"] += outcome.sync.invariant_violations
            if outcome.mirror is not None:
                summary["files_copied"] += outcome.mirror.files_copied
                summary["folders_created"] += outcome.mirror.folders_created
        return summary
