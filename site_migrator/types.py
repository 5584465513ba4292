"""Shared type definitions for the site content migration tool.

Provides the data model flowing through a migration pass: source list
descriptors, destination list handles, per-list cursors and results, and the
per-list outcomes aggregated into the final report.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, TypedDict

# Base template numbers used by both platforms for the two list kinds we copy.
GENERIC_LIST_TEMPLATE = 100
DOCUMENT_LIBRARY_TEMPLATE = 101

DEFAULT_RECORD_ATTRIBUTES = ("Title", "Modified", "Created")

# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


class ListType(str, Enum):
    """Kind of content list, derived from the platform's base template."""

    GENERIC_LIST = "GenericList"
    DOCUMENT_LIBRARY = "DocumentLibrary"
    OTHER = "Other"

    @classmethod
    def from_template(cls, template: int | None) -> ListType:
        if template == GENERIC_LIST_TEMPLATE:
            return cls.GENERIC_LIST
        if template == DOCUMENT_LIBRARY_TEMPLATE:
            return cls.DOCUMENT_LIBRARY
        return cls.OTHER

    @property
    def template(self) -> int | None:
        """The base template number to create a list of this type with."""
        if self is ListType.GENERIC_LIST:
            return GENERIC_LIST_TEMPLATE
        if self is ListType.DOCUMENT_LIBRARY:
            return DOCUMENT_LIBRARY_TEMPLATE
        return None


@dataclass(frozen=True)
class ContentList:
    """A list or library as reported by the source site.

    ``source_item_count`` is the exclusive upper bound on record ids: the id
    following the highest id the source currently holds.
    """

    title: str
    list_type: ListType
    source_item_count: int = 0
    base_template: int | None = None

    @property
    def template(self) -> int | None:
        return self.base_template if self.base_template is not None else self.list_type.template


@dataclass(frozen=True)
class ListHandle:
    """Reference to a list at the destination."""

    title: str
    list_type: ListType
    root_path: str
    base_template: int | None = None


# ---------------------------------------------------------------------------
# Records and folders
# ---------------------------------------------------------------------------


@dataclass
class Record:
    """A single record of a generic list."""

    list_title: str
    id: int
    attributes: dict[str, str] = field(default_factory=dict)
    attachments: dict[str, bytes] = field(default_factory=dict)
    committed: bool = False


@dataclass(frozen=True)
class FolderNode:
    """Names found directly under one folder of a document library."""

    relative_path: str
    file_names: frozenset[str] = frozenset()
    folder_names: frozenset[str] = frozenset()


@dataclass(frozen=True)
class SyncCursor:
    """Where a record sync starts and stops, recomputed on every pass."""

    destination_high_water_mark: int
    source_high_water_mark: int

    @property
    def pending_ids(self) -> range:
        """Source ids still to copy; the upper bound is exclusive."""
        return range(self.destination_high_water_mark + 1, self.source_high_water_mark)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass
class SyncResult:
    """Outcome counters of one Record Synchronizer pass."""

    inserted: int = 0
    skipped: int = 0
    invariant_violations: int = 0


@dataclass
class MirrorResult:
    """Outcome counters of one Tree Mirror pass."""

    files_copied: int = 0
    folders_created: int = 0
    files_existing: int = 0
    entries_skipped: int = 0


@dataclass
class EraseResult:
    """Outcome counters of one Bulk Eraser pass."""

    pages_fetched: int = 0
    records_deleted: int = 0


class OutcomeStatus(str, Enum):
    """Terminal state of a single list within a migration pass."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


@dataclass
class ListOutcome:
    """Per-list entry of the migration report."""

    title: str
    list_type: ListType
    status: OutcomeStatus
    reason: str | None = None
    sync: SyncResult | None = None
    mirror: MirrorResult | None = None

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Flatten into the plain mapping written to the YAML report."""
        data: dict[str, Any] = {
            "title": self.title,
            "list_type": self.list_type.value,
            "status": self.status.value,
        }
        if self.reason:
            data["reason"] = self.reason
        if self.sync is not None:
            data.update(asdict(self.sync))
        if self.mirror is not None:
            data.update(asdict(self.mirror))
        return data


class MigrationSummary(TypedDict):
    """Aggregate migration counters."""

    lists_processed: int
    records_inserted: int
    records_skipped: int
    files_copied: int
    folders_created: int
    invariant_violations: int
