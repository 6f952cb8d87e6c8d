"""Shared type definitions for the catalog migration tool.

Provides the value types flowing between the migration core and the
providers: records, page queries and their results, ingest outcomes, and
the run lifecycle states.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, NamedTuple

from catalog_migrator.constants import (
    CREATED_PROPERTY,
    MAX_BATCH_SIZE,
    MODIFIED_PROPERTY,
    SORT_DESCENDING,
)
from catalog_migrator.utils.timestamps import format_timestamp, parse_timestamp

if TYPE_CHECKING:
    from catalog_migrator.core.filters import Filter

# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Record:
    """A provider-defined unit of data, immutable once read from a source."""

    id: str
    modified: datetime.datetime
    created: datetime.datetime | None = None
    attributes: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        # Freeze the attribute mapping so the record cannot change after a read.
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    def get(self, name: str, default: Any = None) -> Any:
        """Return a core field (``id``, ``modified``, ``created``) or an attribute."""
        if name == "id":
            return self.id
        if name == MODIFIED_PROPERTY:
            return self.modified
        if name == CREATED_PROPERTY:
            return self.created
        return self.attributes.get(name, default)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Record:
        """Build a record from its JSON shape.

        Raises:
            ValueError: If ``id`` or ``modified`` is missing or malformed.
        """
        record_id = data.get("id")
        if not isinstance(record_id, str) or not record_id:
            raise ValueError(f"Record is missing a string 'id': {data!r}")
        if "modified" not in data:
            raise ValueError(f"Record {record_id} is missing 'modified'")
        created = data.get("created")
        return cls(
            id=record_id,
            modified=parse_timestamp(data["modified"]),
            created=parse_timestamp(created) if created else None,
            attributes=dict(data.get("attributes") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON shape of this record."""
        return {
            "id": self.id,
            "modified": format_timestamp(self.modified),
            "created": format_timestamp(self.created) if self.created else None,
            "attributes": dict(self.attributes),
        }


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SortBy:
    """Sort key for a page query."""

    property: str = MODIFIED_PROPERTY
    order: str = SORT_DESCENDING


@dataclass(frozen=True)
class QuerySpec:
    """A single page request against a source provider.

    ``start_index`` is 1-based. ``page_size`` must lie within
    ``[1, MAX_BATCH_SIZE]``.
    """

    filter: Filter
    page_size: int
    start_index: int = 1
    sort_by: SortBy = field(default_factory=SortBy)
    requests_total_count: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= MAX_BATCH_SIZE:
            raise ValueError(
                f"page_size must be between 1 and {MAX_BATCH_SIZE}, got {self.page_size}"
            )
        if self.start_index < 1:
            raise ValueError(f"start_index is 1-based, got {self.start_index}")


@dataclass
class QueryResult:
    """Records returned for one page, plus provider diagnostics."""

    records: list[Record] = field(default_factory=list)
    total_count: int | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def is_degraded(self) -> bool:
        """True when the provider attached warnings to this page."""
        return bool(self.warnings)


# ---------------------------------------------------------------------------
# Ingest
# ---------------------------------------------------------------------------


class RecordFailure(NamedTuple):
    """A record the destination did not create, and why."""

    record_id: str
    reason: str


@dataclass
class IngestOutcome:
    """Per-record result of a single create call."""

    succeeded: list[str] = field(default_factory=list)
    failed: list[RecordFailure] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @classmethod
    def all_failed(cls, records: list[Record], reason: str) -> IngestOutcome:
        """Outcome for a batch the destination rejected as a whole."""
        return cls(failed=[RecordFailure(r.id, reason) for r in records])


# ---------------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------------


class RunStatus(str, Enum):
    """Lifecycle states of a migration run."""

    INIT = "INIT"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    ABORTED = "ABORTED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.ABORTED)
