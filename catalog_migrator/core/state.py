"""
Migration run state.

The run state is owned by the batch duplicator for the duration of a single
run and is never persisted. A stopped run is resumed by issuing a new run
with an adjusted time filter.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field

from catalog_migrator.core.filters import Filter
from catalog_migrator.types import IngestOutcome, RecordFailure, RunStatus


@dataclass
class MigrationRun:
    """Holds the cursor, counters and lifecycle status of one run."""

    filter: Filter
    start_time: datetime.datetime
    cursor: int = 1
    ingested_count: int = 0
    failed_count: int = 0
    pages_fetched: int = 0
    total_count: int | None = None
    status: RunStatus = RunStatus.INIT
    abort_reason: str | None = None
    failures: list[RecordFailure] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate invariants after initialization."""
        if self.cursor < 1:
            raise ValueError(f"cursor is 1-based, got {self.cursor}")
        if self.ingested_count < 0 or self.failed_count < 0:
            raise ValueError("counters must be non-negative")

    @property
    def records_read(self) -> int:
        """Number of records read from the source so far."""
        return self.cursor - 1

    def start(self) -> None:
        self.status = RunStatus.RUNNING

    def record_page(self, record_count: int) -> None:
        """Advance the cursor by the number of records actually read."""
        self.pages_fetched += 1
        self.cursor += record_count

    def record_outcome(self, outcome: IngestOutcome) -> None:
        self.ingested_count += outcome.success_count
        self.failed_count += outcome.failure_count
        self.failures.extend(outcome.failed)

    def complete(self) -> None:
        self.status = RunStatus.COMPLETED

    def abort(self, reason: str) -> None:
        self.status = RunStatus.ABORTED
        self.abort_reason = reason
