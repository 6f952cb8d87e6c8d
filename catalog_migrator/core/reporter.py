"""
Final result aggregation for a migration run.

Pure functions: nothing here mutates run state or writes output. The CLI
decides how to render the summary.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

from catalog_migrator.core.state import MigrationRun
from catalog_migrator.types import RecordFailure, RunStatus


@dataclass(frozen=True)
class MigrationSummary:
    """Final counters of a run that reached a terminal state."""

    status: RunStatus
    ingested_count: int
    failed_count: int
    elapsed_seconds: float
    pages_fetched: int = 0
    total_count: int | None = None
    abort_reason: str | None = None
    failures: tuple[RecordFailure, ...] = field(default_factory=tuple)

    @property
    def completed(self) -> bool:
        return self.status == RunStatus.COMPLETED

    def as_tuple(self) -> tuple[int, int, float]:
        """``(ingested, failed, elapsed_seconds)``."""
        return (self.ingested_count, self.failed_count, self.elapsed_seconds)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "ingested_count": self.ingested_count,
            "failed_count": self.failed_count,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "pages_fetched": self.pages_fetched,
            "total_count": self.total_count,
            "abort_reason": self.abort_reason,
        }


def summarize(run: MigrationRun, end_time: datetime.datetime) -> MigrationSummary:
    """Compute the final summary of ``run`` as of ``end_time``."""
    elapsed = max((end_time - run.start_time).total_seconds(), 0.0)
    return MigrationSummary(
        status=run.status,
        ingested_count=run.ingested_count,
        failed_count=run.failed_count,
        elapsed_seconds=elapsed,
        pages_fetched=run.pages_fetched,
        total_count=run.total_count,
        abort_reason=run.abort_reason,
        failures=tuple(run.failures),
    )


def format_summary(summary: MigrationSummary) -> str:
    """Render the one-line summary printed at the end of a run."""
    return (
        f"{summary.ingested_count} record(s) migrated; "
        f"{summary.failed_count} record(s) failed; "
        f"completed in {summary.elapsed_seconds:.3f} seconds."
    )
