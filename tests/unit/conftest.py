"""Unit test configuration and shared fakes."""

from __future__ import annotations

import datetime
import logging
from typing import Optional, Sequence

import pytest

from catalog_migrator.providers.memory import MemoryProvider
from catalog_migrator.types import (
    IngestOutcome,
    QueryResult,
    QuerySpec,
    Record,
    RecordFailure,
)
from tests.conftest import BASE_TIME

# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


class TickingClock:
    """Clock that advances by ``step`` seconds on every call."""

    def __init__(self, start: datetime.datetime = BASE_TIME, step: float = 0.5):
        self.current = start
        self.step = datetime.timedelta(seconds=step)

    def now(self) -> datetime.datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class RecordingSource:
    """Memory-backed source that records every query and can misbehave.

    Args:
        records: Records held by the source.
        errors: Map of 1-based call number to the exception that call raises.
        warnings: Map of 1-based call number to warnings attached to that page.
        report_total: Whether the total count is reported when requested.
        reported_total: Total count to report instead of the true one.
    """

    def __init__(
        self,
        records: Sequence[Record] = (),
        errors: Optional[dict[int, Exception]] = None,
        warnings: Optional[dict[int, list[str]]] = None,
        report_total: bool = True,
        reported_total: Optional[int] = None,
    ):
        self.backend = MemoryProvider(records)
        self.errors = errors or {}
        self.warnings = warnings or {}
        self.report_total = report_total
        self.reported_total = reported_total
        self.specs: list[QuerySpec] = []

    @property
    def calls(self) -> int:
        return len(self.specs)

    @property
    def start_indices(self) -> list[int]:
        return [s.start_index for s in self.specs]

    def query(self, spec: QuerySpec) -> QueryResult:
        self.specs.append(spec)
        call = len(self.specs)
        if call in self.errors:
            raise self.errors[call]
        result = self.backend.query(spec)
        if not self.report_total:
            result.total_count = None
        elif self.reported_total is not None and result.total_count is not None:
            result.total_count = self.reported_total
        result.warnings = list(self.warnings.get(call, []))
        return result


class RecordingDestination:
    """Memory-backed destination with scripted failures.

    Args:
        fail_ids: Record ids reported as failed whenever they are submitted.
        errors: Map of 1-based call number to the exception that call raises.
    """

    def __init__(
        self,
        fail_ids: Sequence[str] = (),
        errors: Optional[dict[int, Exception]] = None,
    ):
        self.backend = MemoryProvider()
        self.fail_ids = set(fail_ids)
        self.errors = errors or {}
        self.batches: list[list[Record]] = []

    def create(self, records: Sequence[Record]) -> IngestOutcome:
        self.batches.append(list(records))
        call = len(self.batches)
        if call in self.errors:
            raise self.errors[call]
        accepted = [r for r in records if r.id not in self.fail_ids]
        outcome = self.backend.create(accepted)
        outcome.failed.extend(
            RecordFailure(r.id, "rejected by destination")
            for r in records
            if r.id in self.fail_ids
        )
        return outcome


@pytest.fixture()
def clock():
    return TickingClock()


@pytest.fixture(autouse=True)
def _clean_logger():
    """Remove all handlers from the catalog_migrator logger around each test."""
    logger = logging.getLogger("catalog_migrator")
    saved = logger.handlers[:]
    for handler in saved:
        logger.removeHandler(handler)
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    for handler in saved:
        logger.addHandler(handler)
