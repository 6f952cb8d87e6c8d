"""In-memory provider, usable as a source or a destination."""

from __future__ import annotations

import datetime
import logging
from typing import Iterable, Sequence

from catalog_migrator.constants import SORT_DESCENDING
from catalog_migrator.types import (
    IngestOutcome,
    QueryResult,
    QuerySpec,
    Record,
    RecordFailure,
)
from catalog_migrator.utils.logging import log_with_context
from catalog_migrator.utils.timestamps import EPOCH

ALREADY_EXISTS_REASON = "record already exists"


def _sort_key(property_name: str):
    def key(record: Record):
        value = record.get(property_name)
        if value is None:
            # Missing values sort as the oldest
            return (0, EPOCH)
        if isinstance(value, datetime.datetime):
            return (1, value)
        return (1, str(value))

    return key


def select_page(records: Iterable[Record], spec: QuerySpec) -> QueryResult:
    """Filter, sort and slice ``records`` the way a catalog source would."""
    matching = [r for r in records if spec.filter.matches(r)]
    matching.sort(
        key=_sort_key(spec.sort_by.property),
        reverse=spec.sort_by.order == SORT_DESCENDING,
    )
    offset = spec.start_index - 1
    page = matching[offset : offset + spec.page_size]
    return QueryResult(
        records=page,
        total_count=len(matching) if spec.requests_total_count else None,
    )


class MemoryProvider:
    """Keeps records in a dict keyed by id, in insertion order."""

    description = "memory"

    def __init__(self, records: Iterable[Record] = ()):
        self.records: dict[str, Record] = {}
        for record in records:
            self.records[record.id] = record

    def __len__(self) -> int:
        return len(self.records)

    def query(self, spec: QuerySpec) -> QueryResult:
        return select_page(self.records.values(), spec)

    def create(self, records: Sequence[Record]) -> IngestOutcome:
        outcome = IngestOutcome()
        for record in records:
            if not record.id:
                outcome.failed.append(RecordFailure(record.id, "record has no id"))
            elif record.id in self.records:
                outcome.failed.append(RecordFailure(record.id, ALREADY_EXISTS_REASON))
            else:
                self.records[record.id] = record
                outcome.succeeded.append(record.id)
        log_with_context(
            logging.DEBUG,
            f"Stored {outcome.success_count} record(s) in memory",
            component="memory",
        )
        return outcome
