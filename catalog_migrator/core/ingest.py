"""
Batch ingest into the destination provider.

A batch is submitted as a single create call. Failures never escape this
module: records the destination rejects, or a whole batch it could not
accept, come back as failed entries of the outcome.
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict, deque
from typing import Sequence

from catalog_migrator.exceptions import IngestError
from catalog_migrator.providers.base import DestinationProvider
from catalog_migrator.types import IngestOutcome, Record, RecordFailure
from catalog_migrator.utils.logging import log_with_context

NO_RESULT_REASON = "no result reported by destination"


def _reconcile(records: Sequence[Record], outcome: IngestOutcome) -> IngestOutcome:
    """Align the destination's outcome with the batch that was submitted.

    Every submitted record lands in exactly one bucket, so a batch holding
    the same id twice is matched entry by entry. Records the destination
    reported on neither side count as failed; ids it never received are
    dropped.
    """
    successes = Counter(outcome.succeeded)
    failures: dict[str, deque[RecordFailure]] = defaultdict(deque)
    for failure in outcome.failed:
        failures[failure.record_id].append(failure)

    succeeded: list[str] = []
    failed: list[RecordFailure] = []
    missing = 0
    for record in records:
        if failures[record.id]:
            failed.append(failures[record.id].popleft())
        elif successes[record.id] > 0:
            successes[record.id] -= 1
            succeeded.append(record.id)
        else:
            missing += 1
            failed.append(RecordFailure(record.id, NO_RESULT_REASON))

    if missing:
        log_with_context(
            logging.WARNING,
            f"Destination reported no result for {missing} record(s)",
            component="ingest",
        )

    return IngestOutcome(succeeded=succeeded, failed=failed)


def ingest(destination: DestinationProvider, batch: Sequence[Record]) -> IngestOutcome:
    """Create ``batch`` at ``destination`` and report per-record results.

    Args:
        destination: The provider receiving the records.
        batch: Records read from the source for one page.

    Returns:
        Which records were created and which failed, with reasons. If the
        destination rejected the whole batch every record is failed.
    """
    records = list(batch)
    if not records:
        return IngestOutcome()

    try:
        outcome = destination.create(records)
    except IngestError as e:
        log_with_context(
            logging.ERROR,
            f"Failed to ingest batch of {len(records)} record(s): {e}",
            component="ingest",
        )
        return IngestOutcome.all_failed(records, str(e) or type(e).__name__)

    outcome = _reconcile(records, outcome)
    for failure in outcome.failed:
        log_with_context(
            logging.DEBUG,
            f"Record {failure.record_id} failed: {failure.reason}",
            component="ingest",
        )
    if outcome.failed:
        log_with_context(
            logging.WARNING,
            f"{outcome.failure_count} of {len(records)} record(s) in batch failed to ingest",
            component="ingest",
        )
    return outcome
