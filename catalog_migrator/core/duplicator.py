"""
Batch duplicator: the query/ingest loop of a migration run.

A run moves through ``INIT -> RUNNING -> {COMPLETED, ABORTED}``. Pages are
fetched strictly in order and each batch is fully ingested before the next
page is requested, because the next cursor depends on how many records the
previous page actually returned.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from tqdm import tqdm

from catalog_migrator.core.config import validate_batch_size
from catalog_migrator.core.filters import Filter
from catalog_migrator.core.ingest import ingest
from catalog_migrator.core.query import fetch_page
from catalog_migrator.core.reporter import MigrationSummary, format_summary, summarize
from catalog_migrator.core.state import MigrationRun
from catalog_migrator.exceptions import ConfigError, QueryError
from catalog_migrator.providers.base import (
    Clock,
    DestinationProvider,
    SourceProvider,
    SystemClock,
)
from catalog_migrator.types import IngestOutcome
from catalog_migrator.utils.logging import log_with_context

BatchHook = Callable[[MigrationRun, IngestOutcome], None]


class BatchDuplicator:
    """Copies every record matching a filter from a source to a destination."""

    def __init__(
        self,
        source: SourceProvider,
        destination: DestinationProvider,
        batch_size: int,
        *,
        clock: Optional[Clock] = None,
        max_records: Optional[int] = None,
        show_progress: bool = False,
        on_batch: Optional[BatchHook] = None,
    ):
        self.source = source
        self.destination = destination
        self.batch_size = batch_size
        self.clock = clock or SystemClock()
        self.max_records = max_records
        self.show_progress = show_progress
        self.on_batch = on_batch

    def validate(self) -> None:
        """Check the run configuration.

        Raises:
            ConfigError: If the batch size or record limit is out of range.
        """
        validate_batch_size(self.batch_size)
        if self.max_records is not None and self.max_records < 1:
            raise ConfigError(
                f"Maximum record count must be at least 1, got {self.max_records}."
            )

    def run(self, filter: Filter) -> MigrationSummary:
        """Migrate all records matching ``filter``.

        Query and ingest failures never propagate: a failed page query ends
        the run as ABORTED, failed records are counted. Only configuration
        errors are raised, before any query is issued.

        Returns:
            The final summary of the run.
        """
        self.validate()

        run = MigrationRun(filter=filter, start_time=self.clock.now())
        run.start()
        log_with_context(
            logging.INFO,
            "Starting migration.",
            batch_size=self.batch_size,
            max_records=self.max_records,
        )

        with tqdm(
            desc="Migrating records",
            unit="record",
            disable=not self.show_progress,
        ) as pbar:
            while not run.status.is_terminal:
                self._step(run, pbar)

        summary = summarize(run, self.clock.now())
        if summary.completed:
            log_with_context(
                logging.DEBUG,
                f"Migration Complete: {format_summary(summary)}",
                status=summary.status.value,
            )
        else:
            log_with_context(
                logging.ERROR,
                f"Migration aborted after {run.pages_fetched} page(s): {run.abort_reason}",
                status=summary.status.value,
            )
        return summary

    def _next_page_size(self, run: MigrationRun) -> int:
        if self.max_records is None:
            return self.batch_size
        return max(min(self.batch_size, self.max_records - run.records_read), 0)

    def _step(self, run: MigrationRun, pbar: tqdm) -> None:
        """Fetch and ingest one page, moving ``run`` to a terminal state when done."""
        page_size = self._next_page_size(run)
        if page_size == 0:
            log_with_context(
                logging.INFO,
                f"Reached the maximum of {self.max_records} record(s)",
                cursor=run.cursor,
            )
            run.complete()
            return

        first_page = run.pages_fetched == 0
        try:
            page = fetch_page(
                self.source,
                run.filter,
                run.cursor,
                page_size,
                requests_total_count=first_page,
            )
        except QueryError as e:
            log_with_context(
                logging.ERROR,
                f"Received error from source: {e}",
                cursor=run.cursor,
            )
            run.abort(str(e) or type(e).__name__)
            return

        if first_page and page.total_count is not None:
            run.total_count = page.total_count
            pbar.total = (
                min(page.total_count, self.max_records)
                if self.max_records is not None
                else page.total_count
            )
            pbar.refresh()
            log_with_context(
                logging.INFO,
                f"Source reports {page.total_count} matching record(s)",
                total_count=page.total_count,
            )

        records = page.records
        batch_start = run.cursor
        run.record_page(len(records))
        if not records:
            run.complete()
            return

        outcome = ingest(self.destination, records)
        run.record_outcome(outcome)
        pbar.update(len(records))
        log_with_context(
            logging.DEBUG,
            f"Batch at index {batch_start}: {outcome.success_count} ingested, "
            f"{outcome.failure_count} failed",
            cursor=batch_start,
            batch=run.pages_fetched,
        )
        if self.on_batch is not None:
            self.on_batch(run, outcome)

        if run.total_count is not None and run.records_read > run.total_count:
            log_with_context(
                logging.WARNING,
                f"Source reported {run.total_count} matching record(s) but "
                f"{run.records_read} were read; paging until an empty page",
                cursor=run.cursor,
            )
            run.total_count = None
        elif run.total_count is not None and run.records_read == run.total_count:
            run.complete()
