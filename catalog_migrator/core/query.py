"""
Paginated queries against the source provider.

Pages are always sorted newest-first on the modified timestamp. When
records are inserted at the source during a run this biases the run
toward re-reading records it has already seen rather than skipping new
ones.
"""

from __future__ import annotations

import logging

from catalog_migrator.constants import MODIFIED_PROPERTY, SORT_DESCENDING
from catalog_migrator.core.filters import Filter
from catalog_migrator.providers.base import SourceProvider
from catalog_migrator.types import QueryResult, QuerySpec, SortBy
from catalog_migrator.utils.logging import log_with_context

MIGRATION_SORT = SortBy(MODIFIED_PROPERTY, SORT_DESCENDING)


def fetch_page(
    source: SourceProvider,
    filter: Filter,
    start_index: int,
    page_size: int,
    *,
    requests_total_count: bool = True,
) -> QueryResult:
    """Fetch one page of records from ``source``.

    Args:
        source: The provider to query.
        filter: Structured predicate selecting the records to migrate.
        start_index: 1-based offset of the first record of the page.
        page_size: Maximum number of records to return.
        requests_total_count: Ask the source to report the total hit count.

    Returns:
        The page. A page the source answered with warnings is returned
        empty (its warnings and total count are kept) so the caller
        treats it like an exhausted source.

    Raises:
        QueryError: The source could not answer the query. Not retried.
    """
    spec = QuerySpec(
        filter=filter,
        page_size=page_size,
        start_index=start_index,
        sort_by=MIGRATION_SORT,
        requests_total_count=requests_total_count,
    )

    log_with_context(
        logging.DEBUG,
        f"Querying with startIndex: {start_index}",
        cursor=start_index,
        page_size=page_size,
    )
    result = source.query(spec)

    if result.is_degraded:
        for warning in result.warnings:
            log_with_context(logging.DEBUG, f"Got Issues: {warning}", cursor=start_index)
        log_with_context(
            logging.WARNING,
            f"Discarding page at index {start_index}: source reported "
            f"{len(result.warnings)} warning(s)",
            cursor=start_index,
        )
        return QueryResult(
            records=[], total_count=result.total_count, warnings=list(result.warnings)
        )

    log_with_context(
        logging.DEBUG,
        f"Received {len(result.records)} record(s) at index {start_index}",
        cursor=start_index,
        total_count=result.total_count,
    )
    return result
