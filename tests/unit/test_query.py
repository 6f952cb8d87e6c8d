"""Unit tests for the paginated query executor."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest

from catalog_migrator.constants import MAX_BATCH_SIZE
from catalog_migrator.core.filters import MatchAll
from catalog_migrator.core.query import fetch_page
from catalog_migrator.exceptions import (
    FederationError,
    SourceUnavailableError,
    UnsupportedQueryError,
)
from catalog_migrator.types import QueryResult
from tests.conftest import make_records


def _source_returning(result: QueryResult) -> MagicMock:
    source = MagicMock()
    source.query.return_value = result
    return source


class TestFetchPage:
    def test_builds_query_spec(self):
        source = _source_returning(QueryResult(records=make_records(2), total_count=9))
        flt = MatchAll()

        result = fetch_page(source, flt, 11, 25)

        spec = source.query.call_args.args[0]
        assert spec.filter is flt
        assert spec.start_index == 11
        assert spec.page_size == 25
        assert spec.requests_total_count is True
        assert (spec.sort_by.property, spec.sort_by.order) == ("modified", "DESC")
        assert result.total_count == 9
        assert len(result.records) == 2

    def test_total_count_request_can_be_disabled(self):
        source = _source_returning(QueryResult())
        fetch_page(source, MatchAll(), 1, 10, requests_total_count=False)
        assert source.query.call_args.args[0].requests_total_count is False

    @pytest.mark.parametrize("page_size", [0, MAX_BATCH_SIZE + 1])
    def test_page_size_out_of_range_is_rejected(self, page_size):
        source = MagicMock()
        with pytest.raises(ValueError):
            fetch_page(source, MatchAll(), 1, page_size)
        source.query.assert_not_called()

    def test_start_index_is_one_based(self):
        with pytest.raises(ValueError):
            fetch_page(MagicMock(), MatchAll(), 0, 10)

    @pytest.mark.parametrize(
        "error",
        [
            UnsupportedQueryError("unsupported"),
            SourceUnavailableError("unavailable"),
            FederationError("federation"),
        ],
    )
    def test_query_errors_propagate(self, error):
        source = MagicMock()
        source.query.side_effect = error
        with pytest.raises(type(error)):
            fetch_page(source, MatchAll(), 1, 10)
        assert source.query.call_count == 1

    def test_page_with_warnings_is_discarded(self, caplog):
        source = _source_returning(
            QueryResult(
                records=make_records(3),
                total_count=3,
                warnings=["shard 2 timed out", "partial results"],
            )
        )

        with caplog.at_level(logging.DEBUG, logger="catalog_migrator"):
            result = fetch_page(source, MatchAll(), 1, 10)

        assert result.records == []
        assert result.warnings == ["shard 2 timed out", "partial results"]
        assert result.total_count == 3
        assert "Got Issues: shard 2 timed out" in caplog.text
        assert "Discarding page at index 1" in caplog.text
