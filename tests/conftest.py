"""Shared test fixtures for the catalog_migrator test suite."""

import datetime

import pytest

from catalog_migrator.types import Record

BASE_TIME = datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)


def make_record(index: int, **attributes) -> Record:
    """Build a record whose ``modified`` time decreases as ``index`` grows.

    Sorting newest-first therefore yields records in index order.
    """
    return Record(
        id=f"rec-{index:03d}",
        modified=BASE_TIME - datetime.timedelta(minutes=index),
        created=BASE_TIME - datetime.timedelta(days=1, minutes=index),
        attributes={"title": f"Record {index}", "index": index, **attributes},
    )


def make_records(count: int) -> list[Record]:
    return [make_record(i) for i in range(count)]


@pytest.fixture()
def sample_records():
    """Return ten records, rec-000 (newest) to rec-009 (oldest)."""
    return make_records(10)
