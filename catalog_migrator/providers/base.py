"""Capability interfaces the migration core needs from its collaborators.

Providers satisfy these protocols structurally: a source only needs
``query`` and a destination only needs ``create``. A provider that can do
both (like :class:`~catalog_migrator.providers.memory.MemoryProvider`) can
play either role.
"""

from __future__ import annotations

import datetime
from typing import Protocol, Sequence, runtime_checkable

from catalog_migrator.types import IngestOutcome, QueryResult, QuerySpec, Record


@runtime_checkable
class SourceProvider(Protocol):
    """A backend records are read from.

    ``query`` raises UnsupportedQueryError, SourceUnavailableError or
    FederationError when the page cannot be answered.
    """

    def query(self, spec: QuerySpec) -> QueryResult: ...


@runtime_checkable
class DestinationProvider(Protocol):
    """A backend records are written to.

    ``create`` reports per-record failures in the returned outcome and
    raises DestinationUnavailableError when the whole batch was rejected.
    """

    def create(self, records: Sequence[Record]) -> IngestOutcome: ...


class Clock(Protocol):
    def now(self) -> datetime.datetime: ...


class SystemClock:
    """Wall clock returning timezone-aware UTC datetimes."""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


def describe_provider(provider: object) -> str:
    """Human-readable provider name for console output."""
    description = getattr(provider, "description", None)
    if description:
        return str(description)
    return type(provider).__name__
