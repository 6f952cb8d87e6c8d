"""JSON-lines file provider.

Each line of the file holds one record in the shape produced by
:meth:`Record.to_dict`. The file is re-read on every query, so records
appended by another process between pages are visible to later pages.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

from catalog_migrator.exceptions import DestinationUnavailableError, SourceUnavailableError
from catalog_migrator.providers.memory import ALREADY_EXISTS_REASON, select_page
from catalog_migrator.types import (
    IngestOutcome,
    QueryResult,
    QuerySpec,
    Record,
    RecordFailure,
)
from catalog_migrator.utils.logging import log_with_context


class FileProvider:
    """Reads and appends records in a ``.jsonl`` file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def description(self) -> str:
        return f"file:{self.path}"

    def _read_records(self) -> list[Record]:
        records = []
        with open(self.path, encoding="utf-8") as f:
            for line_no, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    records.append(Record.from_dict(json.loads(line)))
                except (json.JSONDecodeError, ValueError, TypeError, AttributeError) as e:
                    log_with_context(
                        logging.WARNING,
                        f"Skipping malformed record on line {line_no} of {self.path}: {e}",
                        component="file",
                    )
        return records

    def query(self, spec: QuerySpec) -> QueryResult:
        if not self.path.exists():
            raise SourceUnavailableError(f"Source file {self.path} does not exist")
        try:
            records = self._read_records()
        except OSError as e:
            raise SourceUnavailableError(f"Failed to read {self.path}: {e}") from e
        return select_page(records, spec)

    def _existing_ids(self) -> set[str]:
        if not self.path.exists():
            return set()
        return {r.id for r in self._read_records()}

    def create(self, records: Sequence[Record]) -> IngestOutcome:
        outcome = IngestOutcome()
        try:
            existing = self._existing_ids()
            lines = []
            for record in records:
                if record.id in existing:
                    outcome.failed.append(RecordFailure(record.id, ALREADY_EXISTS_REASON))
                    continue
                try:
                    lines.append(json.dumps(record.to_dict()))
                except (TypeError, ValueError) as e:
                    outcome.failed.append(
                        RecordFailure(record.id, f"record is not serializable: {e}")
                    )
                    continue
                existing.add(record.id)
                outcome.succeeded.append(record.id)
            with open(self.path, "a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
        except OSError as e:
            raise DestinationUnavailableError(f"Failed to write {self.path}: {e}") from e
        return outcome
