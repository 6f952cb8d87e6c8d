"""Unit tests for run output files."""

from __future__ import annotations

import json
import os

import yaml

from catalog_migrator.cli.report import (
    create_migration_output_directory,
    generate_report,
    write_failed_records,
)
from catalog_migrator.core.reporter import MigrationSummary
from catalog_migrator.types import RecordFailure, RunStatus


def _summary(failures=()):
    return MigrationSummary(
        status=RunStatus.COMPLETED,
        ingested_count=8,
        failed_count=len(failures),
        elapsed_seconds=1.5,
        pages_fetched=3,
        total_count=10,
        failures=tuple(failures),
    )


class TestOutputDirectory:
    def test_creates_timestamped_directory(self, tmp_path):
        path = create_migration_output_directory(str(tmp_path))
        assert os.path.isdir(path)
        assert os.path.basename(path).startswith("run_")


class TestFailedRecords:
    def test_no_failures_writes_nothing(self, tmp_path):
        assert write_failed_records(_summary(), str(tmp_path)) is None
        assert list(tmp_path.iterdir()) == []

    def test_one_line_per_failure(self, tmp_path):
        failures = [RecordFailure("a", "duplicate"), RecordFailure("b", "offline")]

        path = write_failed_records(_summary(failures), str(tmp_path))

        lines = [json.loads(line) for line in open(path).read().splitlines()]
        assert lines == [
            {"id": "a", "reason": "duplicate"},
            {"id": "b", "reason": "offline"},
        ]


class TestGenerateReport:
    def test_report_contents(self, tmp_path):
        failures = [
            RecordFailure("a", "duplicate"),
            RecordFailure("b", "duplicate"),
            RecordFailure("c", "offline"),
        ]

        path = generate_report(
            _summary(failures), str(tmp_path), {"source": "memory", "batch_size": 5}
        )

        report = yaml.safe_load(open(path).read())
        assert report["migration_summary"]["status"] == "COMPLETED"
        assert report["migration_summary"]["ingested_count"] == 8
        assert report["migration_summary"]["failed_count"] == 3
        assert report["run"] == {"source": "memory", "batch_size": 5}
        assert report["failure_reasons"] == {"duplicate": 2, "offline": 1}
        assert "generated_at" in report
