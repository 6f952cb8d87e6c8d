"""
Report generation for catalog migration runs
"""

from __future__ import annotations

import datetime
import json
import logging
import os
from typing import Any, Optional

import yaml

from catalog_migrator.constants import (
    FAILED_RECORDS_FILENAME,
    OUTPUT_ROOT,
    REPORT_FILENAME,
)
from catalog_migrator.core.reporter import MigrationSummary
from catalog_migrator.utils.logging import log_with_context


def create_migration_output_directory(root: str = OUTPUT_ROOT) -> str:
    """Create output directory for migration with timestamp.

    Returns:
        The path to the newly created output directory.
    """
    timestamp = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    output_dir = os.path.join(root, f"run_{timestamp}")
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def write_failed_records(summary: MigrationSummary, output_dir: str) -> Optional[str]:
    """Write one JSON line per failed record (id and reason).

    Returns:
        The path written, or None if no record failed.
    """
    if not summary.failures:
        return None

    path = os.path.join(output_dir, FAILED_RECORDS_FILENAME)
    with open(path, "w", encoding="utf-8") as f:
        for failure in summary.failures:
            f.write(json.dumps({"id": failure.record_id, "reason": failure.reason}) + "\n")
    log_with_context(
        logging.INFO,
        f"Wrote {len(summary.failures)} failed record id(s) to {path}",
    )
    return path


def generate_report(
    summary: MigrationSummary,
    output_dir: str,
    details: Optional[dict[str, Any]] = None,
    output_file: str = REPORT_FILENAME,
) -> str:
    """Write a YAML report of a finished run.

    Args:
        summary: Final counters of the run.
        output_dir: Run output directory.
        details: Extra run parameters (providers, filter, batch size).
        output_file: Report file name inside ``output_dir``.

    Returns:
        The path of the report file.
    """
    report_path = os.path.join(output_dir, output_file)

    failure_reasons: dict[str, int] = {}
    for failure in summary.failures:
        failure_reasons[failure.reason] = failure_reasons.get(failure.reason, 0) + 1

    report = {
        "migration_summary": summary.to_dict(),
        "run": dict(details or {}),
        "failure_reasons": failure_reasons,
        "generated_at": datetime.datetime.now(datetime.timezone.utc).isoformat(),
    }

    with open(report_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(report, f, default_flow_style=False, sort_keys=False)

    log_with_context(logging.INFO, f"Migration report saved to {report_path}")
    return report_path
