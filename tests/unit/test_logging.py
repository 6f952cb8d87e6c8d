"""Unit tests for the logging utilities."""

from __future__ import annotations

import json
import logging

from catalog_migrator.utils.logging import (
    EnhancedFormatter,
    JsonFormatter,
    log_with_context,
    setup_logger,
    setup_main_log_file,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord(
        "catalog_migrator", logging.INFO, __file__, 10, msg, None, None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    def test_json_formatter_includes_context(self):
        data = json.loads(JsonFormatter().format(_record(cursor=11, component="ingest")))
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["cursor"] == 11
        assert data["component"] == "ingest"

    def test_enhanced_formatter_appends_context(self):
        formatter = EnhancedFormatter("%(message)s", include_context=True)
        assert formatter.format(_record(cursor=3, batch=1)) == "hello [batch=1, cursor=3]"

    def test_enhanced_formatter_without_context(self):
        formatter = EnhancedFormatter("%(message)s")
        assert formatter.format(_record(cursor=3)) == "hello"

    def test_verbose_format_has_location(self):
        formatter = EnhancedFormatter(verbose=True)
        assert "[test_logging:10]" in formatter.format(_record())


class TestSetupLogger:
    def test_writes_main_log_file(self, tmp_path):
        logger = setup_logger(verbose=True, output_dir=str(tmp_path))
        log_with_context(logging.DEBUG, "debug line", cursor=5)
        for handler in logger.handlers:
            handler.flush()

        content = (tmp_path / "migration.log").read_text()
        assert "Main log file created" in content
        assert "debug line [cursor=5]" in content

    def test_json_log_file(self, tmp_path):
        logger = setup_logger(output_dir=str(tmp_path), json_logs=True)
        log_with_context(logging.INFO, "json line", page_size=10, skipped=None)
        for handler in logger.handlers:
            handler.flush()

        lines = (tmp_path / "migration.log").read_text().splitlines()
        data = json.loads(lines[-1])
        assert data["message"] == "json line"
        assert data["page_size"] == 10
        assert "skipped" not in data

    def test_replaces_existing_handlers(self):
        setup_logger()
        logger = setup_logger()
        assert len(logger.handlers) == 1

    def test_new_main_log_file_replaces_previous_one(self, tmp_path):
        first, second = tmp_path / "first", tmp_path / "second"
        setup_logger(output_dir=str(first))
        setup_main_log_file(str(second))
        logger = logging.getLogger("catalog_migrator")
        log_with_context(logging.INFO, "second run only")
        for handler in logger.handlers:
            handler.flush()

        file_handlers = [
            h for h in logger.handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1
        assert "second run only" in (second / "migration.log").read_text()
        assert "second run only" not in (first / "migration.log").read_text()
