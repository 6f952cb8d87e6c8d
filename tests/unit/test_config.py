"""Unit tests for configuration loading and validation."""

from __future__ import annotations

import datetime

import pytest
import yaml

from catalog_migrator.constants import DEFAULT_BATCH_SIZE, MAX_BATCH_SIZE
from catalog_migrator.core.config import (
    HttpConfig,
    MigrationConfig,
    create_default_config,
    load_config,
    validate_batch_size,
)
from catalog_migrator.exceptions import ConfigError

UTC = datetime.timezone.utc


class TestValidateBatchSize:
    @pytest.mark.parametrize("value", [1, 500, MAX_BATCH_SIZE])
    def test_accepts_bounds(self, value):
        validate_batch_size(value)

    @pytest.mark.parametrize("value", [0, -10, MAX_BATCH_SIZE + 1])
    def test_rejects_out_of_range(self, value):
        with pytest.raises(ConfigError, match="Batch Size must be between 1 and 1000."):
            validate_batch_size(value)

    @pytest.mark.parametrize("value", ["10", 2.5, True, None])
    def test_rejects_non_integers(self, value):
        with pytest.raises(ConfigError, match="must be an integer"):
            validate_batch_size(value)


class TestMigrationConfig:
    def test_defaults(self):
        config = MigrationConfig()
        assert config.batch_size == DEFAULT_BATCH_SIZE
        assert config.cql_filter is None
        assert config.temporal_property == "modified"
        assert config.write_failed_records is True
        assert config.http == HttpConfig()
        assert not config.has_relative_window

    def test_from_dict(self):
        config = MigrationConfig.from_dict(
            {
                "batch_size": 250,
                "cql_filter": "title LIKE 'A%'",
                "temporal_property": "created",
                "start_time": "2024-01-01T00:00:00Z",
                "last_days": 2,
                "max_records": 50,
                "http": {"timeout": 5, "max_retries": 1},
            }
        )
        assert config.batch_size == 250
        assert config.cql_filter == "title LIKE 'A%'"
        assert config.temporal_property == "created"
        assert config.start_time == datetime.datetime(2024, 1, 1, tzinfo=UTC)
        assert config.end_time is None
        assert config.has_relative_window
        assert config.max_records == 50
        assert config.http.timeout == 5
        assert config.http.max_retries == 1
        assert config.http.retry_delay == 2

    def test_empty_strings_mean_unset(self):
        config = MigrationConfig.from_dict({"cql_filter": "", "start_time": ""})
        assert config.cql_filter is None
        assert config.start_time is None

    def test_invalid_temporal_property(self):
        with pytest.raises(ConfigError, match="temporal_property"):
            MigrationConfig(temporal_property="effective")

    def test_invalid_timestamp(self):
        with pytest.raises(ConfigError, match="Invalid end_time"):
            MigrationConfig.from_dict({"end_time": "not-a-date"})

    def test_start_after_end(self):
        with pytest.raises(ConfigError, match="is after"):
            MigrationConfig.from_dict(
                {
                    "start_time": "2024-02-01T00:00:00Z",
                    "end_time": "2024-01-01T00:00:00Z",
                }
            )


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(tmp_path / "missing.yaml")
        assert config == MigrationConfig()

    def test_empty_file_uses_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == MigrationConfig()

    def test_loads_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("batch_size: 42\nstart_time: 2024-03-01\n")

        config = load_config(path)

        assert config.batch_size == 42
        assert config.start_time == datetime.datetime(2024, 3, 1, tzinfo=UTC)

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("batch_size: [unclosed\n")
        assert load_config(path) == MigrationConfig()

    def test_non_mapping_is_rejected(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="YAML mapping"):
            load_config(path)


class TestCreateDefaultConfig:
    def test_creates_loadable_file(self, tmp_path):
        path = tmp_path / "config.yaml"

        assert create_default_config(path) is True

        raw = yaml.safe_load(path.read_text())
        assert raw["batch_size"] == DEFAULT_BATCH_SIZE
        assert load_config(path) == MigrationConfig()

    def test_does_not_overwrite(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("batch_size: 7\n")

        assert create_default_config(path) is False
        assert path.read_text() == "batch_size: 7\n"
