"""
Configuration module for the catalog migration tool.

This module provides functions for loading migration settings from YAML
files, creating a default configuration file, and validating the batch
size bounds every run must satisfy before it starts querying.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from catalog_migrator.constants import (
    DEFAULT_BATCH_SIZE,
    HTTP_DEFAULT_TIMEOUT,
    MAX_BATCH_SIZE,
    MODIFIED_PROPERTY,
    TEMPORAL_PROPERTIES,
)
from catalog_migrator.exceptions import ConfigError
from catalog_migrator.utils.logging import log_with_context
from catalog_migrator.utils.timestamps import parse_timestamp


@dataclass
class HttpConfig:
    """Transport settings for HTTP providers."""

    timeout: float = HTTP_DEFAULT_TIMEOUT
    max_retries: int = 3
    retry_delay: float = 2

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> HttpConfig:
        if not data:
            return cls()
        return cls(
            timeout=data.get("timeout", HTTP_DEFAULT_TIMEOUT),
            max_retries=data.get("max_retries", 3),
            retry_delay=data.get("retry_delay", 2),
        )


@dataclass
class MigrationConfig:
    """Typed configuration for the migration tool.

    Values given on the command line take precedence over these.
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    cql_filter: str | None = None

    # Default (time-windowed) filter
    temporal_property: str = MODIFIED_PROPERTY
    start_time: datetime.datetime | None = None
    end_time: datetime.datetime | None = None
    last_seconds: int = 0
    last_minutes: int = 0
    last_hours: int = 0
    last_days: int = 0
    last_weeks: int = 0

    max_records: int | None = None
    write_failed_records: bool = True

    http: HttpConfig = field(default_factory=HttpConfig)

    def __post_init__(self) -> None:
        if self.temporal_property not in TEMPORAL_PROPERTIES:
            raise ConfigError(
                f"Invalid temporal_property '{self.temporal_property}'. "
                f"Valid values: {', '.join(TEMPORAL_PROPERTIES)}"
            )
        if (
            self.start_time is not None
            and self.end_time is not None
            and self.start_time > self.end_time
        ):
            raise ConfigError(
                f"start_time {self.start_time.isoformat()} is after "
                f"end_time {self.end_time.isoformat()}"
            )

    @property
    def has_relative_window(self) -> bool:
        """True when any of the ``last_*`` options is set."""
        return any(
            (
                self.last_seconds,
                self.last_minutes,
                self.last_hours,
                self.last_days,
                self.last_weeks,
            )
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """Create a MigrationConfig from a raw config dictionary."""
        return cls(
            batch_size=data.get("batch_size", DEFAULT_BATCH_SIZE),
            cql_filter=data.get("cql_filter") or None,
            temporal_property=data.get("temporal_property", MODIFIED_PROPERTY),
            start_time=_optional_timestamp(data, "start_time"),
            end_time=_optional_timestamp(data, "end_time"),
            last_seconds=data.get("last_seconds", 0),
            last_minutes=data.get("last_minutes", 0),
            last_hours=data.get("last_hours", 0),
            last_days=data.get("last_days", 0),
            last_weeks=data.get("last_weeks", 0),
            max_records=data.get("max_records"),
            write_failed_records=data.get("write_failed_records", True),
            http=HttpConfig.from_dict(data.get("http")),
        )


def _optional_timestamp(data: dict[str, Any], key: str) -> datetime.datetime | None:
    value = data.get(key)
    if value in (None, ""):
        return None
    try:
        return parse_timestamp(value)
    except ValueError as e:
        raise ConfigError(f"Invalid {key} '{value}': {e}") from e


def validate_batch_size(batch_size: int) -> None:
    """Check that a batch size lies within ``[1, MAX_BATCH_SIZE]``.

    Raises:
        ConfigError: If the batch size is out of range.
    """
    if not isinstance(batch_size, int) or isinstance(batch_size, bool):
        raise ConfigError(f"Batch Size must be an integer, got {batch_size!r}.")
    if batch_size < 1 or batch_size > MAX_BATCH_SIZE:
        raise ConfigError(f"Batch Size must be between 1 and {MAX_BATCH_SIZE}.")


def load_config(config_path: Path) -> MigrationConfig:
    """
    Load configuration from YAML file and apply default values.

    If the file doesn't exist or can't be read, a warning is logged and
    default settings are used. Invalid values raise ConfigError.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigrationConfig with all necessary defaults applied
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
                # Handle None result from empty file
                if loaded_config is not None:
                    raw = loaded_config
            log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
        except (yaml.YAMLError, OSError) as e:
            log_with_context(
                logging.WARNING, f"Failed to load config file {config_path}: {e}"
            )
    else:
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using default settings",
        )

    if not isinstance(raw, dict):
        raise ConfigError(f"Config file {config_path} must contain a YAML mapping")

    return MigrationConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with recommended settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "batch_size": DEFAULT_BATCH_SIZE,
        # A CQL expression replaces the default time-windowed filter
        "cql_filter": "",
        "temporal_property": MODIFIED_PROPERTY,
        "start_time": "",
        "end_time": "",
        "last_hours": 0,
        "last_days": 0,
        "max_records": None,
        "write_failed_records": True,
        "http": {
            "timeout": HTTP_DEFAULT_TIMEOUT,
            "max_retries": 3,
            "retry_delay": 2,
        },
    }

    try:
        with open(output_path, "w") as f:
            f.write(f"# Batch size must be between 1 and {MAX_BATCH_SIZE}\n")
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False
