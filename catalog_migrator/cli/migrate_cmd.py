"""CLI command handler for the migrate workflow."""

from __future__ import annotations

import dataclasses
import logging
import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Optional, Protocol

import click

from catalog_migrator.cli.common import cli, common_options, handle_exception
from catalog_migrator.cli.report import (
    create_migration_output_directory,
    generate_report,
    write_failed_records,
)
from catalog_migrator.constants import (
    CONFIRMATION_ANSWER,
    CONFIRMATION_QUESTION,
    OUTPUT_ROOT,
    TEMPORAL_PROPERTIES,
)
from catalog_migrator.core.config import MigrationConfig, load_config, validate_batch_size
from catalog_migrator.core.duplicator import BatchDuplicator
from catalog_migrator.core.filters import (
    CqlFilterParser,
    FilterParser,
    build_filter,
    resolve_time_window,
)
from catalog_migrator.core.reporter import MigrationSummary, format_summary
from catalog_migrator.exceptions import ConfigError, MigrationAbortedError
from catalog_migrator.providers.base import Clock, SystemClock, describe_provider
from catalog_migrator.providers.registry import resolve_provider
from catalog_migrator.utils.logging import (
    log_with_context,
    setup_logger,
    setup_main_log_file,
)

# ---------------------------------------------------------------------------
# Confirmation prompt
# ---------------------------------------------------------------------------


class Prompt(Protocol):
    def ask(self, question: str) -> str: ...


class ClickPrompt:
    """Reads the answer from the terminal."""

    def ask(self, question: str) -> str:
        try:
            return click.prompt(question, default="", show_default=False)
        except click.Abort:
            return ""


def is_confirmed(answer: Optional[str]) -> bool:
    """True only for a case-insensitive ``yes``."""
    return (answer or "").strip().lower() == CONFIRMATION_ANSWER


# ---------------------------------------------------------------------------
# migrate subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option("--source", required=True, help="Provider to read records FROM")
@click.option("--destination", required=True, help="Provider to write records TO")
@click.option(
    "--batch_size",
    type=int,
    default=None,
    help="Number of records per page and per create call (1-1000)",
)
@click.option("--cql", default=None, help="CQL filter selecting the records to migrate")
@click.option(
    "--temporal_property",
    type=click.Choice(TEMPORAL_PROPERTIES),
    default=None,
    help="Timestamp used by the default time-windowed filter",
)
@click.option("--last_seconds", type=int, default=None, help="Only records from the last N seconds")
@click.option("--last_minutes", type=int, default=None, help="Only records from the last N minutes")
@click.option("--last_hours", type=int, default=None, help="Only records from the last N hours")
@click.option("--last_days", type=int, default=None, help="Only records from the last N days")
@click.option("--last_weeks", type=int, default=None, help="Only records from the last N weeks")
@click.option("--max_records", type=int, default=None, help="Stop after reading N records")
@click.option(
    "--yes",
    "-y",
    "assume_yes",
    is_flag=True,
    default=False,
    help="Skip the confirmation prompt",
)
@click.option("--no_progress", is_flag=True, default=False, help="Hide the progress bar")
def migrate(
    config: str,
    verbose: bool,
    json_logs: bool,
    source: str,
    destination: str,
    batch_size: Optional[int],
    cql: Optional[str],
    temporal_property: Optional[str],
    last_seconds: Optional[int],
    last_minutes: Optional[int],
    last_hours: Optional[int],
    last_days: Optional[int],
    last_weeks: Optional[int],
    max_records: Optional[int],
    assume_yes: bool,
    no_progress: bool,
) -> None:
    """Migrate records from one provider to another in batches."""
    args = SimpleNamespace(
        config=config,
        verbose=verbose,
        json_logs=json_logs,
        source=source,
        destination=destination,
        batch_size=batch_size,
        cql=cql,
        temporal_property=temporal_property,
        last_seconds=last_seconds,
        last_minutes=last_minutes,
        last_hours=last_hours,
        last_days=last_days,
        last_weeks=last_weeks,
        max_records=max_records,
        assume_yes=assume_yes,
        show_progress=not no_progress,
    )

    # Output directory and log file are created after confirmation
    setup_logger(verbose, json_logs=json_logs)

    orchestrator = MigrationOrchestrator(args, prompt=ClickPrompt(), output_root=OUTPUT_ROOT)
    try:
        orchestrator.run()
    except Exception as e:
        handle_exception(e)
        sys.exit(1)
    except KeyboardInterrupt as e:
        handle_exception(e)
        sys.exit(130)


# ---------------------------------------------------------------------------
# MigrationOrchestrator
# ---------------------------------------------------------------------------


class MigrationOrchestrator:
    """Validates the request, asks for confirmation, and drives one run."""

    def __init__(
        self,
        args: SimpleNamespace,
        prompt: Prompt,
        *,
        output_dir: Optional[str] = None,
        output_root: Optional[str] = None,
        clock: Optional[Clock] = None,
        parser: Optional[FilterParser] = None,
        source=None,
        destination=None,
    ) -> None:
        self.args = args
        self.prompt = prompt
        self.output_dir = output_dir
        self.output_root = output_root
        self.clock = clock or SystemClock()
        self.parser = parser or CqlFilterParser()
        self.source = source
        self.destination = destination
        self.config: Optional[MigrationConfig] = None
        self.summary: Optional[MigrationSummary] = None

    def load_settings(self) -> MigrationConfig:
        """Load the config file and apply command-line overrides."""
        config = load_config(Path(self.args.config))
        overrides = {
            name: getattr(self.args, name)
            for name in (
                "batch_size",
                "temporal_property",
                "last_seconds",
                "last_minutes",
                "last_hours",
                "last_days",
                "last_weeks",
                "max_records",
            )
            if getattr(self.args, name, None) is not None
        }
        if getattr(self.args, "cql", None):
            overrides["cql_filter"] = self.args.cql
        return dataclasses.replace(config, **overrides)

    def resolve_providers(self, config: MigrationConfig) -> None:
        if self.source is None or self.destination is None:
            if self.args.source.strip() == self.args.destination.strip():
                raise ConfigError(
                    "Not enough providers to migrate: source and destination are the same"
                )
            self.source = resolve_provider(self.args.source, config.http)
            self.destination = resolve_provider(self.args.destination, config.http)

    def confirm(self) -> bool:
        """Show the FROM/TO providers and ask the user to continue."""
        click.echo(f'The "FROM" provider is: {describe_provider(self.source)}')
        click.echo(f'The "TO" provider is: {describe_provider(self.destination)}')
        if self.args.assume_yes:
            return True
        answer = self.prompt.ask(CONFIRMATION_QUESTION)
        if not is_confirmed(answer):
            click.echo()
            click.echo("Now exiting...")
            log_with_context(logging.INFO, "Migration cancelled by user.")
            return False
        return True

    def build_run_filter(self, config: MigrationConfig):
        if config.cql_filter and (config.has_relative_window or config.start_time):
            log_with_context(
                logging.WARNING,
                "A CQL filter was given; time window options are ignored",
            )
        now = self.clock.now()
        start = config.start_time
        if config.has_relative_window:
            try:
                start = resolve_time_window(
                    config.end_time or now,
                    last_seconds=config.last_seconds,
                    last_minutes=config.last_minutes,
                    last_hours=config.last_hours,
                    last_days=config.last_days,
                    last_weeks=config.last_weeks,
                )
            except ValueError as e:
                raise ConfigError(str(e)) from e
        return build_filter(
            config.cql_filter,
            self.parser,
            self.clock,
            start=start,
            end=config.end_time or now,
            temporal_property=config.temporal_property,
        )

    def open_output_directory(self) -> None:
        """Create the run output directory and start the main log file in it."""
        if self.output_dir is None:
            if self.output_root is None:
                return
            self.output_dir = create_migration_output_directory(self.output_root)
        setup_main_log_file(self.output_dir, getattr(self.args, "json_logs", False))
        log_with_context(logging.INFO, f"Output directory: {self.output_dir}")

    def run(self) -> Optional[MigrationSummary]:
        """Execute the migration.

        Returns:
            The run summary, or None if the user declined to continue.

        Raises:
            ConfigError: Invalid batch size, record limit or providers.
            FilterParseError: The CQL filter could not be parsed.
            MigrationAbortedError: A page query failed and the run aborted.
        """
        config = self.load_settings()
        self.config = config
        validate_batch_size(config.batch_size)
        self.resolve_providers(config)

        if not self.confirm():
            return None
        self.open_output_directory()

        run_filter = self.build_run_filter(config)
        duplicator = BatchDuplicator(
            self.source,
            self.destination,
            config.batch_size,
            clock=self.clock,
            max_records=config.max_records,
            show_progress=getattr(self.args, "show_progress", False),
        )

        click.echo("Starting migration.")
        summary = duplicator.run(run_filter)
        self.summary = summary

        click.echo()
        click.echo(format_summary(summary))
        self.write_outputs(summary, config, run_filter)

        if not summary.completed:
            raise MigrationAbortedError(
                f"Migration aborted: {summary.abort_reason}"
            )
        return summary

    def write_outputs(self, summary: MigrationSummary, config: MigrationConfig, run_filter) -> None:
        if not self.output_dir:
            return
        details = {
            "source": describe_provider(self.source),
            "destination": describe_provider(self.destination),
            "filter": run_filter.to_cql(),
            "batch_size": config.batch_size,
            "max_records": config.max_records,
        }
        try:
            generate_report(summary, self.output_dir, details)
            if config.write_failed_records:
                write_failed_records(summary, self.output_dir)
        except OSError as e:
            log_with_context(
                logging.WARNING, f"Failed to write migration report: {e}"
            )
