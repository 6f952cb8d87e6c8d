"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from typing import Callable, ClassVar

import click

import catalog_migrator
from catalog_migrator.exceptions import (
    ConfigError,
    FilterParseError,
    MigrationAbortedError,
    MigratorError,
)
from catalog_migrator.utils.logging import LOGGER_NAME, log_with_context

# Create logger instance
logger = logging.getLogger(LOGGER_NAME)


# ---------------------------------------------------------------------------
# Custom click.Group that defaults to ``migrate``.
# When the first CLI token is a flag rather than a subcommand the group
# prepends ``migrate``, so ``catalog-migrator --source ... --destination ...``
# runs a migration directly.
# ---------------------------------------------------------------------------


class DefaultGroup(click.Group):
    """Click group that defaults to the ``migrate`` subcommand."""

    # Flags that belong to the group itself and should NOT trigger the
    # ``migrate`` default.
    _GROUP_FLAGS: ClassVar[set[str]] = {"--help", "--version", "-h"}

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        """Prepend ``migrate`` when the first token is a flag.

        Args:
            ctx: The current Click context.
            args: Raw CLI argument list.

        Returns:
            The (possibly modified) argument list for further parsing.
        """
        if args and args[0].startswith("-") and args[0] not in self._GROUP_FLAGS:
            args = ["migrate", *args]
        return super().parse_args(ctx, args)


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Path to config YAML",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    f = click.option(
        "--json_logs",
        is_flag=True,
        default=False,
        help="Emit log records as JSON lines",
    )(f)
    return f


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    cls=DefaultGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=catalog_migrator.__version__, prog_name="catalog-migrator")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Migrate records between catalog providers in batches.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Report an exception that ended a command.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, (ConfigError, FilterParseError)):
        log_with_context(logging.ERROR, str(e))
        click.echo(str(e), err=True)
    elif isinstance(e, MigrationAbortedError):
        log_with_context(logging.ERROR, str(e))
        log_with_context(
            logging.INFO,
            "Records migrated before the failure were kept. Re-run with a time "
            "filter (for example --last_hours) to pick up the remainder.",
        )
    elif isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, FileNotFoundError):
        log_with_context(logging.ERROR, f"File not found: {e}")
        log_with_context(
            logging.INFO,
            "Please check that all required files exist and paths are correct.",
        )
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Migration interrupted by user.")
        log_with_context(
            logging.INFO,
            "No checkpoint is kept. Re-run with an adjusted time filter to resume.",
        )
    else:
        log_with_context(logging.ERROR, f"Migration failed: {e}", exc_info=True)
