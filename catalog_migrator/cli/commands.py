#!/usr/bin/env python3
"""
Command-line entry point for the catalog migration tool.

Importing the command modules registers their subcommands on the shared
``cli`` group.
"""

from catalog_migrator.cli import config_cmd, migrate_cmd  # noqa: F401
from catalog_migrator.cli.common import cli, handle_exception
from catalog_migrator.cli.migrate_cmd import MigrationOrchestrator

__all__ = ["MigrationOrchestrator", "cli", "handle_exception", "main"]


def main() -> None:
    """Main entry point for the catalog migration tool."""
    cli()


if __name__ == "__main__":
    main()
