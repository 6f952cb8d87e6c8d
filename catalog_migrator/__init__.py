#!/usr/bin/env python3
"""
Batch migration of catalog records between providers
"""

__version__ = "0.1.0"

from catalog_migrator.core.config import MigrationConfig, load_config

# Import the main classes and functions for easier access
from catalog_migrator.core.duplicator import BatchDuplicator
from catalog_migrator.core.filters import CqlFilterParser, build_filter
from catalog_migrator.core.ingest import ingest
from catalog_migrator.core.query import fetch_page
from catalog_migrator.core.reporter import MigrationSummary, format_summary
from catalog_migrator.types import Record, RunStatus
