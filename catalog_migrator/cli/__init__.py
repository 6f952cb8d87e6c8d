"""Command-line interface for the catalog migration tool."""
