"""Core migration logic: filters, paging, ingest and the batch loop."""

__all__ = [
    "config",
    "duplicator",
    "filters",
    "ingest",
    "query",
    "reporter",
    "state",
]
