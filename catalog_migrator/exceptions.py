"""Custom exception hierarchy for the catalog migration tool."""


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class FilterParseError(MigratorError):
    """Raised when a filter expression cannot be parsed."""


class QueryError(MigratorError):
    """Raised when the source provider cannot answer a page query."""


class UnsupportedQueryError(QueryError):
    """Raised when the source does not support the requested query."""


class SourceUnavailableError(QueryError):
    """Raised when the source provider cannot be reached."""


class FederationError(QueryError):
    """Raised when a federated query fails across sources."""


class IngestError(MigratorError):
    """Raised when the destination rejects a whole batch."""


class DestinationUnavailableError(IngestError):
    """Raised when the destination provider cannot be reached."""


class MigrationAbortedError(MigratorError):
    """Raised when a migration run ends in the ABORTED state."""
