"""Resolve provider instances from the URIs given on the command line."""

from __future__ import annotations

from typing import Optional, Union

from catalog_migrator.core.config import HttpConfig
from catalog_migrator.exceptions import ConfigError
from catalog_migrator.providers.file import FileProvider
from catalog_migrator.providers.http import HttpProvider
from catalog_migrator.providers.memory import MemoryProvider

Provider = Union[FileProvider, HttpProvider, MemoryProvider]

SUPPORTED_SCHEMES = ("memory:", "file:", "http://", "https://")


def resolve_provider(uri: str, http_config: Optional[HttpConfig] = None) -> Provider:
    """Build the provider a URI names.

    Supported forms: ``memory:``, ``file:<path>`` (or a bare path ending in
    ``.jsonl``), and ``http://`` / ``https://`` base URLs.

    Raises:
        ConfigError: If the URI uses an unknown scheme.
    """
    uri = uri.strip()
    if uri == "memory:":
        return MemoryProvider()
    if uri.startswith("file:"):
        path = uri[len("file:") :]
        if path.startswith("//"):
            path = path[2:]
        if not path:
            raise ConfigError("file: provider requires a path")
        return FileProvider(path)
    if uri.startswith(("http://", "https://")):
        http_config = http_config or HttpConfig()
        return HttpProvider(
            uri,
            timeout=http_config.timeout,
            max_retries=http_config.max_retries,
            retry_delay=http_config.retry_delay,
        )
    if uri.endswith(".jsonl"):
        return FileProvider(uri)
    raise ConfigError(
        f"Unsupported provider '{uri}'. Expected one of: {', '.join(SUPPORTED_SCHEMES)}"
    )
