"""Unit tests for provider URI resolution."""

from __future__ import annotations

import pytest

from catalog_migrator.core.config import HttpConfig
from catalog_migrator.exceptions import ConfigError
from catalog_migrator.providers.base import describe_provider
from catalog_migrator.providers.file import FileProvider
from catalog_migrator.providers.http import HttpProvider
from catalog_migrator.providers.memory import MemoryProvider
from catalog_migrator.providers.registry import resolve_provider


class TestResolveProvider:
    def test_memory(self):
        assert isinstance(resolve_provider("memory:"), MemoryProvider)

    @pytest.mark.parametrize(
        "uri, path",
        [
            ("file:data/records.jsonl", "data/records.jsonl"),
            ("file:///tmp/records.jsonl", "/tmp/records.jsonl"),
            ("records.jsonl", "records.jsonl"),
        ],
    )
    def test_file(self, uri, path):
        provider = resolve_provider(uri)
        assert isinstance(provider, FileProvider)
        assert str(provider.path) == path

    def test_file_without_path(self):
        with pytest.raises(ConfigError, match="requires a path"):
            resolve_provider("file:")

    def test_http_uses_transport_settings(self):
        provider = resolve_provider(
            "https://catalog.example.com/api/",
            HttpConfig(timeout=7, max_retries=1, retry_delay=0.5),
        )
        assert isinstance(provider, HttpProvider)
        assert provider.base_url == "https://catalog.example.com/api"
        assert (provider.timeout, provider.max_retries, provider.retry_delay) == (7, 1, 0.5)

    def test_unknown_scheme(self):
        with pytest.raises(ConfigError, match="Unsupported provider"):
            resolve_provider("ftp://example.com")


class TestDescribeProvider:
    def test_uses_description(self):
        assert describe_provider(MemoryProvider()) == "memory"

    def test_falls_back_to_class_name(self):
        class Catalog:
            pass

        assert describe_provider(Catalog()) == "Catalog"
