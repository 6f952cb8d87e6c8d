"""
REST catalog provider.

Talks to a catalog service exposing two JSON endpoints:

``POST {base_url}/query``
    Body ``{"filter": <CQL>, "start_index", "page_size", "sort_by",
    "sort_order", "requests_total_count"}``; answers
    ``{"records": [...], "total_count": int | null, "warnings": [...]}``.

``POST {base_url}/records``
    Body ``{"records": [...]}``; answers
    ``{"succeeded": [id, ...], "failed": [{"id": ..., "reason": ...}]}``.

Connection errors, rate limits and server errors are retried with
exponential backoff. Once retries run out the provider reports the
service as unavailable.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Sequence

import requests

from catalog_migrator.constants import (
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_DEFAULT_TIMEOUT,
    HTTP_MAX_BACKOFF_SECONDS,
    HTTP_RATE_LIMIT,
    HTTP_SERVER_ERROR_MIN,
    HTTP_UNPROCESSABLE_ENTITY,
)
from catalog_migrator.exceptions import (
    DestinationUnavailableError,
    FederationError,
    IngestError,
    MigratorError,
    SourceUnavailableError,
    UnsupportedQueryError,
)
from catalog_migrator.types import (
    IngestOutcome,
    QueryResult,
    QuerySpec,
    Record,
    RecordFailure,
)
from catalog_migrator.utils.logging import log_with_context

BACKOFF_FACTOR = 2.0


def _is_federation_failure(response: requests.Response) -> bool:
    return (
        response.status_code == HTTP_BAD_GATEWAY
        and "federation" in response.text.lower()
    )


def _is_retryable(response: requests.Response) -> bool:
    if _is_federation_failure(response):
        return False
    return (
        response.status_code == HTTP_RATE_LIMIT
        or response.status_code >= HTTP_SERVER_ERROR_MIN
    )


class HttpProvider:
    """Source and destination backed by a remote catalog service."""

    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_DEFAULT_TIMEOUT,
        max_retries: int = 3,
        retry_delay: float = 2,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.session = session or requests.Session()

    @property
    def description(self) -> str:
        return self.base_url

    def _post(
        self,
        path: str,
        payload: dict[str, Any],
        unavailable: type[MigratorError],
    ) -> requests.Response:
        """POST ``payload`` with retries; raise ``unavailable`` once they run out."""
        url = f"{self.base_url}{path}"
        error = ""

        for attempt in range(self.max_retries + 1):
            log_with_context(
                logging.DEBUG, f"API Request: POST {url}", component="http"
            )
            try:
                response = self.session.request(
                    "POST", url, json=payload, timeout=self.timeout
                )
            except (requests.ConnectionError, requests.Timeout) as e:
                error = f"{type(e).__name__}: {e}"
                log_with_context(
                    logging.WARNING,
                    f"Request to {url} failed: {error}",
                    component="http",
                )
            else:
                log_with_context(
                    logging.DEBUG,
                    f"API Response: {response.status_code} from {url}",
                    component="http",
                )
                if not _is_retryable(response):
                    return response
                error = f"HTTP {response.status_code}"
                log_with_context(
                    logging.WARNING,
                    f"Encountered {response.status_code} {response.reason}",
                    component="http",
                )

            if attempt < self.max_retries:
                sleep_time = min(
                    self.retry_delay * (BACKOFF_FACTOR**attempt), HTTP_MAX_BACKOFF_SECONDS
                )
                log_with_context(
                    logging.INFO,
                    f"Retrying in {sleep_time:.1f} seconds...",
                    component="http",
                )
                time.sleep(sleep_time)

        log_with_context(
            logging.ERROR, f"Max retries reached. Last error: {error}", component="http"
        )
        raise unavailable(
            f"{url} unavailable after {self.max_retries + 1} attempt(s): {error}"
        )

    @staticmethod
    def _json(
        response: requests.Response, invalid: type[MigratorError]
    ) -> dict[str, Any]:
        """Decode a JSON object body; raise ``invalid`` for anything else."""
        try:
            body = response.json()
        except ValueError as e:
            raise invalid(f"Invalid JSON from {response.url}: {e}") from e
        if not isinstance(body, dict):
            raise invalid(
                f"Expected a JSON object from {response.url}, got {type(body).__name__}"
            )
        return body

    @staticmethod
    def _list(body: dict[str, Any], key: str, invalid: type[MigratorError]) -> list:
        value = body.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise invalid(f"Expected '{key}' to be a list, got {type(value).__name__}")
        return value

    def query(self, spec: QuerySpec) -> QueryResult:
        payload = {
            "filter": spec.filter.to_cql(),
            "start_index": spec.start_index,
            "page_size": spec.page_size,
            "sort_by": spec.sort_by.property,
            "sort_order": spec.sort_by.order,
            "requests_total_count": spec.requests_total_count,
        }
        response = self._post("/query", payload, SourceUnavailableError)

        if _is_federation_failure(response):
            raise FederationError(f"Federated query failed: {response.text}")
        if response.status_code in (HTTP_BAD_REQUEST, HTTP_UNPROCESSABLE_ENTITY):
            raise UnsupportedQueryError(
                f"Query rejected ({response.status_code}): {response.text}"
            )
        if not response.ok:
            raise SourceUnavailableError(
                f"Query failed ({response.status_code}): {response.text}"
            )

        body = self._json(response, SourceUnavailableError)
        warnings = [str(w) for w in self._list(body, "warnings", SourceUnavailableError)]
        records = []
        for raw in self._list(body, "records", SourceUnavailableError):
            try:
                records.append(Record.from_dict(raw))
            except (ValueError, TypeError, AttributeError) as e:
                warnings.append(f"Malformed record in response: {e}")
        total_count = body.get("total_count")
        if total_count is not None and (
            not isinstance(total_count, int) or isinstance(total_count, bool)
        ):
            raise SourceUnavailableError(f"Invalid total_count in response: {total_count!r}")
        return QueryResult(records=records, total_count=total_count, warnings=warnings)

    def create(self, records: Sequence[Record]) -> IngestOutcome:
        payload = {"records": [r.to_dict() for r in records]}
        try:
            response = self._post("/records", payload, DestinationUnavailableError)
        except (TypeError, requests.exceptions.InvalidJSONError) as e:
            raise IngestError(f"Batch is not JSON serializable: {e}") from e

        if not response.ok:
            raise IngestError(
                f"Batch rejected ({response.status_code}): {response.text}"
            )

        body = self._json(response, IngestError)
        failed = []
        for entry in self._list(body, "failed", IngestError):
            if not isinstance(entry, dict) or "id" not in entry:
                raise IngestError(f"Malformed failure entry in response: {entry!r}")
            failed.append(
                RecordFailure(str(entry["id"]), str(entry.get("reason", "unknown error")))
            )
        return IngestOutcome(
            succeeded=[str(rid) for rid in self._list(body, "succeeded", IngestError)],
            failed=failed,
        )
