"""Timestamp helpers shared by filters, providers, and configuration."""

from __future__ import annotations

import datetime

EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def ensure_aware(value: datetime.datetime) -> datetime.datetime:
    """Return ``value`` as a timezone-aware datetime, assuming UTC when naive."""
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value


def parse_timestamp(value: str | datetime.date) -> datetime.datetime:
    """Parse an ISO-8601 timestamp into an aware datetime.

    A trailing ``Z`` is accepted as UTC.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp.
    """
    if isinstance(value, datetime.datetime):
        return ensure_aware(value)
    if isinstance(value, datetime.date):
        # YAML loads bare dates as ``date`` objects
        return datetime.datetime.combine(value, datetime.time(), datetime.timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 timestamp, got {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_aware(datetime.datetime.fromisoformat(text))


def format_timestamp(value: datetime.datetime) -> str:
    """Format an aware datetime as RFC 3339 with a ``Z`` suffix for UTC."""
    value = ensure_aware(value).astimezone(datetime.timezone.utc)
    return value.isoformat().replace("+00:00", "Z")
