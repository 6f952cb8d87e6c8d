"""Shared utilities for logging and timestamp handling."""

__all__ = [
    "logging",
    "timestamps",
]
