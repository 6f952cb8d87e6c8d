"""Provider interfaces and the built-in file, HTTP and in-memory providers."""

__all__ = [
    "base",
    "file",
    "http",
    "memory",
    "registry",
]
