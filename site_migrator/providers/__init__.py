"""Content sources and destinations."""

__all__ = [
    "base",
    "dry_run",
    "filesystem",
    "memory",
]
