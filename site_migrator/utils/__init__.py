"""Shared utilities for logging and retries."""

__all__ = [
    "logging",
    "retry",
]
