"""Core migration logic including configuration and orchestration."""

__all__ = [
    "config",
    "context",
    "eraser",
    "migrator",
    "provisioner",
    "record_sync",
    "state",
    "tree_mirror",
]
