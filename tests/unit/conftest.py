"""Unit test configuration and shared fixtures."""

from __future__ import annotations

import logging
from typing import Any

import pytest

from site_migrator.core.config import MigrationConfig
from site_migrator.core.context import MigrationContext


@pytest.fixture(autouse=True)
def _clean_logger():
    """Remove all handlers from the site_migrator logger before and after each test."""
    logger = logging.getLogger("site_migrator")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    yield
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()


@pytest.fixture()
def make_context(source, destination):
    """Factory for a MigrationContext over the in-memory source and destination.

    Keyword arguments matching ``MigrationConfig`` fields go into the config,
    everything else into the context (e.g. ``dry_run``, ``destination``).
    """

    def _make(**kwargs: Any) -> MigrationContext:
        config_fields = set(MigrationConfig.__dataclass_fields__)
        config_kwargs = {k: kwargs.pop(k) for k in list(kwargs) if k in config_fields}
        kwargs.setdefault("source", source)
        kwargs.setdefault("destination", destination)
        return MigrationContext(config=MigrationConfig(**config_kwargs), **kwargs)

    return _make
