"""Destination list provisioning."""

from __future__ import annotations

import logging
from typing import Any

from site_migrator.types import ListHandle, ListType
from site_migrator.utils.logging import log_with_context


class ListProvisioner:
    """Resolves a destination list by exact title, creating it when missing.

    Calling :meth:`ensure_list` twice with the same title never creates a
    duplicate.  A list that already exists with a different type is used as
    is; the mismatch is only logged.
    """

    def __init__(self, destination: Any, log_prefix: str = "") -> None:
        self.destination = destination
        self.log_prefix = log_prefix

    def ensure_list(
        self, title: str, list_type: ListType, base_template: int | None = None
    ) -> ListHandle:
        handle = self.destination.find_list(title)
        if handle is not None:
            log_with_context(
                logging.DEBUG,
                f"Existing list: '{title}'",
                list_title=title,
            )
            if handle.list_type is not list_type:
                log_with_context(
                    logging.WARNING,
                    f"List '{title}' exists as {handle.list_type.value}, "
                    f"source is {list_type.value}; using existing list",
                    list_title=title,
                )
            return handle

        log_with_context(
            logging.INFO,
            f"{self.log_prefix}Adding list: '{title}' ({list_type.value})",
            list_title=title,
        )
        return self.destination.create_list(title, list_type, base_template)
