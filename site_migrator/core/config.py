"""
Configuration module for the site content migration tool.

This module provides functions for loading configuration settings from YAML
files, creating a default configuration, and deciding which source lists
should be processed based on the configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from site_migrator.exceptions import ConfigError
from site_migrator.types import DEFAULT_RECORD_ATTRIBUTES
from site_migrator.utils.logging import log_with_context


def _string_list(data: dict[str, Any], key: str, default: list[str]) -> list[str]:
    value = data.get(key)
    if value is None:
        return list(default)
    if not isinstance(value, list):
        raise ConfigError(f"{key} must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _flag(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ConfigError(f"{key} must be true or false, got {value!r}")
    return value


@dataclass
class MigrationConfig:
    """Typed configuration for the migration tool.

    All fields have defaults, so an empty or missing config file yields a
    working configuration.
    """

    # List filtering
    include_lists: list[str] = field(default_factory=list)
    exclude_lists: list[str] = field(default_factory=list)

    # Concurrency
    max_workers: int = 4

    # Retry
    max_retries: int = 3
    retry_delay: float = 2
    max_retry_delay: float = 60

    # Record sync
    record_attributes: list[str] = field(
        default_factory=lambda: list(DEFAULT_RECORD_ATTRIBUTES)
    )
    stamp_source_id: bool = True
    source_id_field: str = "SourceItemId"

    # Maintenance and traversal limits
    erase_page_size: int = 1000
    max_folder_depth: int = 64

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.max_retries < 0:
            raise ConfigError(f"max_retries must be non-negative, got {self.max_retries}")
        if self.retry_delay < 0 or self.max_retry_delay < 0:
            raise ConfigError("retry delays must be non-negative")
        if self.erase_page_size < 1:
            raise ConfigError(
                f"erase_page_size must be at least 1, got {self.erase_page_size}"
            )
        if self.max_folder_depth < 1:
            raise ConfigError(
                f"max_folder_depth must be at least 1, got {self.max_folder_depth}"
            )
        if not self.record_attributes:
            raise ConfigError("record_attributes must name at least one attribute")
        if self.stamp_source_id and not self.source_id_field:
            raise ConfigError("source_id_field is required when stamp_source_id is set")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        """Create a MigrationConfig from a raw config dictionary."""
        defaults = cls()
        try:
            return cls(
                include_lists=_string_list(data, "include_lists", []),
                exclude_lists=_string_list(data, "exclude_lists", []),
                max_workers=int(data.get("max_workers", defaults.max_workers)),
                max_retries=int(data.get("max_retries", defaults.max_retries)),
                retry_delay=float(data.get("retry_delay", defaults.retry_delay)),
                max_retry_delay=float(
                    data.get("max_retry_delay", defaults.max_retry_delay)
                ),
                record_attributes=_string_list(
                    data, "record_attributes", defaults.record_attributes
                ),
                stamp_source_id=_flag(data, "stamp_source_id", defaults.stamp_source_id),
                source_id_field=str(
                    data.get("source_id_field", defaults.source_id_field)
                ),
                erase_page_size=int(
                    data.get("erase_page_size", defaults.erase_page_size)
                ),
                max_folder_depth=int(
                    data.get("max_folder_depth", defaults.max_folder_depth)
                ),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


def load_config(config_path: Path) -> MigrationConfig:
    """
    Load configuration from YAML file and apply default values.

    If the file doesn't exist or cannot be parsed, a warning is logged and
    default settings are used.  Values that parse but are out of range raise
    ``ConfigError``.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigrationConfig with all necessary defaults applied
    """
    raw: dict[str, Any] = {}

    if config_path.exists():
        try:
            with open(config_path) as f:
                loaded_config = yaml.safe_load(f)
                # Handle None result from empty file
                if loaded_config is not None:
                    if not isinstance(loaded_config, dict):
                        raise ConfigError(
                            f"Config file {config_path} must contain a mapping"
                        )
                    raw = loaded_config
            log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
        except (yaml.YAMLError, OSError) as e:
            log_with_context(
                logging.WARNING, f"Failed to load config file {config_path}: {e}"
            )
    else:
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using default settings",
        )

    return MigrationConfig.from_dict(raw)


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with recommended settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        "include_lists": [],
        "exclude_lists": ["Site Assets", "Style Library"],
        "max_workers": 4,
        # Retry options
        "max_retries": 3,
        "retry_delay": 2,
        "max_retry_delay": 60,
        # Record sync options
        "record_attributes": list(DEFAULT_RECORD_ATTRIBUTES),
        "stamp_source_id": True,
        "source_id_field": "SourceItemId",
        "erase_page_size": 1000,
        "max_folder_depth": 64,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False


def should_process_list(list_title: str, config: MigrationConfig) -> bool:
    """
    Determine if a source list should be processed based on configuration filters.

    1. If an include_lists list is specified, only those lists are processed
    2. Otherwise all lists are processed except those in exclude_lists

    Args:
        list_title: The title of the source list
        config: The MigrationConfig instance

    Returns:
        True if the list should be processed, False if it should be skipped
    """
    include_lists = set(config.include_lists)
    if include_lists:
        if list_title in include_lists:
            log_with_context(
                logging.DEBUG,
                f"LIST CHECK: List '{list_title}' is in include list, will process",
            )
            return True
        log_with_context(
            logging.DEBUG,
            f"LIST CHECK: List '{list_title}' not in include list, skipping",
        )
        return False

    if list_title in set(config.exclude_lists):
        log_with_context(
            logging.DEBUG,
            f"LIST CHECK: List '{list_title}' is in exclude list, skipping",
        )
        return False

    return True
