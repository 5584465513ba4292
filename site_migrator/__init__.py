#!/usr/bin/env python3
"""
Site content migration tool
"""

__version__ = "0.1.0"

from site_migrator.core.config import MigrationConfig, load_config

# Import the main classes and functions for easier access
from site_migrator.core.eraser import erase_all_records
from site_migrator.core.migrator import SiteMigrator
from site_migrator.core.provisioner import ListProvisioner
from site_migrator.core.record_sync import RecordSynchronizer
from site_migrator.core.tree_mirror import TreeMirror
from site_migrator.providers.base import ContentDestination, ContentSource
