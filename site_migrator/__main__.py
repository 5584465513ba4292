#!/usr/bin/env python3
"""
Main execution module for the site content migration tool
"""

from site_migrator.cli.commands import main

if __name__ == "__main__":
    main()
