#!/usr/bin/env python3
"""
Main execution module for the catalog migration tool
"""

from catalog_migrator.cli.commands import main

if __name__ == "__main__":
    main()
