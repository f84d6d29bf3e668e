"""Test helper modules for content-sync testing.

This package provides utilities for unit and integration testing:
- dataset_helpers: Link resolution checks and snapshots of in-memory datasets
"""

from .dataset_helpers import assert_links_resolve, broken_links, snapshot

__all__ = [
    'assert_links_resolve',
    'broken_links',
    'snapshot',
]
