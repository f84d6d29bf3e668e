"""Test fixtures for content-sync tests.

This module provides sample Markdown datasets used by the unit and
integration tests.
"""

from .sample_datasets import DATASET_ROOT, GUIDES_DATASET, SKILLS_DATASET

__all__ = [
    "DATASET_ROOT",
    "GUIDES_DATASET",
    "SKILLS_DATASET",
]
