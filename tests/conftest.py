"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

from src.file_system.in_memory_fs import InMemoryFileSystemService
from tests.fixtures.sample_datasets import DATASET_ROOT, GUIDES_DATASET, SKILLS_DATASET

# Operations log every copied file at INFO; keep test output readable
logging.getLogger("src").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def restore_src_logger():
    """Drop handlers the CLI attaches to the 'src' logger during a test."""
    app_logger = logging.getLogger("src")
    handlers = list(app_logger.handlers)
    level = app_logger.level
    yield
    for handler in app_logger.handlers[:]:
        if handler not in handlers:
            app_logger.removeHandler(handler)
            handler.close()
    app_logger.setLevel(level)


@pytest.fixture
def dataset_root() -> str:
    return DATASET_ROOT


@pytest.fixture
def guides_fs() -> InMemoryFileSystemService:
    """In-memory dataset with guides/, reference/ and a root index."""
    return InMemoryFileSystemService(dict(GUIDES_DATASET))


@pytest.fixture
def skills_fs() -> InMemoryFileSystemService:
    """In-memory dataset with nested skill folders under source/."""
    return InMemoryFileSystemService(dict(SKILLS_DATASET))
