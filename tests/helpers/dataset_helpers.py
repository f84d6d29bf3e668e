"""Assertion helpers for in-memory datasets.

These helpers inspect an InMemoryFileSystemService after an operation:
whether every internal link still resolves, and what the dataset looks like
as a plain dictionary.
"""

import posixpath
from typing import Dict, List

from src.file_system.in_memory_fs import InMemoryFileSystemService
from src.file_system.utils import is_external_link
from src.markdown.link_processor import split_link_parts
from src.markdown.markdown_parser import extract_links


def broken_links(fs: InMemoryFileSystemService, dataset_root: str) -> List[str]:
    """Return ``"file -> href"`` for every internal link whose target is missing.

    Relative links resolve from the linking file's directory and root-style
    links from ``dataset_root``.
    """
    broken = []
    for file in fs.list_files(dataset_root):
        if not file.endswith('.md'):
            continue
        for link in extract_links(fs.files[file]):
            if not link.href or is_external_link(link.href):
                continue
            path = split_link_parts(link.href).path
            if path.startswith('/'):
                target = posixpath.join(dataset_root, path.lstrip('/'))
            else:
                target = posixpath.join(posixpath.dirname(file), path)
            target = posixpath.normpath(target)
            if target not in fs.files and target not in fs.dirs:
                broken.append(f"{file} -> {link.href}")
    return broken


def assert_links_resolve(fs: InMemoryFileSystemService, dataset_root: str) -> None:
    """Assert that no internal link in the dataset is broken."""
    broken = broken_links(fs, dataset_root)
    assert broken == [], f"Broken links: {broken}"


def snapshot(fs: InMemoryFileSystemService) -> Dict[str, str]:
    return dict(fs.files)
