"""Async file system services used by the path operations.

Every operation in ``src.ops`` performs its I/O through a FileSystemService,
which makes the local disk, an in-memory tree and a fault-injecting wrapper
interchangeable.
"""

from .file_system_service import DirEntry, FileStat, FileSystemService, LocalFileSystemService
from .in_memory_fs import FaultInjectingFileSystemService, InMemoryFileSystemService
from .errors import InjectedFaultError
from .utils import (
    is_external_link,
    is_strictly_within,
    is_within,
    normalize_link_slashes,
    strip_anchor,
    walk_markdown_files,
)

__all__ = [
    'DirEntry',
    'FileStat',
    'FileSystemService',
    'LocalFileSystemService',
    'InMemoryFileSystemService',
    'FaultInjectingFileSystemService',
    'InjectedFaultError',
    'walk_markdown_files',
    'is_external_link',
    'is_within',
    'is_strictly_within',
    'normalize_link_slashes',
    'strip_anchor',
]
