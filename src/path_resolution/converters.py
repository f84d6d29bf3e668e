"""Conversions between absolute paths and dataset-relative posix paths."""

import posixpath


def convert_to_relative(base_dir: str, target_path: str) -> str:
    """Return ``target_path`` relative to ``base_dir`` as a posix path.

    Identical paths yield ``'./'`` rather than ``'.'``.
    """
    rel = posixpath.relpath(target_path.replace('\\', '/'), base_dir.replace('\\', '/'))
    if rel == '.':
        return './'
    return rel


def convert_to_absolute(base_dir: str, relative_path: str) -> str:
    """Resolve ``relative_path`` against ``base_dir`` into a normalized absolute path."""
    base_dir = base_dir.replace('\\', '/')
    relative_path = relative_path.replace('\\', '/')
    return posixpath.normpath(posixpath.join(base_dir, relative_path))
