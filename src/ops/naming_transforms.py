"""Flatten and prefix naming transforms with collision detection.

Flatten collapses a nested directory path into one segment joined by ``-``;
prefix prepends ``"<prefix>-"`` to the top-level segment. Transforms are
pure, so the same input and options always produce the same name.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Set, Union

FLATTEN_SEPARATOR = '-'


def flatten_path(dir_name: str) -> str:
    """Join the segments of ``dir_name`` with ``-``.

    Example:
        >>> flatten_path('navigator/next')
        'navigator-next'
    """
    trimmed = dir_name.strip('/')
    if not trimmed:
        return ''
    return FLATTEN_SEPARATOR.join(s for s in trimmed.split('/') if s)


def prefix_path(dir_name: str, prefix: Optional[str]) -> str:
    """Prefix the top-level segment of ``dir_name``.

    Example:
        >>> prefix_path('navigator/next', 'pair')
        'pair-navigator/next'
    """
    if not prefix or not dir_name:
        return dir_name
    top, sep, rest = dir_name.partition('/')
    return f"{prefix}{FLATTEN_SEPARATOR}{top}{sep}{rest}"


def transform_path(rel_dir: str, flatten: bool = False, prefix: Optional[str] = None) -> str:
    """Apply flatten (first) and prefix (second) to a source-relative directory.

    ``'.'`` and ``''`` name the source root itself and are never transformed.
    """
    rel_dir = rel_dir.replace('\\', '/')
    if rel_dir in ('', '.', './'):
        return rel_dir
    if rel_dir.startswith('./'):
        rel_dir = rel_dir[2:]
    result = rel_dir.strip('/')
    if flatten:
        result = flatten_path(result)
    if prefix:
        result = prefix_path(result, prefix)
    return result


def detect_collisions(candidates: Union[Mapping[str, str], Iterable[str]]) -> List[str]:
    """Return every transformed name produced by more than one original.

    Args:
        candidates: Either a mapping of original directory to transformed
            name, or an iterable of transformed names (one per original)

    Returns:
        Sorted list of colliding names; empty when all names are distinct
    """
    if isinstance(candidates, Mapping):
        origins: Dict[str, Set[str]] = defaultdict(set)
        for original, transformed in candidates.items():
            origins[transformed].add(original)
        return sorted(name for name, sources in origins.items() if len(sources) > 1)

    seen: Set[str] = set()
    duplicates: Set[str] = set()
    for name in candidates:
        if name in seen:
            duplicates.add(name)
        seen.add(name)
    return sorted(duplicates)
