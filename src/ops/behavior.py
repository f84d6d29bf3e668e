"""Per-folder behavior resolution.

Folder behavior tables map dataset-relative folder keys to a Behavior. Keys
are normalized before lookup, and the most specific matching key wins:
exact key, then each ancestor from nearest to farthest, then the root key
``""``, then the caller's default.
"""

from typing import Dict, Mapping, Optional

from .errors import MirrorConstraintViolationError
from .models import Behavior


def normalize_key(path: str) -> str:
    """Canonicalize a folder key: posix separators, no ``.`` or empty segments.

    Example:
        >>> normalize_key('/docs/./guides/')
        'docs/guides'
    """
    segments = path.replace('\\', '/').split('/')
    return '/'.join(s for s in segments if s not in ('', '.'))


def normalize_folder_behavior(
    folder_behavior: Optional[Mapping[str, Behavior]],
) -> Dict[str, Behavior]:
    """Return a copy of the table with normalized keys and Behavior values."""
    if not folder_behavior:
        return {}
    return {normalize_key(key): Behavior.parse(value) for key, value in folder_behavior.items()}


def resolve_behavior(
    rel_path: str,
    folder_behavior: Optional[Mapping[str, Behavior]],
    default_behavior: Behavior = Behavior.OVERWRITE,
) -> Behavior:
    """Return the effective behavior for a dataset-relative path.

    Args:
        rel_path: Path relative to the dataset root
        folder_behavior: Override table, or None
        default_behavior: Returned when no key matches

    Returns:
        The Behavior of the most specific matching key, else the default
    """
    table = normalize_folder_behavior(folder_behavior)
    if not table:
        return default_behavior

    key = normalize_key(rel_path)
    while True:
        if key in table:
            return table[key]
        if not key:
            return default_behavior
        key = key.rsplit('/', 1)[0] if '/' in key else ''


def validate_mirror_constraints(folder_behavior: Optional[Mapping[str, Behavior]]) -> None:
    """Reject tables where a mirror folder has a non-mirror descendant key.

    Mirroring deletes destination entries absent from the source, which
    cannot be reconciled with a descendant that must keep or skip content.

    Raises:
        MirrorConstraintViolationError: On the first offending parent/child pair
    """
    table = normalize_folder_behavior(folder_behavior)
    for parent, behavior in sorted(table.items()):
        if behavior is not Behavior.MIRROR:
            continue
        for child, child_behavior in sorted(table.items()):
            is_descendant = child != parent and (parent == '' or child.startswith(parent + '/'))
            if is_descendant and child_behavior is not Behavior.MIRROR:
                raise MirrorConstraintViolationError(
                    f"Invalid folder behavior: parent '{parent}' is 'mirror' so descendant "
                    f"'{child}' must also be 'mirror'",
                    f"Parent: {parent}, Child: {child}",
                )
