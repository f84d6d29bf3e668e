"""Resolution of Markdown link paths to absolute file system paths."""

import posixpath
from typing import List, Optional

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import strip_anchor


def resolve_markdown_path(
    file: str,
    link_path: str,
    docs_folders: List[str],
    dataset_root: str,
) -> str:
    """Resolve a link found in ``file`` to an absolute path.

    Links whose first segment names a top-level dataset folder are resolved
    from the dataset root; ``./``, ``../`` and bare file names are resolved
    from the linking file's directory; root-style ``/x`` links from the
    dataset root.

    Args:
        file: Absolute path of the Markdown file containing the link
        link_path: Link href (anchor is ignored)
        docs_folders: Names of the dataset root's top-level folders
        dataset_root: Absolute dataset root

    Returns:
        Normalized absolute path of the link target

    Raises:
        ValueError: If ``link_path`` is empty
    """
    if not link_path:
        raise ValueError("link_path is empty")

    path = strip_anchor(link_path).split('?', 1)[0]
    first_segment = path.split('/', 1)[0]
    file_dir = posixpath.dirname(file)

    if path.startswith('/'):
        resolved = posixpath.join(dataset_root, path.lstrip('/'))
    elif first_segment in docs_folders:
        resolved = posixpath.join(dataset_root, path)
    else:
        resolved = posixpath.join(file_dir, path)
    return posixpath.normpath(resolved)


async def try_resolve_path_variants(
    file: str,
    link_path: str,
    docs_folders: List[str],
    file_service: FileSystemService,
    dataset_root: str,
) -> Optional[str]:
    """Try to repair a ``../`` link by dropping leading parent segments.

    Candidates are tried from the original (all ``..`` kept) down to none
    kept; the first one that exists is returned.

    Returns:
        The first candidate href whose target exists, or None
    """
    if not link_path.startswith('../'):
        return None

    segments = link_path.split('/')
    back_steps = sum(1 for s in segments if s == '..')
    for i in range(back_steps + 1):
        candidate = '/'.join(segments[i:])
        if not candidate.startswith('.'):
            candidate = './' + candidate
        resolved = resolve_markdown_path(file, candidate, docs_folders, dataset_root)
        if await file_service.exists(resolved):
            return candidate
    return None
