"""Dataset root detection by walking up from a starting directory."""

import logging
import posixpath
from typing import Optional, Sequence

from ..file_system.file_system_service import FileSystemService


logger = logging.getLogger(__name__)

# Checked in order at each level; the first hit wins
ROOT_MARKERS = ('.git', '.content-sync', 'package.json', 'pyproject.toml')

DEFAULT_MAX_DEPTH = 10


async def detect_repo_root(
    start_dir: str,
    file_service: FileSystemService,
    max_depth: int = DEFAULT_MAX_DEPTH,
    markers: Sequence[str] = ROOT_MARKERS,
) -> Optional[str]:
    """Find the nearest ancestor of ``start_dir`` holding a root marker.

    Args:
        start_dir: Absolute directory to start from
        file_service: File system to search
        max_depth: Maximum number of directories to inspect
        markers: File or directory names that identify a root

    Returns:
        The detected root directory, or None when no marker is found
        within ``max_depth`` levels
    """
    directory = start_dir.replace('\\', '/')
    for _ in range(max_depth):
        for marker in markers:
            if await file_service.exists(posixpath.join(directory, marker)):
                logger.debug(f"Detected root {directory} (marker: {marker})")
                return directory
        parent = posixpath.dirname(directory)
        if not parent or parent == directory:
            break
        directory = parent
    return None
