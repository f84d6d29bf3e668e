"""Small helpers shared by the markdown and ops packages."""

import posixpath
import re
from typing import List

from .file_system_service import FileSystemService

EXTERNAL_LINK_PATTERN = re.compile(r'^(https?:|mailto:|ftp:|tel:|//)', re.IGNORECASE)


async def walk_markdown_files(directory: str, file_service: FileSystemService) -> List[str]:
    """Return every ``.md`` file under ``directory``, sorted.

    The walk uses an explicit stack so deeply nested trees do not grow the
    Python call stack.

    Args:
        directory: Absolute directory to walk
        file_service: File system to read from

    Returns:
        Absolute posix paths of all Markdown files found
    """
    found = []
    stack = [directory]
    while stack:
        current = stack.pop()
        for entry in await file_service.readdir(current):
            full_path = posixpath.join(current, entry.name)
            if entry.is_dir():
                stack.append(full_path)
            elif entry.name.endswith('.md'):
                found.append(full_path)
    return sorted(found)


def is_external_link(link: str) -> bool:
    """True for links that never point into the dataset (URLs, mail, anchors)."""
    if not link:
        return False
    link = link.strip()
    return link.startswith('#') or bool(EXTERNAL_LINK_PATTERN.match(link))


def normalize_link_slashes(link: str) -> str:
    return link.replace('\\', '/')


def strip_anchor(link: str) -> str:
    if not link:
        return ''
    return link.split('#', 1)[0]


def is_within(path: str, root: str) -> bool:
    """True when ``path`` equals ``root`` or lies below it (both absolute)."""
    rel = posixpath.relpath(path, root)
    return rel == '.' or not (rel == '..' or rel.startswith('../'))


def is_strictly_within(path: str, root: str) -> bool:
    """True when ``path`` lies below ``root`` and is not ``root`` itself."""
    return path != root and is_within(path, root)
