"""Frontmatter normalization for files copied with naming transforms.

Only the block between the opening ``---`` line and the next ``---`` line is
touched; the body is never modified. Two edits are made there:

    - block scalars (``key: >-``, ``>``, ``|``, ``|-``) are collapsed onto
      one line, continuation lines joined with single spaces
    - when a rename is given, the old directory name is replaced in values
      wherever it forms a whole ``/``-separated segment; keys are untouched
"""

import re
from typing import Iterable, List, Optional, Tuple

from ..file_system.file_system_service import FileSystemService
from ..observability.logger import OpsLogger, get_ops_logger

FRONTMATTER_OPEN = '---\n'
FRONTMATTER_CLOSE_PATTERN = re.compile(r'\n---(?:\n|$)')

BLOCK_SCALAR_PATTERN = re.compile(r'^(\s*\w[\w-]*:\s*)[>|]-?\s*$')
CONTINUATION_PATTERN = re.compile(r'^\s{2,}\S')


def collapse_block_scalars(frontmatter: str) -> str:
    lines = frontmatter.split('\n')
    result = []
    i = 0
    while i < len(lines):
        match = BLOCK_SCALAR_PATTERN.match(lines[i])
        if not match:
            result.append(lines[i])
            i += 1
            continue
        i += 1
        continuation = []
        while i < len(lines) and CONTINUATION_PATTERN.match(lines[i]):
            continuation.append(lines[i].strip())
            i += 1
        result.append(match.group(1) + ' '.join(continuation))
    return '\n'.join(result)


def rename_in_values(frontmatter: str, old: str, new: str) -> str:
    renamed = []
    for line in frontmatter.split('\n'):
        key, sep, value = line.partition(': ')
        if not sep:
            renamed.append(line)
            continue
        segments = [new if segment == old else segment for segment in value.split('/')]
        renamed.append(key + sep + '/'.join(segments))
    return '\n'.join(renamed)


def sync_frontmatter(content: str, rename: Optional[Tuple[str, str]] = None) -> str:
    """Normalize the frontmatter of ``content`` and apply an optional rename.

    Args:
        content: Full Markdown file content
        rename: ``(old_name, new_name)`` to replace in frontmatter values

    Returns:
        The updated content, or ``content`` unchanged when it has no
        frontmatter block

    Example:
        >>> sync_frontmatter('---\\nname: next\\n---\\nBody', ('next', 'pair-next'))
        '---\\nname: pair-next\\n---\\nBody'
    """
    if not content.startswith(FRONTMATTER_OPEN):
        return content
    close = FRONTMATTER_CLOSE_PATTERN.search(content, len(FRONTMATTER_OPEN) - 1)
    # An empty block has nothing to normalize
    if close is None or close.start() < len(FRONTMATTER_OPEN):
        return content

    frontmatter = content[len(FRONTMATTER_OPEN):close.start()]
    rest = content[close.start():]
    processed = collapse_block_scalars(frontmatter)
    if rename is not None:
        processed = rename_in_values(processed, rename[0], rename[1])
    return FRONTMATTER_OPEN + processed + rest


async def sync_frontmatter_in_files(
    file_service: FileSystemService,
    files: Iterable[str],
    rename: Optional[Tuple[str, str]] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> List[str]:
    """Apply sync_frontmatter to each ``.md`` file, writing only on change.

    Returns:
        Paths of the files that were rewritten
    """
    ops_logger = get_ops_logger(ops_logger)
    updated = []
    for file_path in files:
        if not file_path.endswith('.md'):
            continue
        content = await file_service.read_file(file_path)
        synced = sync_frontmatter(content, rename)
        if synced != content:
            await file_service.write_file(file_path, synced)
            ops_logger.debug(f"Frontmatter synced in {file_path}")
            updated.append(file_path)
    return updated
