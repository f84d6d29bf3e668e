"""Skill reference rewriting after naming transforms.

Skills reference each other with slash tokens such as ``/next`` in prose and
code spans. When a transform renames ``navigator/next`` to
``pair-navigator-next``, every ``/next`` token must become
``/pair-navigator-next``. These are identifiers, not file links, so they are
rewritten separately from Markdown links.
"""

import posixpath
import re
from typing import Iterable, List, Mapping, Optional

from ..file_system.file_system_service import FileSystemService
from ..observability.logger import OpsLogger, get_ops_logger
from .models import SkillNameMap
from .naming_transforms import transform_path

# Characters allowed right before and right after a reference token
_BEFORE = r'(?:^|(?<=[\s`"(|]))'
_AFTER = r'(?=$|[\s`")|,.:;!?\]])'


def _reference_pattern(old_name: str) -> 're.Pattern[str]':
    return re.compile(_BEFORE + '/' + re.escape(old_name) + _AFTER, re.MULTILINE)


def rewrite_skill_references(content: str, skill_name_map: Mapping[str, str]) -> str:
    """Replace ``/old`` tokens with ``/new`` for every entry of the map.

    Longer names are rewritten first so ``/verify-quality`` is never
    clobbered by a rename of ``/verify``. A token only matches when
    preceded by line start, whitespace, a backtick, a double quote, ``(`` or
    ``|`` and followed by line end, whitespace or punctuation.
    """
    if not skill_name_map:
        return content
    result = content
    for old_name, new_name in sorted(skill_name_map.items(), key=lambda kv: -len(kv[0])):
        result = _reference_pattern(old_name).sub(lambda _m, n=new_name: '/' + n, result)
    return result


def build_skill_name_map(
    original_subdirs: Iterable[str],
    flatten: bool = False,
    prefix: Optional[str] = None,
) -> SkillNameMap:
    """Map each renamed leaf directory name to its transformed name.

    Args:
        original_subdirs: Source-relative directories that received files
        flatten: Flatten option of the transform
        prefix: Prefix option of the transform

    Returns:
        Leaf name -> transformed name, only for leaves that changed
    """
    skill_name_map: SkillNameMap = {}
    for subdir in original_subdirs:
        if subdir in ('', '.'):
            continue
        leaf = posixpath.basename(subdir.rstrip('/'))
        transformed = transform_path(subdir, flatten=flatten, prefix=prefix)
        if leaf != transformed:
            skill_name_map[leaf] = transformed
    return skill_name_map


async def rewrite_skill_references_in_files(
    file_service: FileSystemService,
    files: Iterable[str],
    skill_name_map: Mapping[str, str],
    ops_logger: Optional[OpsLogger] = None,
) -> List[str]:
    """Rewrite skill references in every ``.md`` file of ``files``.

    Files are only written when their content changes.

    Returns:
        Paths of the files that were rewritten
    """
    if not skill_name_map:
        return []
    ops_logger = get_ops_logger(ops_logger)
    updated = []
    for file_path in files:
        if not file_path.endswith('.md'):
            continue
        content = await file_service.read_file(file_path)
        rewritten = rewrite_skill_references(content, skill_name_map)
        if rewritten != content:
            await file_service.write_file(file_path, rewritten)
            ops_logger.info(f"Skill reference rewriter: updated references in {file_path}")
            updated.append(file_path)
    return updated
