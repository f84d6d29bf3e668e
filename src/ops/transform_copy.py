"""Directory copy with flatten/prefix naming transforms.

Every file under the source is planned first: its source-relative directory
is transformed and the whole plan is checked for collisions. Only a plan
without collisions is written, so a rejected transform leaves the
destination untouched. Files directly under the source root keep their
place; only subdirectories are renamed.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import is_strictly_within, is_within
from ..observability.logger import OpsLogger, get_ops_logger
from .behavior import normalize_key, resolve_behavior
from .errors import IOOperationError, MirrorConstraintViolationError
from .file_operations import copy_file_helper, prune_empty_dirs
from .frontmatter_transform import sync_frontmatter_in_files
from .link_rewriter import build_path_mapping
from .models import Behavior, CopiedFile, PathMappingEntry, SkillNameMap, SyncOptions
from .naming_transforms import detect_collisions, transform_path
from .skill_reference_rewriter import build_skill_name_map


@dataclass
class TransformCopyResult:
    """Outcome of copy_directory_with_transforms.

    Attributes:
        copied: Every file written
        path_mapping: Copied files grouped by original and transformed directory
        skill_name_map: Renamed leaf -> transformed name (empty when nothing
            was renamed)
    """
    copied: List[CopiedFile] = field(default_factory=list)
    path_mapping: List[PathMappingEntry] = field(default_factory=list)
    skill_name_map: SkillNameMap = field(default_factory=dict)


async def collect_files(file_service: FileSystemService, src_dir: str) -> List[str]:
    """Return every file under ``src_dir`` as a sorted source-relative path."""
    found = []
    stack = ['']
    while stack:
        rel_dir = stack.pop()
        current = posixpath.join(src_dir, rel_dir) if rel_dir else src_dir
        for entry in await file_service.readdir(current):
            rel_path = posixpath.join(rel_dir, entry.name) if rel_dir else entry.name
            if entry.is_dir():
                stack.append(rel_path)
            else:
                found.append(rel_path)
    return sorted(found)


def plan_transformed_dirs(
    rel_files: List[str],
    flatten: bool = False,
    prefix: Optional[str] = None,
) -> Dict[str, str]:
    """Map every distinct source-relative directory to its transformed name.

    The source root is ``'.'`` and maps to itself.
    """
    plan = {}
    for rel_file in rel_files:
        subdir = posixpath.dirname(rel_file) or '.'
        if subdir not in plan:
            plan[subdir] = transform_path(subdir, flatten=flatten, prefix=prefix)
    return plan


async def copy_directory_with_transforms(
    file_service: FileSystemService,
    src_dir: str,
    dest_dir: str,
    dataset_root: str,
    options: SyncOptions,
    ops_logger: Optional[OpsLogger] = None,
) -> TransformCopyResult:
    """Copy ``src_dir`` into ``dest_dir`` renaming subdirectories.

    Per-file behaviors are resolved from each file's dataset-relative source
    path: ``skip`` files are not copied and ``add`` files are not copied over
    existing ones. When the source folder is ``mirror``, files under
    ``dest_dir`` that are not part of the plan are removed first.

    After the copy, the frontmatter of every copied Markdown file is
    normalized and the renamed leaf is replaced in its values.

    Args:
        file_service: File system to copy through
        src_dir: Absolute source directory
        dest_dir: Absolute destination directory
        dataset_root: Absolute dataset root
        options: Transform and behavior options
        ops_logger: Logger for the operation

    Returns:
        TransformCopyResult with the copied files, mapping and skill renames

    Raises:
        IOOperationError: If transformed names collide (operation
            ``transform``, raised before any write) or a copy fails
    """
    ops_logger = get_ops_logger(ops_logger)
    root = posixpath.normpath(dataset_root)

    try:
        rel_files = await collect_files(file_service, src_dir)
    except OSError as e:
        raise IOOperationError(f"Failed to list {src_dir}", 'readdir', src_dir, e) from e

    plan = plan_transformed_dirs(rel_files, options.flatten, options.prefix)
    collisions = detect_collisions(plan)
    if collisions:
        names = ', '.join(collisions)
        ops_logger.error(f"Naming transform collision under {src_dir}: {names}")
        raise IOOperationError(
            f"Naming transform produces colliding directory names: {names}",
            'transform',
            src_dir,
        )

    targets: List[Tuple[str, str]] = []
    for rel_file in rel_files:
        subdir = posixpath.dirname(rel_file) or '.'
        new_dir = plan[subdir]
        dest_file = posixpath.normpath(
            posixpath.join(dest_dir, new_dir, posixpath.basename(rel_file))
        )
        targets.append((posixpath.join(src_dir, rel_file), dest_file))

    folder_behavior = options.folder_behavior
    src_key = normalize_key(posixpath.relpath(src_dir, root))
    copied: List[CopiedFile] = []
    try:
        await file_service.mkdir(dest_dir, recursive=True)
        if resolve_behavior(src_key, folder_behavior, options.default_behavior) is Behavior.MIRROR:
            await _mirror_planned(
                file_service, dest_dir, {dest for _, dest in targets}, root, ops_logger
            )
        for src_file, dest_file in targets:
            rel_key = normalize_key(posixpath.relpath(src_file, root))
            behavior = resolve_behavior(rel_key, folder_behavior, options.default_behavior)
            if await copy_file_helper(file_service, src_file, dest_file, behavior):
                ops_logger.debug(f"Copied file {src_file} -> {dest_file}")
                copied.append(CopiedFile(src_file, dest_file))
    except OSError as e:
        raise IOOperationError(
            f"Failed to copy directory contents from {src_dir} to {dest_dir}",
            'copyDir',
            src_dir,
            e,
        ) from e

    received = sorted({
        posixpath.relpath(posixpath.dirname(item.source_path), src_dir) for item in copied
    })
    skill_name_map = build_skill_name_map(received, options.flatten, options.prefix)

    try:
        for leaf, files in _files_by_leaf(copied, src_dir).items():
            rename = (leaf, skill_name_map[leaf]) if leaf in skill_name_map else None
            await sync_frontmatter_in_files(file_service, files, rename, ops_logger)
    except OSError as e:
        raise IOOperationError("Failed to sync frontmatter", 'frontmatter', dest_dir, e) from e

    ops_logger.info(
        f"Copied {len(copied)} files from {src_dir} -> {dest_dir} "
        f"({len(skill_name_map)} directories renamed)"
    )
    return TransformCopyResult(
        copied=copied,
        path_mapping=build_path_mapping(root, copied),
        skill_name_map=skill_name_map,
    )


def _files_by_leaf(copied: List[CopiedFile], src_dir: str) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for item in copied:
        rel_dir = posixpath.relpath(posixpath.dirname(item.source_path), src_dir)
        leaf = '' if rel_dir == '.' else posixpath.basename(rel_dir)
        grouped.setdefault(leaf, []).append(item.dest_path)
    return grouped


async def _mirror_planned(
    file_service: FileSystemService,
    dest_dir: str,
    keep: Set[str],
    dataset_root: str,
    ops_logger: OpsLogger,
) -> List[str]:
    """Delete files under ``dest_dir`` that are not in ``keep``, then prune."""
    removed = []
    stack = [dest_dir]
    while stack:
        current = stack.pop()
        for entry in await file_service.readdir(current):
            path = posixpath.join(current, entry.name)
            if entry.is_dir():
                stack.append(path)
                continue
            if path in keep:
                continue
            if not (is_strictly_within(path, dest_dir) and is_within(path, dataset_root)):
                raise MirrorConstraintViolationError(
                    f"Mirror cleanup would delete {path} outside the mirrored subtree",
                    f"Destination: {dest_dir}, Entry: {path}",
                )
            await file_service.unlink(path)
            ops_logger.security('INFO', 'mirror', f"Removed {path}")
            removed.append(path)
    for entry in await file_service.readdir(dest_dir):
        if entry.is_dir():
            await prune_empty_dirs(file_service, posixpath.join(dest_dir, entry.name))
    return removed
