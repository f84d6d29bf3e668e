"""File and directory copy primitives honoring per-entry behaviors.

These helpers perform raw I/O through a FileSystemService and let OSError
propagate; the orchestrators in copy_path_ops and move_path_ops wrap those
failures in IOOperationError.
"""

import posixpath
from dataclasses import dataclass
from typing import List, Mapping, Optional

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import is_strictly_within, is_within
from ..observability.logger import OpsLogger, get_ops_logger
from .behavior import normalize_key, resolve_behavior
from .errors import MirrorConstraintViolationError
from .models import Behavior, CopiedFile


@dataclass
class CopyDirContext:
    """Inputs of a recursive directory copy.

    Attributes:
        file_service: File system to copy through
        old_dir: Absolute source directory
        new_dir: Absolute destination directory
        default_behavior: Behavior when no folder override matches
        dataset_root: Absolute dataset root (folder keys are relative to it)
        folder_behavior: Per-folder overrides, or None
        ops_logger: Logger for copy progress
        mirrored: True when an enclosing directory already ran mirror cleanup
    """
    file_service: FileSystemService
    old_dir: str
    new_dir: str
    default_behavior: Behavior
    dataset_root: str
    folder_behavior: Optional[Mapping[str, Behavior]] = None
    ops_logger: Optional[OpsLogger] = None
    mirrored: bool = False


async def copy_file_helper(
    file_service: FileSystemService,
    old_path: str,
    new_path: str,
    behavior: Behavior = Behavior.OVERWRITE,
) -> bool:
    """Copy one file, creating parent directories as needed.

    Args:
        file_service: File system to copy through
        old_path: Absolute source file
        new_path: Absolute destination file
        behavior: SKIP never writes; ADD writes only when ``new_path`` is missing

    Returns:
        True when the destination was written
    """
    if behavior is Behavior.SKIP:
        return False
    if behavior is Behavior.ADD and await file_service.exists(new_path):
        return False

    content = await file_service.read_file(old_path)
    await file_service.mkdir(posixpath.dirname(new_path), recursive=True)
    await file_service.write_file(new_path, content)
    return True


async def copy_dir_helper(context: CopyDirContext) -> List[CopiedFile]:
    """Recursively copy ``context.old_dir`` into ``context.new_dir``.

    Each entry's behavior is resolved from its dataset-relative source path.
    SKIP entries are left out entirely, ADD entries are left out when the
    destination already exists, and a MIRROR directory is cleaned before
    its contents are copied.

    Returns:
        Every file written, in traversal order
    """
    fs = context.file_service
    ops_logger = get_ops_logger(context.ops_logger)
    copied: List[CopiedFile] = []

    await fs.mkdir(context.new_dir, recursive=True)
    for entry in await fs.readdir(context.old_dir):
        old_entry = posixpath.join(context.old_dir, entry.name)
        new_entry = posixpath.join(context.new_dir, entry.name)
        rel_key = normalize_key(posixpath.relpath(old_entry, context.dataset_root))
        behavior = resolve_behavior(rel_key, context.folder_behavior, context.default_behavior)

        if behavior is Behavior.SKIP:
            ops_logger.debug(f"Skipping {old_entry} due to 'skip' behavior")
            continue
        if behavior is Behavior.ADD and await fs.exists(new_entry):
            ops_logger.debug(f"Keeping existing {new_entry} due to 'add' behavior")
            continue

        if entry.is_dir():
            mirrored = context.mirrored
            if behavior is Behavior.MIRROR and not mirrored:
                await mirror_cleanup(fs, old_entry, new_entry, context.dataset_root, ops_logger)
                mirrored = True
            copied.extend(await copy_dir_helper(CopyDirContext(
                file_service=fs,
                old_dir=old_entry,
                new_dir=new_entry,
                default_behavior=context.default_behavior,
                dataset_root=context.dataset_root,
                folder_behavior=context.folder_behavior,
                ops_logger=context.ops_logger,
                mirrored=mirrored,
            )))
        elif await copy_file_helper(fs, old_entry, new_entry, behavior):
            ops_logger.debug(f"Copied file {old_entry} -> {new_entry}")
            copied.append(CopiedFile(old_entry, new_entry))
    return copied


async def mirror_cleanup(
    file_service: FileSystemService,
    src_dir: str,
    dest_dir: str,
    dataset_root: str,
    ops_logger: Optional[OpsLogger] = None,
) -> List[str]:
    """Delete destination entries that have no counterpart in the source.

    The walk is recursive and confined to ``dest_dir``. An entry whose type
    differs between source and destination (file vs directory) is removed
    too, so the following copy can recreate it.

    Returns:
        Absolute paths removed

    Raises:
        MirrorConstraintViolationError: If a removal would leave the
            destination subtree or the dataset root
    """
    ops_logger = get_ops_logger(ops_logger)
    if not await file_service.is_folder(dest_dir):
        return []

    removed = []
    stack = [(src_dir, dest_dir)]
    while stack:
        src, dest = stack.pop()
        source_entries = {}
        if await file_service.is_folder(src):
            source_entries = {e.name: e.is_dir() for e in await file_service.readdir(src)}

        for entry in await file_service.readdir(dest):
            dest_entry = posixpath.join(dest, entry.name)
            if entry.name in source_entries and source_entries[entry.name] == entry.is_dir():
                if entry.is_dir():
                    stack.append((posixpath.join(src, entry.name), dest_entry))
                continue

            if not (is_strictly_within(dest_entry, dest_dir) and is_within(dest_entry, dataset_root)):
                ops_logger.security(
                    'CRITICAL', 'mirror', f"Refusing to delete {dest_entry} outside {dest_dir}"
                )
                raise MirrorConstraintViolationError(
                    f"Mirror cleanup would delete {dest_entry} outside the mirrored subtree",
                    f"Destination: {dest_dir}, Entry: {dest_entry}",
                )
            await file_service.rm(dest_entry, recursive=True, force=True)
            ops_logger.security('INFO', 'mirror', f"Removed {dest_entry}")
            removed.append(dest_entry)
    return removed


async def delete_copied_sources(
    file_service: FileSystemService,
    copied: List[CopiedFile],
    src_root: str,
) -> None:
    """Delete the source side of every copied file, then prune empty dirs.

    Directories under ``src_root`` that still hold entries (skipped or kept
    content) survive.
    """
    for item in copied:
        await file_service.unlink(item.source_path)
    await prune_empty_dirs(file_service, src_root)


async def prune_empty_dirs(file_service: FileSystemService, directory: str) -> bool:
    """Remove empty directories bottom-up, ``directory`` included.

    Returns:
        True when ``directory`` itself was removed
    """
    if not await file_service.is_folder(directory):
        return False
    remaining = 0
    for entry in await file_service.readdir(directory):
        if entry.is_dir() and await prune_empty_dirs(
            file_service, posixpath.join(directory, entry.name)
        ):
            continue
        remaining += 1
    if remaining:
        return False
    await file_service.rm(directory)
    return True
