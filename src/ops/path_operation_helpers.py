"""Setup, destination and link-update steps shared by copy and move.

copy_path_ops and move_path_ops run the same pipeline:

    setup_path_operation -> copy_to_destination -> (move: delete sources)
    -> update_links_after_copy -> apply_skill_references

Each step either completes or raises; nothing here retries.
"""

import posixpath
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import is_within
from ..observability.logger import OpsLogger, get_ops_logger
from .behavior import (
    normalize_folder_behavior,
    normalize_key,
    resolve_behavior,
    validate_mirror_constraints,
)
from .errors import (
    InvalidSourceTypeError,
    InvalidSubfolderCopyError,
    InvalidSubfolderMoveError,
    IOOperationError,
)
from .file_operations import CopyDirContext, copy_dir_helper, copy_file_helper, mirror_cleanup
from .file_validations import validate_paths, validate_source_exists
from .link_batch_processor import process_copied_files, process_path_mapping
from .link_rewriter import PathRewriteRules, build_path_mapping
from .models import (
    DEFAULT_CONCURRENCY_LIMIT,
    Behavior,
    CopiedFile,
    PathMappingEntry,
    PathSetup,
    SkillNameMap,
    SyncOptions,
)
from .skill_reference_rewriter import rewrite_skill_references_in_files
from .transform_copy import copy_directory_with_transforms


@dataclass
class CopyOutcome:
    """What the copy step wrote.

    Attributes:
        copied: Every file written, with its source and destination
        path_mapping: Copied files grouped by source/destination directory
        skill_name_map: Leaf renames produced by a naming transform
        is_directory: True when the source was a directory
        final_dest: Destination file (file sources) or directory
        is_transformed: True when a naming transform renamed folders
    """
    copied: List[CopiedFile] = field(default_factory=list)
    path_mapping: List[PathMappingEntry] = field(default_factory=list)
    skill_name_map: SkillNameMap = field(default_factory=dict)
    is_directory: bool = False
    final_dest: str = ''
    is_transformed: bool = False


def _normalize_input(path: str) -> str:
    normalized = posixpath.normpath(path.replace('\\', '/'))
    return '' if normalized == '.' else normalized


def setup_path_operation(
    source: str,
    target: str,
    dataset_root: str,
    options: Optional[SyncOptions] = None,
    operation: str = 'copy',
    ops_logger: Optional[OpsLogger] = None,
) -> PathSetup:
    """Validate and resolve the inputs of a copy or move.

    No filesystem call is made; every check here is pure.

    Args:
        source: Source path relative to the dataset root
        target: Target path relative to the dataset root
        dataset_root: Absolute dataset root
        options: Behavior and transform options
        operation: ``'copy'`` or ``'move'``
        ops_logger: Logger for the operation

    Returns:
        PathSetup with ``should_skip`` set for a same-path copy

    Raises:
        MirrorConstraintViolationError: If the folder behavior table is invalid
        InvalidSubfolderMoveError: If a move has the same source and target
        PathEscapeError: If source or target leaves the dataset root
        InvalidSubfolderCopyError: If a copy targets a descendant of the source
    """
    ops_logger = get_ops_logger(ops_logger)
    options = options or SyncOptions()
    validate_mirror_constraints(options.folder_behavior)
    folder_behavior = normalize_folder_behavior(options.folder_behavior) or None

    norm_source = _normalize_input(source)
    norm_target = _normalize_input(target)
    root = posixpath.normpath(dataset_root)
    src_path = posixpath.normpath(posixpath.join(root, norm_source))
    dest_path = posixpath.normpath(posixpath.join(root, norm_target))

    validate_paths(norm_source, norm_target, src_path, dest_path, root, ops_logger)

    if src_path == dest_path:
        if operation == 'move':
            raise InvalidSubfolderMoveError(norm_source, norm_target)
        ops_logger.info(f"Source and target are the same: {norm_source}. Nothing to do.")
        return PathSetup(
            norm_source=norm_source,
            norm_target=norm_target,
            src_path=src_path,
            dest_path=dest_path,
            default_behavior=options.default_behavior,
            folder_behavior=folder_behavior,
            should_skip=True,
        )

    # A target below the source can never be valid, whatever the source type
    if is_within(dest_path, src_path):
        if operation == 'move':
            raise InvalidSubfolderMoveError(norm_source, norm_target)
        raise InvalidSubfolderCopyError(norm_source, norm_target)

    return PathSetup(
        norm_source=norm_source,
        norm_target=norm_target,
        src_path=src_path,
        dest_path=dest_path,
        default_behavior=options.default_behavior,
        folder_behavior=folder_behavior,
    )


def validate_subfolder_operation(
    src_path: str,
    dest_path: str,
    norm_source: str,
    norm_target: str,
    operation: str,
) -> None:
    """Reject moving a directory into one of its ancestors.

    Targets at or below the source are already refused by
    setup_path_operation; copying into an ancestor is allowed.

    Raises:
        InvalidSubfolderMoveError: For a move into an ancestor
    """
    if operation == 'move' and is_within(src_path, dest_path):
        raise InvalidSubfolderMoveError(norm_source, norm_target)


async def determine_final_destination(
    file_service: FileSystemService,
    dest_path: str,
    source: str,
) -> str:
    """Decide where a single copied file lands.

    An existing directory receives ``<target>/<basename>``; an existing file
    is replaced in place. A missing target with a file extension is taken as
    the file name; any other missing target is created as a directory.
    Parent directories are created as needed.
    """
    name = posixpath.basename(source.rstrip('/'))
    if await file_service.is_folder(dest_path):
        return posixpath.join(dest_path, name)
    if await file_service.exists(dest_path):
        return dest_path
    if posixpath.splitext(posixpath.basename(dest_path))[1]:
        await file_service.mkdir(posixpath.dirname(dest_path), recursive=True)
        return dest_path
    await file_service.mkdir(dest_path, recursive=True)
    return posixpath.join(dest_path, name)


def resolve_source_behavior(setup: PathSetup, dataset_root: str) -> Behavior:
    rel_key = normalize_key(posixpath.relpath(setup.src_path, posixpath.normpath(dataset_root)))
    return resolve_behavior(rel_key, setup.folder_behavior, setup.default_behavior)


async def copy_to_destination(
    file_service: FileSystemService,
    setup: PathSetup,
    dataset_root: str,
    options: SyncOptions,
    operation: str,
    ops_logger: Optional[OpsLogger] = None,
) -> CopyOutcome:
    """Classify the source and copy it to the destination.

    Returns:
        CopyOutcome describing every file written

    Raises:
        SourceNotExistsError: If the source is missing
        InvalidSourceTypeError: If the source is neither file nor directory
        IOOperationError: If the underlying copy fails
    """
    ops_logger = get_ops_logger(ops_logger)
    stat = await validate_source_exists(file_service, setup.src_path)
    root = posixpath.normpath(dataset_root)

    if stat.is_dir():
        validate_subfolder_operation(
            setup.src_path, setup.dest_path, setup.norm_source, setup.norm_target, operation
        )
        behavior = resolve_source_behavior(setup, root)
        if behavior is Behavior.SKIP:
            ops_logger.info(f"Skipping directory {setup.src_path} due to 'skip' behavior")
            return CopyOutcome(is_directory=True, final_dest=setup.dest_path)
        if options.has_transforms:
            transformed = await copy_directory_with_transforms(
                file_service,
                setup.src_path,
                setup.dest_path,
                root,
                options,
                ops_logger=ops_logger,
            )
            return CopyOutcome(
                copied=transformed.copied,
                path_mapping=transformed.path_mapping,
                skill_name_map=transformed.skill_name_map,
                is_directory=True,
                final_dest=setup.dest_path,
                is_transformed=True,
            )
        copied = await _copy_directory(file_service, setup, root, behavior, ops_logger)
        return CopyOutcome(
            copied=copied,
            path_mapping=build_path_mapping(root, copied),
            is_directory=True,
            final_dest=setup.dest_path,
        )

    if stat.is_file():
        return await _copy_single_file(file_service, setup, root, ops_logger)

    raise InvalidSourceTypeError(setup.src_path)


async def _copy_directory(
    file_service: FileSystemService,
    setup: PathSetup,
    dataset_root: str,
    behavior: Behavior,
    ops_logger: OpsLogger,
) -> List[CopiedFile]:
    try:
        await file_service.mkdir(setup.dest_path, recursive=True)
        mirrored = False
        if behavior is Behavior.MIRROR:
            await mirror_cleanup(file_service, setup.src_path, setup.dest_path, dataset_root, ops_logger)
            mirrored = True
        copied = await copy_dir_helper(CopyDirContext(
            file_service=file_service,
            old_dir=setup.src_path,
            new_dir=setup.dest_path,
            default_behavior=setup.default_behavior,
            dataset_root=dataset_root,
            folder_behavior=setup.folder_behavior,
            ops_logger=ops_logger,
            mirrored=mirrored,
        ))
    except OSError as e:
        ops_logger.error(f"Failed to copy entries: {e}")
        raise IOOperationError(
            f"Failed to copy directory contents from {setup.src_path} to {setup.dest_path}",
            'copyDir',
            setup.src_path,
            e,
        ) from e
    ops_logger.info(f"Copied contents of {setup.src_path} -> {setup.dest_path} ({len(copied)} files)")
    return copied


async def _copy_single_file(
    file_service: FileSystemService,
    setup: PathSetup,
    dataset_root: str,
    ops_logger: OpsLogger,
) -> CopyOutcome:
    behavior = resolve_source_behavior(setup, dataset_root)
    if behavior is Behavior.SKIP:
        ops_logger.info(f"Skipping file {setup.src_path} due to 'skip' behavior")
        return CopyOutcome(final_dest=setup.dest_path)

    final_dest = setup.dest_path
    try:
        final_dest = await determine_final_destination(file_service, setup.dest_path, setup.norm_source)
        written = await copy_file_helper(file_service, setup.src_path, final_dest, behavior)
    except OSError as e:
        ops_logger.error(f"Failed to copy file {setup.src_path} -> {final_dest}: {e}")
        raise IOOperationError(
            f"Failed to copy file {setup.src_path} -> {final_dest}",
            'copyFile',
            setup.src_path,
            e,
        ) from e

    if not written:
        ops_logger.info(f"Keeping existing {final_dest} due to 'add' behavior")
        return CopyOutcome(final_dest=final_dest)
    ops_logger.info(f"Copied file {setup.src_path} -> {final_dest}")
    copied = [CopiedFile(setup.src_path, final_dest)]
    return CopyOutcome(
        copied=copied,
        path_mapping=build_path_mapping(dataset_root, copied),
        final_dest=final_dest,
    )


async def update_links_after_copy(
    file_service: FileSystemService,
    dataset_root: str,
    outcome: CopyOutcome,
    src_path: str,
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
    exclude_dirs: Iterable[str] = (),
    ops_logger: Optional[OpsLogger] = None,
) -> int:
    """Rebase the copied files' links, then redirect links across the dataset.

    Per-file failures are logged as warnings and do not fail the operation.

    Args:
        file_service: File system to read and write through
        dataset_root: Absolute dataset root
        outcome: Result of copy_to_destination
        src_path: Absolute source path of the operation
        concurrency_limit: Maximum files rewritten at once
        exclude_dirs: Directories left out of the dataset-wide pass
        ops_logger: Logger for the operation

    Returns:
        Number of links rewritten
    """
    ops_logger = get_ops_logger(ops_logger)
    if not outcome.copied:
        return 0

    # A single file copy maps only that file, never its parent directory
    if outcome.is_directory:
        rules = PathRewriteRules.from_operation(dataset_root, outcome.copied, outcome.path_mapping)
        rules.add_dir(src_path, outcome.final_dest)
        if not outcome.is_transformed:
            rules.add_copied_dirs(src_path, outcome.final_dest, outcome.copied)
    else:
        rules = PathRewriteRules.from_operation(dataset_root, outcome.copied)

    async def run():
        result = await process_copied_files(outcome.copied, rules, file_service, concurrency_limit)
        result.merge(await process_path_mapping(
            dataset_root,
            rules,
            file_service,
            concurrency_limit,
            exclude_files=[item.dest_path for item in outcome.copied],
            exclude_dirs=exclude_dirs,
        ))
        return result

    result = await ops_logger.time(run, 'update_links_after_copy')
    if result.processed_files > 0:
        ops_logger.info(
            f"Links updated: {result.total_links_updated} (in {result.processed_files} files)"
        )
    if not result.ok:
        ops_logger.warn(f"{len(result.errors)} errors occurred during link processing:")
        for error in result.errors:
            ops_logger.warn(f"  - {error.file}: {error.error}")
    return result.total_links_updated


async def apply_skill_references(
    file_service: FileSystemService,
    outcome: CopyOutcome,
    skill_name_map: Optional[Mapping[str, str]] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> List[str]:
    """Rewrite skill references in the copied Markdown files.

    The caller's map is merged with the renames of the current transform,
    the latter winning. Nothing is read when the merged map is empty.
    """
    merged = dict(skill_name_map or {})
    merged.update(outcome.skill_name_map)
    if not merged or not outcome.copied:
        return []
    files = [item.dest_path for item in outcome.copied]
    try:
        return await rewrite_skill_references_in_files(file_service, files, merged, ops_logger)
    except OSError as e:
        raise IOOperationError(
            "Failed to rewrite skill references", 'rewriteSkills', outcome.final_dest, e
        ) from e
