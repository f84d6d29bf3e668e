"""Move a file or directory inside the dataset and keep links consistent."""

from typing import Mapping, Optional

from ..file_system.file_system_service import FileSystemService
from ..observability.logger import OpsLogger, get_ops_logger
from .errors import InvalidPathError, IOOperationError
from .file_operations import delete_copied_sources
from .models import SyncOptions, SyncResult
from .path_operation_helpers import (
    apply_skill_references,
    copy_to_destination,
    setup_path_operation,
    update_links_after_copy,
)
from .validate_path_ops import is_absolute_input


async def move_path_ops(
    file_service: FileSystemService,
    source: str,
    target: str,
    dataset_root: str,
    options: Optional[SyncOptions] = None,
    skill_name_map: Optional[Mapping[str, str]] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> SyncResult:
    """Move ``source`` to ``target`` and update Markdown links dataset-wide.

    Content is copied first, then exactly the source files that were copied
    are deleted and empty source directories are pruned. Entries left in
    place by ``skip`` or ``add`` behaviors are never deleted, so links to
    them stay valid.

    Args:
        file_service: File system to operate on
        source: Source path relative to the dataset root
        target: Target path relative to the dataset root
        dataset_root: Absolute path of the dataset root
        options: Behavior, concurrency and naming transform options
        skill_name_map: Renames from a previous operation to apply to the
            moved files' skill references
        ops_logger: Logger for the operation

    Returns:
        SyncResult describing the moved files

    Raises:
        ContentSyncError: When paths are invalid, the source is missing,
            the target overlaps the source or an I/O step fails
    """
    if is_absolute_input(source) or is_absolute_input(target):
        raise InvalidPathError(source, target)
    ops_logger = get_ops_logger(ops_logger)
    options = options or SyncOptions()

    async def run() -> SyncResult:
        setup = setup_path_operation(source, target, dataset_root, options, 'move', ops_logger)
        outcome = await copy_to_destination(
            file_service, setup, dataset_root, options, 'move', ops_logger
        )

        if outcome.copied:
            try:
                if outcome.is_directory:
                    await delete_copied_sources(file_service, outcome.copied, setup.src_path)
                else:
                    await file_service.unlink(setup.src_path)
            except OSError as e:
                raise IOOperationError(
                    f"Failed to remove moved sources under {setup.src_path}",
                    'delete',
                    setup.src_path,
                    e,
                ) from e
            ops_logger.info(f"Moved {len(outcome.copied)} files {setup.src_path} -> {outcome.final_dest}")

        links_updated = await update_links_after_copy(
            file_service,
            dataset_root,
            outcome,
            setup.src_path,
            options.concurrency_limit,
            ops_logger=ops_logger,
        )
        await apply_skill_references(file_service, outcome, skill_name_map, ops_logger)

        return SyncResult(
            skill_name_map=outcome.skill_name_map or None,
            path_mapping=outcome.path_mapping,
            links_updated=links_updated,
            files_copied=len(outcome.copied),
        )

    return await ops_logger.time(run, 'move_path_ops')
