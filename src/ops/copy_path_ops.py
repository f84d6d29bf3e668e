"""Copy a file or directory inside the dataset and keep links consistent."""

from typing import Mapping, Optional

from ..file_system.file_system_service import FileSystemService
from ..observability.logger import OpsLogger, get_ops_logger
from .errors import InvalidPathError
from .models import SyncOptions, SyncResult
from .path_operation_helpers import (
    apply_skill_references,
    copy_to_destination,
    setup_path_operation,
    update_links_after_copy,
)
from .validate_path_ops import is_absolute_input


async def copy_path_ops(
    file_service: FileSystemService,
    source: str,
    target: str,
    dataset_root: str,
    options: Optional[SyncOptions] = None,
    skill_name_map: Optional[Mapping[str, str]] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> SyncResult:
    """Copy ``source`` to ``target`` and update Markdown links.

    The copied Markdown files have their relative links rebased onto their
    new location, and links elsewhere in the dataset that point into the
    copied region are redirected to the copy. The source tree itself is
    left untouched.

    Args:
        file_service: File system to operate on
        source: Source path relative to the dataset root
        target: Target path relative to the dataset root
        dataset_root: Absolute path of the dataset root
        options: Behavior, concurrency and naming transform options
        skill_name_map: Renames from a previous operation to apply to the
            copied files' skill references
        ops_logger: Logger for the operation

    Returns:
        SyncResult; ``skill_name_map`` is set only when a naming transform
        renamed at least one directory

    Raises:
        ContentSyncError: When paths are invalid, the source is missing or
            the copy fails
    """
    if is_absolute_input(source) or is_absolute_input(target):
        raise InvalidPathError(source, target)
    ops_logger = get_ops_logger(ops_logger)
    options = options or SyncOptions()

    async def run() -> SyncResult:
        setup = setup_path_operation(source, target, dataset_root, options, 'copy', ops_logger)
        if setup.should_skip:
            return SyncResult()

        outcome = await copy_to_destination(
            file_service, setup, dataset_root, options, 'copy', ops_logger
        )
        links_updated = await update_links_after_copy(
            file_service,
            dataset_root,
            outcome,
            setup.src_path,
            options.concurrency_limit,
            exclude_dirs=[setup.src_path],
            ops_logger=ops_logger,
        )
        await apply_skill_references(file_service, outcome, skill_name_map, ops_logger)

        return SyncResult(
            skill_name_map=outcome.skill_name_map or None,
            path_mapping=outcome.path_mapping,
            links_updated=links_updated,
            files_copied=len(outcome.copied),
        )

    return await ops_logger.time(run, 'copy_path_ops')
