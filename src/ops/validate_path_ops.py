"""Pre-flight validation of path operations and dataset link validation."""

import posixpath
from typing import Iterable, List, Optional

from ..file_system.file_system_service import FileSystemService
from ..file_system.utils import walk_markdown_files
from ..markdown.link_processor import (
    BAD_LINK_FORMAT,
    LINK_TARGET_NOT_FOUND,
    find_bad_link_formats,
    generate_existence_check_replacements,
    generate_normalization_replacements,
)
from ..markdown.models import ErrorLog, LinkProcessingConfig, ParsedLink, Replacement
from ..markdown.replacement_applier import process_file_with_links
from ..observability.logger import OpsLogger, get_ops_logger
from .errors import InvalidPathError
from .models import DatasetValidationResult, PathSetup, SyncOptions
from .path_operation_helpers import setup_path_operation


def is_absolute_input(path: str) -> bool:
    """True for posix absolute paths and Windows drive or backslash roots."""
    normalized = path.replace('\\', '/')
    return normalized.startswith('/') or (len(normalized) > 1 and normalized[1] == ':')


def validate_path_ops(
    source: str,
    target: str,
    dataset_root: str,
    operation: str = 'copy',
    options: Optional[SyncOptions] = None,
    ops_logger: Optional[OpsLogger] = None,
) -> PathSetup:
    """Run every pure pre-flight check of a copy or move without touching disk.

    Args:
        source: Source path relative to the dataset root
        target: Target path relative to the dataset root
        dataset_root: Absolute dataset root
        operation: ``'copy'`` or ``'move'``
        options: Behavior and transform options

    Returns:
        The resolved PathSetup

    Raises:
        InvalidPathError: If source or target is absolute
        PathEscapeError: If source or target leaves the dataset root
        InvalidSubfolderCopyError: If a copy targets a descendant of the source
        InvalidSubfolderMoveError: If a move targets the source or a descendant
        MirrorConstraintViolationError: If the folder behavior table is invalid
    """
    if is_absolute_input(source) or is_absolute_input(target):
        raise InvalidPathError(source, target)
    return setup_path_operation(source, target, dataset_root, options, operation, ops_logger)


def format_error(error: ErrorLog, dataset_root: str) -> str:
    rel = posixpath.relpath(error.file, dataset_root)
    return (
        f"\n---\nFile: {rel}\nLine: {error.line_number}\n"
        f"Type: {error.type}\nText: {error.line.strip()}\n---"
    )


async def validate_dataset_links(
    file_service: FileSystemService,
    dataset_root: str,
    errors_path: str,
    exclusion_list: Iterable[str] = (),
    ops_logger: Optional[OpsLogger] = None,
) -> DatasetValidationResult:
    """Normalize, patch and check every Markdown link of the dataset.

    Each file is processed in turn: links to existing targets are
    normalized, broken ``../`` links are patched when a shorter variant
    exists, and what is still broken is reported. Reports go to
    ``errors_path``; a stale report is removed when everything is valid.

    Args:
        file_service: File system to read and write through
        dataset_root: Absolute dataset root
        errors_path: Absolute path of the errors report
        exclusion_list: Href prefixes that are never checked
        ops_logger: Logger for the operation

    Returns:
        DatasetValidationResult with report lines, errors and counts
    """
    ops_logger = get_ops_logger(ops_logger)
    if not dataset_root:
        raise ValueError("dataset_root is required")
    root = posixpath.normpath(dataset_root)

    md_files = await walk_markdown_files(root, file_service)
    docs_folders = [e.name for e in await file_service.readdir(root) if e.is_dir()]
    config = LinkProcessingConfig(
        dataset_root=root,
        docs_folders=docs_folders,
        exclusion_list=list(exclusion_list),
    )

    result = DatasetValidationResult()
    for file in md_files:
        errors = await _validate_file_links(file, config, file_service, result)
        result.errors.extend(errors)

    if result.errors:
        await file_service.write_file(
            errors_path, '\n'.join(format_error(e, root) for e in result.errors)
        )
        result.logs.append(f"\nErrors found: {len(result.errors)}")
        result.logs.append('Summary:')
        for error_type in (BAD_LINK_FORMAT, LINK_TARGET_NOT_FOUND):
            count = sum(1 for e in result.errors if e.type == error_type)
            result.logs.append(f"  {error_type}: {count}")
        result.logs.append(f"\nAll errors have been written to: {errors_path}")
        ops_logger.warn(f"{len(result.errors)} link errors written to {errors_path}")
    else:
        if await file_service.exists(errors_path):
            await file_service.unlink(errors_path)
            result.logs.append(f"Removed previous errors file: {errors_path}")
        result.logs.append('All markdown links are valid.')

    result.logs.append(f"Patched links: {result.patched_links}")
    result.logs.append(f"Normalized relative links: {result.normalized_rel_links}")
    result.logs.append(f"Normalized full links: {result.normalized_full_links}")
    return result


async def _validate_file_links(
    file: str,
    config: LinkProcessingConfig,
    file_service: FileSystemService,
    result: DatasetValidationResult,
) -> List[ErrorLog]:
    content = await file_service.read_file(file)
    lines = content.splitlines()
    errors = find_bad_link_formats(lines, file)

    async def generate(links: List[ParsedLink]) -> List[Replacement]:
        replacements = await generate_normalization_replacements(links, file, config, file_service)
        existence = await generate_existence_check_replacements(
            links, file, config, file_service, lines
        )
        errors.extend(existence.errors)
        return replacements + existence.replacements

    applied = await process_file_with_links(content, generate)
    if applied.content != content:
        await file_service.write_file(file, applied.content)

    result.patched_links += applied.by_kind.get('patched', 0)
    result.normalized_rel_links += applied.by_kind.get('normalizedRel', 0)
    result.normalized_full_links += applied.by_kind.get('normalizedFull', 0)
    return errors
