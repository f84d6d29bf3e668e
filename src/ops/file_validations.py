"""Sandbox and existence checks for path operations."""

import posixpath
from typing import Optional

from ..file_system.file_system_service import FileStat, FileSystemService
from ..file_system.utils import is_within
from ..observability.logger import OpsLogger, get_ops_logger
from .errors import IOOperationError, PathEscapeError, SourceNotExistsError


def validate_paths(
    source: str,
    target: str,
    src_path: str,
    dest_path: str,
    dataset_root: str,
    ops_logger: Optional[OpsLogger] = None,
) -> None:
    """Ensure both resolved paths stay inside the dataset root.

    Args:
        source: Source as given by the caller (for the error)
        target: Target as given by the caller (for the error)
        src_path: Absolute, normalized source path
        dest_path: Absolute, normalized target path
        dataset_root: Absolute dataset root

    Raises:
        PathEscapeError: If either path resolves outside the dataset root
    """
    root = posixpath.normpath(dataset_root)
    if is_within(src_path, root) and is_within(dest_path, root):
        return
    get_ops_logger(ops_logger).security(
        'CRITICAL',
        'validate_paths',
        f"Path escape attempt: source={source} target={target}",
        {'dataset_root': root},
    )
    raise PathEscapeError(source, target)


async def validate_source_exists(file_service: FileSystemService, src_path: str) -> FileStat:
    """Stat the source, translating a missing path to SourceNotExistsError.

    Raises:
        SourceNotExistsError: If ``src_path`` does not exist
        IOOperationError: If the stat fails for another OS-level reason
    """
    try:
        return await file_service.stat(src_path)
    except FileNotFoundError:
        raise SourceNotExistsError(src_path)
    except OSError as e:
        raise IOOperationError(
            f"Failed to stat source {src_path}", 'stat', src_path, e
        ) from e
