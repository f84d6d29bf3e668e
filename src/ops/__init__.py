"""Copy, move and link-rewriting operations on a Markdown dataset.

This package moves documentation trees around inside a dataset root while
keeping every Markdown link that points at the moved content valid. All
operations are async and go through a FileSystemService, so they run the
same way against the local disk and the in-memory test double.
"""

from .errors import (
    SyncError,
    ErrorKind,
    ContentSyncError,
    PathEscapeError,
    SourceNotExistsError,
    InvalidPathError,
    InvalidSubfolderMoveError,
    InvalidSubfolderCopyError,
    InvalidSourceTypeError,
    IOOperationError,
    MirrorConstraintViolationError,
)
from .models import (
    DEFAULT_CONCURRENCY_LIMIT,
    Behavior,
    SyncOptions,
    PathSetup,
    CopiedFile,
    PathMappingEntry,
    SyncResult,
    FileError,
    BatchProcessingResult,
    DatasetValidationResult,
)
from .behavior import normalize_key, resolve_behavior, validate_mirror_constraints
from .naming_transforms import flatten_path, prefix_path, transform_path, detect_collisions
from .link_batch_processor import (
    Semaphore,
    create_semaphore,
    process_files_with_link_replacements,
    process_directory_with_link_replacements,
    process_path_substitution,
    process_normalization,
    process_path_mapping,
)
from .skill_reference_rewriter import (
    build_skill_name_map,
    rewrite_skill_references,
    rewrite_skill_references_in_files,
)
from .frontmatter_transform import sync_frontmatter, sync_frontmatter_in_files
from .transform_copy import TransformCopyResult, copy_directory_with_transforms
from .validate_path_ops import validate_path_ops, validate_dataset_links
from .copy_path_ops import copy_path_ops
from .move_path_ops import move_path_ops

__all__ = [
    'SyncError',
    'ErrorKind',
    'ContentSyncError',
    'PathEscapeError',
    'SourceNotExistsError',
    'InvalidPathError',
    'InvalidSubfolderMoveError',
    'InvalidSubfolderCopyError',
    'InvalidSourceTypeError',
    'IOOperationError',
    'MirrorConstraintViolationError',
    'DEFAULT_CONCURRENCY_LIMIT',
    'Behavior',
    'SyncOptions',
    'PathSetup',
    'CopiedFile',
    'PathMappingEntry',
    'SyncResult',
    'FileError',
    'BatchProcessingResult',
    'DatasetValidationResult',
    'normalize_key',
    'resolve_behavior',
    'validate_mirror_constraints',
    'flatten_path',
    'prefix_path',
    'transform_path',
    'detect_collisions',
    'Semaphore',
    'create_semaphore',
    'process_files_with_link_replacements',
    'process_directory_with_link_replacements',
    'process_path_substitution',
    'process_normalization',
    'process_path_mapping',
    'build_skill_name_map',
    'rewrite_skill_references',
    'rewrite_skill_references_in_files',
    'sync_frontmatter',
    'sync_frontmatter_in_files',
    'TransformCopyResult',
    'copy_directory_with_transforms',
    'validate_path_ops',
    'validate_dataset_links',
    'copy_path_ops',
    'move_path_ops',
]
