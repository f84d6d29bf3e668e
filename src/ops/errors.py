"""Typed exception hierarchy for path operation errors.

This module defines the closed set of errors raised by copy, move and link
rewriting operations. Every error carries an ErrorKind discriminator plus the
minimal context needed to diagnose the failure, so callers can branch on
``error.kind`` or catch a specific subclass.
"""

from enum import Enum
from typing import Optional


class SyncError(Exception):
    """Base exception for all content-sync errors.

    Use this to catch any application-level error from the sync tool.
    """
    pass


class ErrorKind(str, Enum):
    """Discriminator for ContentSyncError variants."""
    PATH_ESCAPE = "PATH_ESCAPE"
    SOURCE_NOT_EXISTS = "SOURCE_NOT_EXISTS"
    INVALID_PATH = "INVALID_PATH"
    INVALID_SUBFOLDER_MOVE = "INVALID_SUBFOLDER_MOVE"
    INVALID_SUBFOLDER_COPY = "INVALID_SUBFOLDER_COPY"
    INVALID_SOURCE_TYPE = "INVALID_SOURCE_TYPE"
    IO_ERROR = "IO_ERROR"
    MIRROR_CONSTRAINT_VIOLATION = "MIRROR_CONSTRAINT_VIOLATION"


class ContentSyncError(SyncError):
    """Base exception for all path operation errors.

    Attributes:
        kind: ErrorKind discriminator for this variant
        message: Human-readable description of the failure
    """

    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PathEscapeError(ContentSyncError):
    """Raised when a resolved source or target falls outside the dataset root."""

    kind = ErrorKind.PATH_ESCAPE

    def __init__(self, source: str, target: str,
                 message: str = "Source or target escapes the dataset root. Aborting."):
        super().__init__(message)
        self.source = source
        self.target = target


class SourceNotExistsError(ContentSyncError):
    """Raised when the source path does not exist."""

    kind = ErrorKind.SOURCE_NOT_EXISTS

    def __init__(self, source_path: str):
        super().__init__(f"Source does not exist: {source_path}")
        self.source_path = source_path


class InvalidPathError(ContentSyncError):
    """Raised when source/target is absolute or cannot be resolved."""

    kind = ErrorKind.INVALID_PATH

    def __init__(self, source_path: str, target_path: str,
                 message: str = "Source and target paths must be relative, not absolute"):
        super().__init__(message)
        self.source_path = source_path
        self.target_path = target_path


class InvalidSubfolderMoveError(ContentSyncError):
    """Raised when a folder would be moved into itself or one of its relatives."""

    kind = ErrorKind.INVALID_SUBFOLDER_MOVE

    def __init__(self, source: str, target: str):
        super().__init__(
            "Cannot move a folder into itself or one of its own subfolders. Aborting."
        )
        self.source = source
        self.target = target


class InvalidSubfolderCopyError(ContentSyncError):
    """Raised when a folder would be copied into one of its own subfolders."""

    kind = ErrorKind.INVALID_SUBFOLDER_COPY

    def __init__(self, source: str, target: str):
        super().__init__(
            "Cannot copy a folder into one of its own subfolders. Aborting."
        )
        self.source = source
        self.target = target


class InvalidSourceTypeError(ContentSyncError):
    """Raised when the source is neither a regular file nor a directory."""

    kind = ErrorKind.INVALID_SOURCE_TYPE

    def __init__(self, source_path: str):
        super().__init__(f"Source is neither a file nor a directory: {source_path}")
        self.source_path = source_path


class IOOperationError(ContentSyncError):
    """Raised when an underlying copy/write/mkdir fails or names collide.

    The original exception, when there is one, is kept in ``original_error``
    and chained as ``__cause__`` by the raising code.
    """

    kind = ErrorKind.IO_ERROR

    def __init__(self, message: str, operation: str, path: str,
                 original_error: Optional[BaseException] = None):
        if original_error is not None:
            message = f"{message}: {original_error}"
        super().__init__(message)
        self.operation = operation
        self.path = path
        self.original_error = original_error


class MirrorConstraintViolationError(ContentSyncError):
    """Raised when mirror behavior cannot be applied safely."""

    kind = ErrorKind.MIRROR_CONSTRAINT_VIOLATION

    def __init__(self, message: str, details: str):
        super().__init__(message)
        self.details = details
