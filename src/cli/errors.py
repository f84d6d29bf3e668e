"""Typed exception hierarchy for CLI-related errors.

All exceptions inherit from CLIError so the command layer can tell
configuration problems apart from ContentSyncError raised by the path
operations themselves.
"""

from typing import Optional

from src.ops.errors import SyncError


class CLIError(SyncError):
    """Base exception for all CLI-related errors."""
    pass


class ConfigError(CLIError):
    """Raised when the configuration file is invalid or malformed."""

    def __init__(self, message: str, field_name: Optional[str] = None):
        if field_name:
            full_message = f"Config error in field '{field_name}': {message}"
        else:
            full_message = f"Config error: {message}"
        super().__init__(full_message)
        self.field_name = field_name
        self.original_message = message


class ConfigFilesystemError(CLIError):
    """Raised when a configuration or skill map file cannot be read or written."""

    def __init__(self, file_path: str, operation: str, reason: Optional[str] = None):
        message = f"Config file operation '{operation}' failed for {file_path}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.file_path = file_path
        self.operation = operation
        self.reason = reason


class DatasetRootError(CLIError):
    """Raised when no usable dataset root can be determined."""

    def __init__(self, message: str, dataset_root: Optional[str] = None):
        super().__init__(message)
        self.dataset_root = dataset_root
