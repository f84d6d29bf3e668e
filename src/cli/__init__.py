"""Command-line interface for content-sync.

This package provides the `content-sync` CLI tool that runs copy, move,
pre-flight check and link validation operations on a Markdown dataset,
with YAML configuration, colored output and meaningful exit codes.
"""

from .path_command import PathCommand, exit_code_for
from .config import ConfigLoader
from .models import CLIConfig, ExitCode
from .errors import (
    CLIError,
    ConfigError,
    ConfigFilesystemError,
    DatasetRootError,
)

__all__ = [
    'PathCommand',
    'exit_code_for',
    'ConfigLoader',
    'CLIConfig',
    'ExitCode',
    'CLIError',
    'ConfigError',
    'ConfigFilesystemError',
    'DatasetRootError',
]
