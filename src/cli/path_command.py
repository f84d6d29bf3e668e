"""Copy, move, check and validate orchestration for the CLI.

PathCommand resolves the dataset root and options, runs one of the async
path operations to completion and translates exceptions into exit codes.
"""

import asyncio
import logging
import os
from typing import Dict, Optional

from dotenv import load_dotenv

from src.cli.config import ConfigLoader
from src.cli.errors import CLIError, ConfigError, ConfigFilesystemError, DatasetRootError
from src.cli.models import CLIConfig, ExitCode
from src.cli.output import OutputHandler
from src.file_system.file_system_service import FileSystemService, LocalFileSystemService
from src.observability.logger import OpsLogger, parse_log_level
from src.ops.copy_path_ops import copy_path_ops
from src.ops.errors import (
    ContentSyncError,
    InvalidPathError,
    InvalidSourceTypeError,
    InvalidSubfolderCopyError,
    InvalidSubfolderMoveError,
    IOOperationError,
    MirrorConstraintViolationError,
    PathEscapeError,
    SourceNotExistsError,
)
from src.ops.models import SyncOptions
from src.ops.move_path_ops import move_path_ops
from src.ops.validate_path_ops import validate_dataset_links, validate_path_ops
from src.path_resolution.root_detection import detect_repo_root

logger = logging.getLogger(__name__)

DATASET_ROOT_ENV = 'CONTENT_SYNC_DATASET_ROOT'

PATH_ERRORS = (
    PathEscapeError,
    InvalidPathError,
    SourceNotExistsError,
    InvalidSourceTypeError,
    InvalidSubfolderCopyError,
    InvalidSubfolderMoveError,
)


def exit_code_for(error: Exception) -> ExitCode:
    """Map an operation or CLI error to the process exit code."""
    if isinstance(error, PATH_ERRORS):
        return ExitCode.PATH_ERROR
    if isinstance(error, (MirrorConstraintViolationError, ConfigError)):
        return ExitCode.VALIDATION_ERROR
    if isinstance(error, IOOperationError):
        return ExitCode.IO_ERROR
    return ExitCode.GENERAL_ERROR


class PathCommand:
    """Runs path operations for the CLI.

    Example:
        >>> output = OutputHandler(verbosity=1)
        >>> command = PathCommand(output_handler=output, dataset_root="./docs")
        >>> exit_code = command.run("copy", "guides", "manual")
        >>> sys.exit(exit_code)
    """

    def __init__(
        self,
        output_handler: Optional[OutputHandler] = None,
        config_path: Optional[str] = None,
        dataset_root: Optional[str] = None,
        file_service: Optional[FileSystemService] = None,
    ):
        """Initialize the command.

        Args:
            output_handler: Terminal output (created with defaults if None)
            config_path: Explicit config file; the default location is used
                when it exists
            dataset_root: Dataset root from the command line
            file_service: File system to operate on (local disk if None)
        """
        self.output_handler = output_handler or OutputHandler()
        self.config_path = config_path
        self.dataset_root = dataset_root
        self.file_service = file_service or LocalFileSystemService()

    def run(
        self,
        operation: str,
        source: str,
        target: str,
        default_behavior: Optional[str] = None,
        folder_behavior: Optional[Dict[str, str]] = None,
        concurrency_limit: Optional[int] = None,
        flatten: Optional[bool] = None,
        prefix: Optional[str] = None,
        skill_map_in: Optional[str] = None,
        skill_map_out: Optional[str] = None,
    ) -> ExitCode:
        """Execute a copy or move.

        Returns:
            ExitCode indicating success or the failure category
        """
        try:
            config = ConfigLoader.load_optional(self.config_path)
            dataset_root = self._resolve_dataset_root(config)
            options = ConfigLoader.to_sync_options(
                config, default_behavior, folder_behavior, concurrency_limit, flatten, prefix
            )
            skill_name_map = ConfigLoader.load_skill_map(skill_map_in) if skill_map_in else None
            ops_logger = OpsLogger(level=parse_log_level(config.log_level))

            logger.info(f"{operation} {source} -> {target} in {dataset_root}")
            operation_fn = move_path_ops if operation == 'move' else copy_path_ops
            with self.output_handler.spinner(f"Running {operation}..."):
                result = asyncio.run(operation_fn(
                    self.file_service,
                    source,
                    target,
                    dataset_root,
                    options,
                    skill_name_map,
                    ops_logger,
                ))

            if skill_map_out and result.skill_name_map:
                ConfigLoader.save_skill_map(skill_map_out, result.skill_name_map)
                self.output_handler.info(f"Skill name map written to {skill_map_out}")

            self.output_handler.print_sync_summary(operation, result)
            return ExitCode.SUCCESS

        except Exception as e:
            return self._handle_error(operation, e)

    def check(
        self,
        operation: str,
        source: str,
        target: str,
        default_behavior: Optional[str] = None,
        folder_behavior: Optional[Dict[str, str]] = None,
    ) -> ExitCode:
        """Run the pre-flight checks of a copy or move without writing."""
        try:
            config = ConfigLoader.load_optional(self.config_path)
            dataset_root = self._resolve_dataset_root(config)
            options = ConfigLoader.to_sync_options(config, default_behavior, folder_behavior)
            setup = validate_path_ops(source, target, dataset_root, operation, options)
            self.output_handler.print_check_result(operation, setup)
            return ExitCode.SUCCESS
        except Exception as e:
            return self._handle_error('check', e)

    def validate(self, errors_file: Optional[str] = None) -> ExitCode:
        """Normalize and check every link of the dataset.

        Returns:
            ExitCode.SUCCESS when every link resolves, VALIDATION_ERROR when
            broken links remain
        """
        try:
            config = ConfigLoader.load_optional(self.config_path)
            dataset_root = self._resolve_dataset_root(config)
            errors_path = os.path.abspath(
                os.path.join(dataset_root, errors_file or config.errors_file)
            )
            ops_logger = OpsLogger(level=parse_log_level(config.log_level))

            with self.output_handler.spinner("Validating links..."):
                result = asyncio.run(validate_dataset_links(
                    self.file_service,
                    dataset_root,
                    errors_path,
                    config.exclusion_list,
                    ops_logger,
                ))

            self.output_handler.print_validation_summary(result)
            return ExitCode.VALIDATION_ERROR if result.errors else ExitCode.SUCCESS
        except Exception as e:
            return self._handle_error('validate', e)

    def _resolve_dataset_root(self, config: CLIConfig) -> str:
        """Pick the dataset root: flag, environment, config, then repo root.

        Raises:
            DatasetRootError: If the chosen root is not a directory
        """
        load_dotenv()
        candidate = self.dataset_root or os.getenv(DATASET_ROOT_ENV) or config.dataset_root
        if not candidate:
            candidate = asyncio.run(detect_repo_root(os.getcwd(), self.file_service))
        if not candidate:
            raise DatasetRootError(
                f"No dataset root given; pass --root or set {DATASET_ROOT_ENV}"
            )

        dataset_root = os.path.abspath(candidate).replace('\\', '/')
        if not asyncio.run(self.file_service.is_folder(dataset_root)):
            raise DatasetRootError(
                f"Dataset root is not a directory: {dataset_root}", dataset_root
            )
        return dataset_root

    def _handle_error(self, operation: str, error: Exception) -> ExitCode:
        exit_code = exit_code_for(error)
        if isinstance(error, ContentSyncError):
            logger.error(f"{operation} failed [{error.kind.value}]: {error}")
            self.output_handler.error(f"{operation} failed: {error}")
        elif isinstance(error, (ConfigError, ConfigFilesystemError)):
            logger.error(f"Configuration error: {error}")
            self.output_handler.error(f"Configuration error: {error}")
        elif isinstance(error, CLIError):
            logger.error(f"CLI error: {error}")
            self.output_handler.error(f"Error: {error}")
        else:
            logger.exception(f"Unexpected error during {operation}")
            self.output_handler.error(f"Unexpected error: {error}")
        return exit_code
