"""Data models for CLI operations.

All models use dataclasses, following the patterns of ``src/ops/models.py``.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

from src.ops.models import DEFAULT_CONCURRENCY_LIMIT, Behavior


class ExitCode(IntEnum):
    """Exit codes for CLI operations.

    - SUCCESS (0): Operation completed successfully
    - GENERAL_ERROR (1): Unexpected error or failed setup
    - VALIDATION_ERROR (2): Invalid configuration, options or broken links
    - PATH_ERROR (3): Source/target rejected (escape, missing, overlapping)
    - IO_ERROR (4): Reading or writing the dataset failed

    Example:
        >>> exit_code = ExitCode.SUCCESS
        >>> sys.exit(exit_code)
    """
    SUCCESS = 0
    GENERAL_ERROR = 1
    VALIDATION_ERROR = 2
    PATH_ERROR = 3
    IO_ERROR = 4


@dataclass
class CLIConfig:
    """Settings loaded from ``.content-sync/config.yaml``.

    Attributes:
        dataset_root: Dataset root, relative to the config's project dir or absolute
        default_behavior: Behavior when no folder override matches
        folder_behavior: Per-folder behavior overrides
        concurrency_limit: Maximum files rewritten concurrently
        flatten: Flatten nested directories on copy/move
        prefix: Prefix for top-level destination directories
        exclusion_list: Href prefixes ignored by ``validate``
        errors_file: Report file written by ``validate``
        log_level: Level of the operations logger

    Example:
        >>> config = CLIConfig(dataset_root="docs", flatten=True)
    """
    dataset_root: Optional[str] = None
    default_behavior: Behavior = Behavior.OVERWRITE
    folder_behavior: Dict[str, Behavior] = field(default_factory=dict)
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    flatten: bool = False
    prefix: Optional[str] = None
    exclusion_list: List[str] = field(default_factory=list)
    errors_file: str = "link-errors.log"
    log_level: str = "info"
