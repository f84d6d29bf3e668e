"""Leveled operations logger passed explicitly to path operations.

OpsLogger wraps a stdlib ``logging.Logger`` and keeps its own minimum level
and enabled flag as fields, so each operation (and each test) can carry its
own logger value instead of mutating process-wide state.
"""

import logging
import time as _time
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar('T')

DEFAULT_LOGGER_NAME = "src.ops"

# Accepted spellings for log levels coming from config files and env vars
_LEVEL_NAMES = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
}

_SECURITY_LEVELS = {
    'INFO': logging.INFO,
    'WARN': logging.WARNING,
    'CRITICAL': logging.ERROR,
}


def parse_log_level(level: Optional[str]) -> int:
    """Convert a level name to a ``logging`` level, defaulting to INFO.

    Args:
        level: Level name such as "debug", "WARN" or "error"

    Returns:
        The matching ``logging`` level constant
    """
    if not level:
        return logging.INFO
    return _LEVEL_NAMES.get(str(level).strip().upper(), logging.INFO)


class OpsLogger:
    """Leveled logger value for copy/move/link operations.

    Attributes:
        logger: Underlying stdlib logger that receives the records
        level: Minimum level (inclusive) emitted by this value
        enabled: When False every call is a no-op

    Example:
        >>> ops_logger = OpsLogger(level=logging.DEBUG)
        >>> ops_logger.info("Copied file a.md -> b.md")
    """

    def __init__(
        self,
        logger: Optional[logging.Logger] = None,
        level: int = logging.INFO,
        enabled: bool = True,
    ):
        self.logger = logger if logger is not None else logging.getLogger(DEFAULT_LOGGER_NAME)
        self.level = level
        self.enabled = enabled

    def _log(self, level: int, message: str, data: Any = None) -> None:
        if not self.enabled or level < self.level:
            return
        if data is not None:
            message = f"{message} {data}"
        self.logger.log(level, message)

    def debug(self, message: str, data: Any = None) -> None:
        self._log(logging.DEBUG, message, data)

    def info(self, message: str, data: Any = None) -> None:
        self._log(logging.INFO, message, data)

    def warn(self, message: str, data: Any = None) -> None:
        self._log(logging.WARNING, message, data)

    def error(self, message: str, data: Any = None) -> None:
        self._log(logging.ERROR, message, data)

    def security(self, level: str, operation: str, message: str, details: Any = None) -> None:
        """Log a security-relevant event (path escapes, mirror deletions).

        Args:
            level: One of "INFO", "WARN" or "CRITICAL"
            operation: Name of the operation being guarded
            message: Description of the event
            details: Optional extra context appended to the message
        """
        prefix = "SECURITY CRITICAL" if level == 'CRITICAL' else f"SECURITY {level}"
        self._log(
            _SECURITY_LEVELS.get(level, logging.INFO),
            f"{prefix} [{operation}]: {message}",
            details,
        )

    async def time(self, operation: Callable[[], Awaitable[T]], operation_name: str) -> T:
        """Await ``operation`` and log its duration.

        Failures are logged with their elapsed time and re-raised unchanged.

        Args:
            operation: Zero-argument coroutine function to run
            operation_name: Label used in the log lines

        Returns:
            Whatever ``operation`` returns
        """
        start = _time.monotonic()
        try:
            result = await operation()
        except Exception as e:
            elapsed_ms = int((_time.monotonic() - start) * 1000)
            self.error(f"{operation_name} failed after {elapsed_ms}ms: {e}")
            raise
        elapsed_ms = int((_time.monotonic() - start) * 1000)
        self.debug(f"{operation_name} completed in {elapsed_ms}ms")
        return result


def get_ops_logger(ops_logger: Optional[OpsLogger] = None) -> OpsLogger:
    """Return ``ops_logger`` or a fresh default OpsLogger."""
    return ops_logger if ops_logger is not None else OpsLogger()
