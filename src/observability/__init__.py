"""Logging helpers shared by the path operation packages."""

from .logger import OpsLogger, get_ops_logger, parse_log_level

__all__ = [
    'OpsLogger',
    'get_ops_logger',
    'parse_log_level',
]
