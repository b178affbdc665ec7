"""Shared utilities."""

from ._logging import create_logger, create_logger_from_config, get_logger

__all__ = [
    "create_logger",
    "create_logger_from_config",
    "get_logger",
]
