"""Logging utilities for promptforge.

This module provides standalone structlog logger factories that write
JSON-formatted or text-formatted logs to stderr or a log file. Each logger is
self-contained and does not modify global structlog configuration.
"""

import logging
import sys
from functools import cache
from os import getenv
from pathlib import Path
from typing import TYPE_CHECKING, Literal, cast

import structlog

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from promptforge.config import LoggingConfig

LogFormatType = Literal["json", "text"]


def _get_log_level() -> int:
    """Get the log level from environment variables.

    Checks PROMPTFORGE_DEBUG first (sets DEBUG if present), then
    PROMPTFORGE_LOG_LEVEL. Defaults to WARNING if neither is set.
    """
    if getenv("PROMPTFORGE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(
        getenv("PROMPTFORGE_LOG_LEVEL", "warning").upper(), logging.WARNING
    )


def _log_level_from_string(level: str, *, respect_env: bool = False) -> int:
    """Convert a log level string to a logging level integer.

    Args:
        level: Log level string (debug, info, warning, error).
        respect_env: If True, PROMPTFORGE_DEBUG overrides to DEBUG level.
    """
    if respect_env and getenv("PROMPTFORGE_DEBUG", None):
        return logging.DEBUG

    log_levels = logging.getLevelNamesMapping()
    return log_levels.get(level.upper(), logging.INFO)


def create_logger(
    log_file_path: str | None = None,
    *,
    log_level: int | None = None,
    log_format: LogFormatType = "text",
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a standalone structlog logger.

    Args:
        log_file_path: Path to a log file opened in append mode. When None or
            empty, the logger writes to stderr.
        log_level: Override log level (uses env vars if not specified).
        log_format: Output format, either "json" or "text".

    Returns:
        A configured FilteringBoundLogger instance.
    """
    effective_level = log_level if log_level is not None else _get_log_level()

    if log_file_path:
        log_path = Path(log_file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger_factory = structlog.WriteLoggerFactory(file=log_path.open("a"))
    else:
        logger_factory = structlog.WriteLoggerFactory(file=sys.stderr)

    processors: list[structlog.typing.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
        processors.append(structlog.processors.JSONRenderer())
    else:
        # Text format: "timestamp [level] event key=value ..."
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    wrapper_class = structlog.make_filtering_bound_logger(effective_level)

    # wrap_logger leaves the global structlog configuration untouched
    return cast(
        "FilteringBoundLogger",
        structlog.wrap_logger(
            logger_factory(),
            processors=processors,
            wrapper_class=wrapper_class,
            context_class=dict,
        ),
    )


def create_logger_from_config(
    config: "LoggingConfig",  # noqa: UP037
) -> "FilteringBoundLogger":  # noqa: UP037
    """Create a logger from a LoggingConfig section.

    The log level is determined by (in order of precedence):
    1. PROMPTFORGE_DEBUG environment variable (if set, enables DEBUG level)
    2. The configured level
    """
    return create_logger(
        config.file or None,
        log_level=_log_level_from_string(config.level.value, respect_env=True),
        log_format=config.format.value,
    )


@cache
def _default_logger() -> "FilteringBoundLogger":  # noqa: UP037
    return create_logger()


def get_logger(name: str) -> "FilteringBoundLogger":  # noqa: UP037
    """Return the shared stderr logger bound to a component name.

    Components accept an explicit logger; this is the fallback they use when
    none is supplied.
    """
    return _default_logger().bind(component=name)
