"""promptforge configuration.

This module provides loading, validation, and typed access to configuration
values.

Example:
    >>> from promptforge.config import Config
    >>> config = Config.load()
    >>> config.render.loops
    True
"""

from promptforge.exceptions import ConfigError, ConfigLoadError, ConfigValidationError

from ._defaults import DEFAULT_CONFIG
from ._loader import deep_merge, parse_env_vars, read_toml_file
from ._models import (
    CONFIG_FILE_NAME,
    Config,
    LogFormat,
    LoggingConfig,
    LogLevel,
    RenderConfig,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "DEFAULT_CONFIG",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "RenderConfig",
    "deep_merge",
    "parse_env_vars",
    "read_toml_file",
]
