# pyright: reportExplicitAny=false, reportAny=false
"""Configuration models.

This module provides the Pydantic models for promptforge configuration and
the Config container that merges defaults, a TOML file, and environment
variables.
"""

from enum import StrEnum
from pathlib import Path
from typing import Any, ClassVar, Self

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError

from promptforge.config._defaults import DEFAULT_CONFIG
from promptforge.config._loader import deep_merge, parse_env_vars, read_toml_file
from promptforge.exceptions import ConfigValidationError

CONFIG_FILE_NAME = "promptforge.toml"


class LogLevel(StrEnum):
    """Log level threshold values.

    Values are ordered from most verbose (debug) to least verbose (error).
    """

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Log output format values."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty writes to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class RenderConfig(BaseModel):
    """Default render settings applied to templates built from config."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    conditionals: bool = Field(
        default=True, description="Evaluate {{#if}} blocks."
    )
    loops: bool = Field(default=True, description="Expand {{#each}} blocks.")
    inheritance: bool = Field(
        default=True, description="Splice child blocks into a base template."
    )
    escape_html: bool = Field(
        default=False, description="HTML-escape interpolated values."
    )
    preserve_whitespace: bool = Field(
        default=True, description="Keep whitespace runs in rendered output."
    )


class Config(BaseModel):
    """Configuration container with typed access.

    Use the factory methods rather than the constructor so that defaults are
    always merged in.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)

    _sources: tuple[str, ...] = PrivateAttr(default=())

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, source: str | None = None) -> Self:
        """Create configuration from a dictionary merged over the defaults.

        Args:
            data: Dictionary of configuration values.
            source: Optional description of where the values came from.

        Returns:
            Validated configuration object.

        Raises:
            ConfigValidationError: If any value fails validation.
        """
        merged = deep_merge(DEFAULT_CONFIG, data)
        try:
            config = cls.model_validate(merged)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            msg = f"Invalid configuration: {'; '.join(errors)}"
            raise ConfigValidationError(msg, source=source, errors=errors) from e
        if source is not None:
            config._sources = (source,)
        return config

    @classmethod
    def from_file(cls, path: Path) -> Self:
        """Load configuration from a specific TOML file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        return cls.from_dict(read_toml_file(path), source=str(path))

    @classmethod
    def load(
        cls,
        *,
        config_path: Path | None = None,
        search_dir: Path | None = None,
        include_env: bool = True,
    ) -> Self:
        """Load merged configuration from all sources.

        Precedence, lowest to highest: defaults, the TOML file, environment
        variables (``PROMPTFORGE_SECTION__KEY``).

        Args:
            config_path: Explicit config file. Must exist when given.
            search_dir: Directory searched for ``promptforge.toml`` when no
                explicit path is given. Defaults to the current directory.
            include_env: Include environment variables as a source.

        Raises:
            FileNotFoundError: If an explicit config_path does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If the merged values fail validation.
        """
        data: dict[str, Any] = {}
        sources: list[str] = []

        if config_path is None:
            candidate = (search_dir or Path.cwd()) / CONFIG_FILE_NAME
            if candidate.is_file():
                config_path = candidate
        elif not config_path.exists():
            msg = f"Config file not found: {config_path}"
            raise FileNotFoundError(msg)

        if config_path is not None:
            data = read_toml_file(config_path)
            sources.append(str(config_path))

        if include_env:
            env_values = parse_env_vars()
            if env_values:
                data = deep_merge(data, env_values)
                sources.append("env")

        config = cls.from_dict(data, source=", ".join(sources) or None)
        config._sources = tuple(sources)
        return config

    @property
    def sources(self) -> list[str]:
        """Return the sources that contributed to this configuration."""
        return list(self._sources)
