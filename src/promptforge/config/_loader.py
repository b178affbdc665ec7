# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Reading config.toml, layering config sources, and env var overrides."""

import os
import tomllib
from pathlib import Path
from typing import Any

from promptforge.exceptions import ConfigLoadError

ENV_PREFIX = "PROMPTFORGE_"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Parse a TOML file into a plain dict.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the TOML is malformed. Carries the position of
            the error when the interpreter reports one.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Layer ``override`` on top of ``base`` into a fresh dict.

    Tables present on both sides merge key by key. Any other value from
    ``override`` wins outright, lists included. Both inputs stay untouched.
    """
    merged: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]
    for key in base.keys() | override.keys():
        if key not in override:
            merged[key] = _copy_value(base[key])
            continue
        incoming = override[key]
        current = base.get(key)
        if isinstance(current, dict) and isinstance(incoming, dict):
            merged[key] = deep_merge(current, incoming)
        else:
            merged[key] = _copy_value(incoming)
    return merged


def _copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    if isinstance(value, dict):
        return {k: _copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_copy_value(item) for item in value]
    return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Collect ``PROMPTFORGE_SECTION__KEY`` variables as nested config.

    A double underscore separates levels, so
    ``PROMPTFORGE_RENDER__ESCAPE_HTML=true`` becomes
    ``{"render": {"escape_html": True}}``. Unsectioned names such as
    ``PROMPTFORGE_DEBUG`` are left to the logging helpers.
    """
    overrides: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for name, raw in os.environ.items():
        if not name.startswith(prefix):
            continue
        config_key = name[len(prefix) :]
        if "__" not in config_key:
            continue
        path = config_key.lower().split("__")
        _set_nested_key(overrides, path, _parse_string_value(raw))

    return overrides


def _parse_string_value(value: str) -> bool | int | float | str:
    """Coerce an env var string to a bool, int or float when it reads as one."""
    lowered = value.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    number_type = float if "." in value else int
    try:
        return number_type(value)
    except ValueError:
        return value


def _set_nested_key(
    target: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    path: list[str],
    value: object,
) -> None:
    for part in path[:-1]:
        child = target.get(part)
        if not isinstance(child, dict):
            child = {}
            target[part] = child
        target = child
    target[path[-1]] = value
