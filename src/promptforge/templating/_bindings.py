"""Variable binding and value conversion.

A render works against a RenderContext: the template's static bindings
overlaid with the overrides passed to ``render()``. Loop iterations push a
child scope on top of it so loop names shadow outer bindings only while that
iteration renders.
"""

from collections import ChainMap
from collections.abc import Mapping
from typing import Final

import orjson

type Value = str | int | float | bool | None | list[Value] | dict[str, Value]

MISSING: Final = object()


def merge_bindings(
    defaults: Mapping[str, object],
    overrides: Mapping[str, object] | None = None,
) -> dict[str, object]:
    """Merge default bindings with per-call overrides.

    Neither input is modified; overrides win on key collisions.
    """
    merged = dict(defaults)
    if overrides:
        merged.update(overrides)
    return merged


def resolve_path(data: Mapping[str, object], path: str) -> object:
    """Resolve a dotted path against a mapping.

    Each segment after the first indexes into a mapping key, a list position,
    or an attribute of the current value.

    Args:
        data: The mapping holding the first path segment.
        path: A name like ``topic`` or ``task.owner.name``.

    Returns:
        The resolved value, or ``MISSING`` if any segment cannot be found.
    """
    head, _, rest = path.partition(".")
    if head not in data:
        return MISSING
    value = data[head]
    if not rest:
        return value

    for segment in rest.split("."):
        if isinstance(value, Mapping):
            if segment not in value:
                return MISSING
            value = value[segment]  # pyright: ignore[reportUnknownVariableType]
        elif isinstance(value, (list, tuple)) and segment.isdigit():
            index = int(segment)
            if index >= len(value):  # pyright: ignore[reportUnknownArgumentType]
                return MISSING
            value = value[index]  # pyright: ignore[reportUnknownVariableType]
        else:
            value = getattr(value, segment, MISSING)
            if value is MISSING:
                return MISSING
    return value


class Scope:
    """Layered variable lookup for one render call.

    The bottom layer is the render context; each loop iteration adds a layer
    holding its item bindings.
    """

    __slots__ = ("_maps",)

    def __init__(self, bindings: Mapping[str, object]) -> None:
        self._maps: ChainMap[str, object] = ChainMap(dict(bindings))

    def child(self, bindings: Mapping[str, object]) -> "Scope":
        """Return a new scope with ``bindings`` layered over this one."""
        scope = Scope.__new__(Scope)
        scope._maps = self._maps.new_child(dict(bindings))
        return scope

    def lookup(self, path: str) -> object:
        """Resolve a dotted path, returning ``MISSING`` when unbound."""
        return resolve_path(self._maps, path)

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.lookup(path) is not MISSING

    def names(self) -> list[str]:
        """Return every bound top-level name."""
        return list(self._maps)


def to_text(value: object) -> str:
    """Convert a bound or computed value to its rendered text.

    Booleans render as ``true``/``false``, integral floats without a
    fractional part, lists as comma-separated items, and mappings as JSON.
    """
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))
        case str():
            return value
        case list() | tuple():
            return ", ".join(to_text(item) for item in value)  # pyright: ignore[reportUnknownVariableType]
        case Mapping():
            return orjson.dumps(value, default=str).decode()
        case _:
            return str(value)


def to_number(value: object) -> int | float | None:
    """Return ``value`` as a number, or None when it is not numeric.

    Strings holding a numeric literal count as numbers; booleans do not.
    """
    match value:
        case bool():
            return None
        case int() | float():
            return value
        case str():
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                return None
            return None if number != number else number  # NaN
        case _:
            return None


def is_truthy(value: object) -> bool:
    """Truthiness used by bare ``{{#if name}}`` checks.

    ``"false"``, zero, empty strings and empty collections are false;
    everything else bound is true, including the string ``"0"``.
    """
    match value:
        case None:
            return False
        case bool():
            return value
        case int() | float():
            return value != 0
        case str():
            return value.lower() not in ("", "false")
        case _:
            try:
                return len(value) > 0  # pyright: ignore[reportArgumentType]
            except TypeError:
                return True
