"""Template function implementations and registry.

Functions are invoked from ``{{name(arg, ...)}}`` tokens and from function
calls embedded in ``{{#if}}`` conditions. They receive already-resolved
argument values, never raw template text, and have no access to the
surrounding bindings.
"""

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol, runtime_checkable

from ._bindings import to_number, to_text

_POSITIONAL_PLACEHOLDER = re.compile(r"\{(\d+)\}")


@runtime_checkable
class TemplateFunction(Protocol):
    """Protocol for callables usable from templates."""

    def __call__(self, *args: object) -> object:
        """Execute the function with resolved argument values."""
        ...


def _number(value: object) -> int | float:
    number = to_number(value)
    if number is None:
        msg = f"Expected a number, got {value!r}"
        raise ValueError(msg)
    return number


# ---------------------------------------------------------------------------
# String functions
# ---------------------------------------------------------------------------


def upper(value: object) -> str:
    """Template usage: {{upper(name)}}"""
    return to_text(value).upper()


def lower(value: object) -> str:
    """Template usage: {{lower(name)}}"""
    return to_text(value).lower()


def capitalize(value: object) -> str:
    """Upper-case the first character and leave the rest untouched.

    Template usage: {{capitalize(task.name)}}
    """
    text = to_text(value)
    return text[:1].upper() + text[1:]


def length(value: object) -> int:
    """Template usage: {{length(items)}}

    Counts list items or mapping keys; anything else is measured as text.
    """
    if isinstance(value, (str, list, tuple, Mapping)):
        return len(value)  # pyright: ignore[reportUnknownArgumentType]
    return len(to_text(value))


# ---------------------------------------------------------------------------
# Array functions
# ---------------------------------------------------------------------------


def join(value: object, separator: object = ", ") -> str:
    """Template usage: {{join(team, " / ")}}"""
    if isinstance(value, (list, tuple)):
        return to_text(separator).join(to_text(item) for item in value)  # pyright: ignore[reportUnknownVariableType]
    return to_text(value)


def first(value: object) -> object:
    """Template usage: {{first(items)}}"""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def last(value: object) -> object:
    """Template usage: {{last(items)}}"""
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


# ---------------------------------------------------------------------------
# Arithmetic functions
# ---------------------------------------------------------------------------


def add(a: object, b: object) -> int | float:
    """Template usage: {{add(a, b)}}"""
    return _number(a) + _number(b)


def subtract(a: object, b: object) -> int | float:
    """Template usage: {{subtract(a, b)}}"""
    return _number(a) - _number(b)


def multiply(a: object, b: object) -> int | float:
    """Template usage: {{multiply(a, b)}}"""
    return _number(a) * _number(b)


def divide(a: object, b: object) -> float:
    """Template usage: {{divide(a, b)}}

    Raises:
        ZeroDivisionError: If ``b`` is zero.
    """
    return _number(a) / _number(b)


# ---------------------------------------------------------------------------
# Utility functions
# ---------------------------------------------------------------------------


def default(value: object, fallback: object) -> object:
    """Return ``fallback`` when ``value`` is empty, zero, false or missing.

    Template usage: {{default(nickname, "friend")}}
    """
    if value is None or value is False or value in ("", 0):
        return fallback
    return value


def format_text(template: object, *args: object) -> str:
    """Substitute ``{0}``-style positional placeholders.

    Placeholders without a matching argument are left as written.

    Template usage: {{format("{0} of {1}", done, total)}}
    """

    def replacer(match: re.Match[str]) -> str:
        index = int(match.group(1))
        if index < len(args):
            return to_text(args[index])
        return match.group(0)

    return _POSITIONAL_PLACEHOLDER.sub(replacer, to_text(template))


BUILTIN_FUNCTIONS: Mapping[str, Callable[..., object]] = MappingProxyType({
    # String functions
    "upper": upper,
    "lower": lower,
    "capitalize": capitalize,
    "length": length,
    # Array functions
    "join": join,
    "first": first,
    "last": last,
    # Arithmetic functions
    "add": add,
    "subtract": subtract,
    "multiply": multiply,
    "divide": divide,
    # Utility functions
    "default": default,
    "format": format_text,
})


@dataclass(frozen=True, slots=True)
class FunctionRegistry:
    """Registry of template functions.

    Provides lookup for functions by name. Instances are immutable; use
    ``merged()`` to derive a registry with additional functions.
    """

    _functions: Mapping[str, Callable[..., object]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, name: str) -> Callable[..., object] | None:
        """Get function by name.

        Returns:
            The function callable, or None if not found.
        """
        return self._functions.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def names(self) -> list[str]:
        """Return registered function names in registration order."""
        return list(self._functions)

    def all_functions(self) -> dict[str, Callable[..., object]]:
        """Get a copy of all registered functions."""
        return dict(self._functions)

    def merged(
        self, functions: Mapping[str, Callable[..., object]]
    ) -> "FunctionRegistry":  # noqa: UP037
        """Return a new registry where ``functions`` take precedence."""
        return FunctionRegistry(
            _functions=MappingProxyType({**self._functions, **functions})
        )


def create_function_registry(
    custom_functions: Mapping[str, Callable[..., object]] | None = None,
) -> FunctionRegistry:
    """Create a registry with the built-in functions plus custom ones.

    Custom functions override built-ins that share their name.

    Args:
        custom_functions: Caller-supplied functions keyed by template name.

    Returns:
        A FunctionRegistry ready for rendering.
    """
    registry = FunctionRegistry(_functions=BUILTIN_FUNCTIONS)
    if custom_functions:
        return registry.merged(custom_functions)
    return registry
