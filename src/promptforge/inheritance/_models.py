"""Inheritance data types."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SectionMode(StrEnum):
    """How a section override combines with the base section body.

    Prepended and appended content is joined to the existing body with a
    newline.
    """

    REPLACE = "replace"
    PREPEND = "prepend"
    APPEND = "append"


@dataclass(frozen=True, slots=True)
class BlockOverride:
    """Replacement content for a ``{{#block}}`` region."""

    content: str


@dataclass(frozen=True, slots=True)
class SectionOverride:
    """Content merged into a ``{{#section}}`` region."""

    content: str
    mode: SectionMode = SectionMode.REPLACE


@dataclass(frozen=True, slots=True)
class BaseTemplate:
    """A registered base template that children extend.

    Attributes:
        name: Registry name.
        source: Template text with overridable regions.
        description: Human-readable summary.
        default_bindings: Bindings children inherit; child variables win.
        functions: Custom functions children inherit.
        required_blocks: Blocks every child is expected to override.
        optional_blocks: Blocks a child may override.
        escape_html: Default HTML escaping for children.
        preserve_whitespace: Default whitespace handling for children.
        metadata: Free-form data carried alongside the template.
    """

    name: str
    source: str
    description: str = ""
    default_bindings: Mapping[str, object] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., object]] = field(default_factory=dict)
    required_blocks: tuple[str, ...] = ()
    optional_blocks: tuple[str, ...] = ()
    escape_html: bool = False
    preserve_whitespace: bool = True
    metadata: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ChildTemplateOptions:
    """Overrides a child template applies to its base.

    ``escape_html`` and ``preserve_whitespace`` fall back to the base's
    values when left as None.
    """

    name: str
    blocks: Mapping[str, BlockOverride] = field(default_factory=dict)
    sections: Mapping[str, SectionOverride] = field(default_factory=dict)
    variables: Mapping[str, object] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., object]] = field(default_factory=dict)
    escape_html: bool | None = None
    preserve_whitespace: bool | None = None


@dataclass(frozen=True, slots=True)
class InheritanceValidation:
    """Result of validating a base template."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class ChildInfo:
    """A child created from a base, with the regions it overrode."""

    name: str
    blocks: tuple[str, ...] = ()
    sections: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TemplateHierarchy:
    """A base template and the children created from it."""

    base_name: str
    base_template: BaseTemplate | None
    children: list[ChildInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Convert to a JSON-serializable dictionary."""
        return {
            "base_name": self.base_name,
            "description": self.base_template.description if self.base_template else None,
            "children": [
                {
                    "name": child.name,
                    "blocks": list(child.blocks),
                    "sections": list(child.sections),
                }
                for child in self.children
            ],
        }
