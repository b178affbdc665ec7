"""Template inheritance.

A base template declares overridable ``{{#block}}`` regions and mergeable
``{{#section}}`` regions. A child replaces blocks outright and replaces,
prepends to or appends to sections.

Example:
    >>> from promptforge.inheritance import BlockOverride, ChildTemplateOptions, resolve_inheritance
    >>> child = ChildTemplateOptions(name="c", blocks={"c": BlockOverride("Custom")})
    >>> resolve_inheritance("H\\n{{#block c}}default{{/block}}\\nF", child).render()
    'H\\nCustom\\nF'
"""

from promptforge.exceptions import (
    AmbiguousBaseBlockWarning,
    BaseTemplateNotFoundError,
    InheritanceError,
)

from ._defaults import create_common_base_templates, create_inheritance_manager
from ._loader import load_base_template, load_base_templates
from ._manager import InheritanceManager
from ._models import (
    BaseTemplate,
    BlockOverride,
    ChildInfo,
    ChildTemplateOptions,
    InheritanceValidation,
    SectionMode,
    SectionOverride,
    TemplateHierarchy,
)
from ._resolver import apply_overrides, merge_section, resolve_inheritance

__all__ = [
    "AmbiguousBaseBlockWarning",
    "BaseTemplate",
    "BaseTemplateNotFoundError",
    "BlockOverride",
    "ChildInfo",
    "ChildTemplateOptions",
    "InheritanceError",
    "InheritanceManager",
    "InheritanceValidation",
    "SectionMode",
    "SectionOverride",
    "TemplateHierarchy",
    "apply_overrides",
    "create_common_base_templates",
    "create_inheritance_manager",
    "load_base_template",
    "load_base_templates",
    "merge_section",
    "resolve_inheritance",
]
