"""Registry of base templates and the children created from them."""

from typing import TYPE_CHECKING, Any

import orjson

from promptforge.exceptions import BaseTemplateNotFoundError, TemplateSyntaxError
from promptforge.templating import find_regions
from promptforge.utils import get_logger

from ._models import (
    BaseTemplate,
    ChildInfo,
    ChildTemplateOptions,
    InheritanceValidation,
    TemplateHierarchy,
)
from ._resolver import resolve_inheritance

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from promptforge.templating import Template


class InheritanceManager:
    """Holds base templates and creates child templates from them.

    Instances are independent; create one per use site rather than sharing a
    module-level manager.
    """

    def __init__(self, logger: "FilteringBoundLogger | None" = None) -> None:  # noqa: UP037
        self._logger = logger if logger is not None else get_logger("inheritance")
        self._bases: dict[str, BaseTemplate] = {}
        self._children: dict[str, list[ChildInfo]] = {}

    def register_base_template(self, template: BaseTemplate) -> None:
        """Register (or replace) a base template under its name.

        Children recorded against an earlier registration are kept.
        """
        self._bases[template.name] = template
        self._children.setdefault(template.name, [])
        self._logger.debug("base_template_registered", base=template.name)

    def get_base_template(self, name: str) -> BaseTemplate:
        """Return a registered base template.

        Raises:
            BaseTemplateNotFoundError: If no base has that name.
        """
        try:
            return self._bases[name]
        except KeyError:
            msg = f"Base template '{name}' not found"
            raise BaseTemplateNotFoundError(msg, base_name=name) from None

    def create_child_template(
        self, base_name: str, child: ChildTemplateOptions
    ) -> "Template":  # noqa: UP037
        """Create a child template from a registered base.

        Raises:
            BaseTemplateNotFoundError: If ``base_name`` is not registered.
        """
        base = self.get_base_template(base_name)
        template = resolve_inheritance(base, child, self._logger)
        self._children[base_name].append(
            ChildInfo(
                name=child.name,
                blocks=tuple(child.blocks),
                sections=tuple(child.sections),
            )
        )
        return template

    def get_hierarchy(self, base_name: str) -> TemplateHierarchy:
        """Return a base and its children; unknown names give an empty hierarchy."""
        return TemplateHierarchy(
            base_name=base_name,
            base_template=self._bases.get(base_name),
            children=list(self._children.get(base_name, [])),
        )

    def validate_inheritance(self, base_name: str) -> InheritanceValidation:
        """Check a base template's structure.

        Reports an error for an unknown base, unbalanced markers, or a child
        recorded under its own base's name, and a warning for each declared
        required or optional block the base source does not contain.
        """
        errors: list[str] = []
        warnings: list[str] = []

        base = self._bases.get(base_name)
        if base is None:
            errors.append(f"Base template '{base_name}' not found")
            return InheritanceValidation(is_valid=False, errors=errors, warnings=warnings)

        try:
            declared = {region.name for region in find_regions(base.source, "block")}
        except TemplateSyntaxError as e:
            errors.append(f"Base template '{base_name}' cannot be parsed: {e}")
        else:
            warnings.extend(
                f"Required block '{name}' not found in base template"
                for name in base.required_blocks
                if name not in declared
            )
            warnings.extend(
                f"Optional block '{name}' not found in base template"
                for name in base.optional_blocks
                if name not in declared
            )

        if any(child.name == base_name for child in self._children.get(base_name, [])):
            errors.append(f"Circular dependency detected in template '{base_name}'")

        return InheritanceValidation(is_valid=not errors, errors=errors, warnings=warnings)

    def base_template_names(self) -> list[str]:
        """Return registered base names in registration order."""
        return list(self._bases)

    def export_hierarchy(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Describe every base template and its children as plain data."""
        return {
            name: {
                "source": base.source,
                "description": base.description,
                "default_bindings": dict(base.default_bindings),
                "required_blocks": list(base.required_blocks),
                "optional_blocks": list(base.optional_blocks),
                "children": [child.name for child in self._children.get(name, [])],
            }
            for name, base in self._bases.items()
        }

    def export_hierarchy_json(self) -> str:
        """Serialize export_hierarchy() as indented JSON."""
        return orjson.dumps(
            self.export_hierarchy(), option=orjson.OPT_INDENT_2, default=str
        ).decode()
