"""Loading templates from files with YAML frontmatter.

A template file is plain template text, optionally preceded by a frontmatter
block::

    ---
    base: base.prompt
    variables:
      tone: formal
    flags:
      loops: false
    escape_html: false
    ---
    {{#block body}}Custom body{{/block}}

``base`` is resolved relative to the file that names it. The base's own
frontmatter variables become defaults under the child's variables.
"""

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import cast

from promptforge.exceptions import TemplateError
from promptforge.utils import get_logger

from ._frontmatter import YAMLFrontmatter, load_frontmatter_file
from ._template import Template, TemplateFlags

logger = get_logger("templating.loader")

_FLAG_NAMES = ("conditionals", "loops", "inheritance")


def _mapping_field(
    frontmatter: YAMLFrontmatter, key: str, path: Path
) -> dict[str, object]:
    value = frontmatter.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"Frontmatter field '{key}' in {path} must be a mapping"
        raise TemplateError(msg)
    return {str(k): v for k, v in value.items()}


def _bool_field(
    frontmatter: YAMLFrontmatter, key: str, path: Path, *, default: bool
) -> bool:
    value = frontmatter.get(key, default)
    if not isinstance(value, bool):
        msg = f"Frontmatter field '{key}' in {path} must be true or false"
        raise TemplateError(msg)
    return value


def _flags(frontmatter: YAMLFrontmatter, path: Path) -> TemplateFlags:
    raw = _mapping_field(frontmatter, "flags", path)
    unknown = sorted(set(raw) - set(_FLAG_NAMES))
    if unknown:
        logger.warning("unknown_template_flags", path=str(path), flags=unknown)
    values: dict[str, bool] = {}
    for name in _FLAG_NAMES:
        if name in raw:
            values[name] = _bool_field(
                cast("YAMLFrontmatter", raw), name, path, default=True
            )
    return TemplateFlags(**values)


def load_template(
    path: Path,
    functions: Mapping[str, Callable[..., object]] | None = None,
) -> Template:
    """Load a Template from a file.

    Args:
        path: The template file.
        functions: Custom functions for the template.

    Returns:
        The loaded Template.

    Raises:
        FileNotFoundError: If the file or its base does not exist.
        TemplateError: If a frontmatter field has the wrong type.
    """
    frontmatter, body = load_frontmatter_file(path)
    frontmatter = frontmatter or {}

    bindings = _mapping_field(frontmatter, "variables", path)
    base_source: str | None = None

    base = frontmatter.get("base")
    if base is not None:
        if not isinstance(base, str):
            msg = f"Frontmatter field 'base' in {path} must be a path"
            raise TemplateError(msg)
        base_path = (path.parent / base).resolve()
        base_frontmatter, base_source = load_frontmatter_file(base_path)
        if base_frontmatter:
            defaults = _mapping_field(base_frontmatter, "variables", base_path)
            bindings = {**defaults, **bindings}
        logger.debug("base_template_loaded", path=str(path), base=str(base_path))

    template = Template(
        source=body,
        bindings=bindings,
        functions=functions or {},
        flags=_flags(frontmatter, path),
        base_source=base_source,
        escape_html=_bool_field(frontmatter, "escape_html", path, default=False),
        preserve_whitespace=_bool_field(
            frontmatter, "preserve_whitespace", path, default=True
        ),
    )
    logger.debug("template_loaded", path=str(path), variables=len(bindings))
    return template
