"""Loading base templates from files with YAML frontmatter."""

from pathlib import Path

from promptforge.exceptions import TemplateError
from promptforge.templating import load_frontmatter_file

from ._models import BaseTemplate


def _names(value: object, key: str, path: Path) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        msg = f"Frontmatter field '{key}' in {path} must be a list of names"
        raise TemplateError(msg)
    return tuple(value)


def load_base_template(path: Path) -> BaseTemplate:
    """Load a BaseTemplate from a file.

    Recognized frontmatter fields: ``name`` (defaults to the file stem),
    ``description``, ``variables``, ``required_blocks``, ``optional_blocks``,
    ``escape_html`` and ``preserve_whitespace``.

    Raises:
        FileNotFoundError: If the file does not exist.
        TemplateError: If a frontmatter field has the wrong type.
    """
    frontmatter, body = load_frontmatter_file(path)
    frontmatter = frontmatter or {}

    variables = frontmatter.get("variables") or {}
    if not isinstance(variables, dict):
        msg = f"Frontmatter field 'variables' in {path} must be a mapping"
        raise TemplateError(msg)

    name = frontmatter.get("name", path.stem.split(".", 1)[0])
    description = frontmatter.get("description", "")

    return BaseTemplate(
        name=str(name),
        source=body,
        description=str(description),
        default_bindings={str(k): v for k, v in variables.items()},
        required_blocks=_names(frontmatter.get("required_blocks"), "required_blocks", path),
        optional_blocks=_names(frontmatter.get("optional_blocks"), "optional_blocks", path),
        escape_html=frontmatter.get("escape_html") is True,
        preserve_whitespace=frontmatter.get("preserve_whitespace", True) is not False,
    )


def load_base_templates(directory: Path, pattern: str = "*.prompt") -> list[BaseTemplate]:
    """Load every matching base template file in a directory, sorted by path."""
    return [load_base_template(path) for path in sorted(directory.glob(pattern))]
