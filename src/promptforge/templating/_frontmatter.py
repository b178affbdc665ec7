"""YAML frontmatter parsing for template files."""

from pathlib import Path
from typing import cast

import yaml

# Type aliases for YAML frontmatter data
type YAMLPrimitive = str | int | float | bool | None
type YAMLKey = str | int | float | bool
type YAMLValue = YAMLPrimitive | list[YAMLValue] | dict[YAMLKey, YAMLValue]
type YAMLFrontmatter = dict[str, YAMLValue]


def parse_frontmatter(content: str) -> tuple[YAMLFrontmatter | None, str]:
    """Split YAML frontmatter from template content.

    The block opens with ``---`` on the first line and closes at the next
    line starting with ``---``. Content without a well-formed mapping block
    comes back whole, with None for the frontmatter.

    Args:
        content: The full file content including frontmatter.

    Returns:
        A tuple of (frontmatter dict or None, body content).
    """
    if not content.startswith("---"):
        return None, content

    end_marker = content.find("\n---", 3)
    if end_marker == -1:
        return None, content

    frontmatter_str = content[3:end_marker].strip()
    body = content[end_marker + 4 :].lstrip("\n")

    try:
        frontmatter_data = yaml.safe_load(frontmatter_str)  # pyright: ignore[reportAny]
    except yaml.YAMLError:
        return None, content

    if not isinstance(frontmatter_data, dict):
        return None, content

    # yaml.safe_load produces string keys at top level
    return cast("YAMLFrontmatter", frontmatter_data), body


def load_frontmatter_file(path: Path) -> tuple[YAMLFrontmatter | None, str]:
    """Read a template file and split off its frontmatter."""
    return parse_frontmatter(path.read_text(encoding="utf-8"))
