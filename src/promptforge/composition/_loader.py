"""Loading composition rules from TOML.

Rules live in an array of tables::

    [[rules]]
    name = "high_complexity_task"
    template_pattern = "complex|detailed"
    priority = 10

    [[rules.conditions]]
    field = "task.complexity"
    operator = ">"
    value = 7
"""

from pathlib import Path
from typing import Any

from promptforge.config import read_toml_file
from promptforge.exceptions import InvalidRuleError

from ._models import CompositionRule, parse_rule


def load_composition_rules(path: Path) -> list[CompositionRule]:
    """Read the ``[[rules]]`` tables of a TOML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid TOML.
        InvalidRuleError: If a rule fails validation.
    """
    data = read_toml_file(path)
    raw_rules: Any = data.get("rules", [])  # pyright: ignore[reportExplicitAny]
    if not isinstance(raw_rules, list):
        msg = f"'rules' in {path} must be an array of tables"
        raise InvalidRuleError(msg)

    rules: list[CompositionRule] = []
    for raw in raw_rules:  # pyright: ignore[reportUnknownVariableType]
        if not isinstance(raw, dict):
            msg = f"Each entry of 'rules' in {path} must be a table"
            raise InvalidRuleError(msg)
        rules.append(parse_rule(raw))  # pyright: ignore[reportUnknownArgumentType]
    return rules
