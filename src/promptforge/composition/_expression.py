"""Rule-engine expressions for composition rules.

A rule's ``expression`` is evaluated with rule-engine against the merged
composition context, e.g. ``task["complexity"] > 7 and mode != "chat"``.
Template functions are available as builtins with the ``$`` prefix
(``$lower(mode) == "creative"``).
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import rule_engine
import rule_engine.builtins as rule_builtins
from rule_engine import errors as rule_errors

from promptforge.exceptions import ExpressionError
from promptforge.templating import BUILTIN_FUNCTIONS


def _create_rule_context(
    functions: Mapping[str, Callable[..., object]],
) -> rule_engine.Context:
    """Create a rule-engine Context with template functions as builtins."""

    def resolver(thing: dict[str, Any], name: str) -> object:  # pyright: ignore[reportExplicitAny]
        return thing.get(name)

    ctx = rule_engine.Context(resolver=resolver, default_value=None)
    ctx.builtins = rule_builtins.Builtins.from_defaults(values=dict(functions))
    return ctx


@dataclass(frozen=True, slots=True)
class RuleExpression:
    """A compiled rule-engine expression.

    An empty expression always matches.
    """

    expression: str
    _rule: rule_engine.Rule | None = field(default=None, repr=False, compare=False)

    @classmethod
    def compile(
        cls,
        expression: str,
        functions: Mapping[str, Callable[..., object]] | None = None,
    ) -> "RuleExpression":  # noqa: UP037
        """Compile an expression string.

        Raises:
            ExpressionError: If the expression is syntactically invalid.
        """
        if not expression.strip():
            return cls(expression=expression, _rule=None)

        rule_context = _create_rule_context(
            BUILTIN_FUNCTIONS if functions is None else functions
        )
        try:
            rule = rule_engine.Rule(expression, context=rule_context)
        except rule_errors.RuleSyntaxError as e:
            msg = f"Invalid expression syntax: {e.message}"
            raise ExpressionError(msg, expression=expression, cause=e) from e
        except rule_errors.EngineError as e:
            msg = f"Invalid expression: {e.message}"
            raise ExpressionError(msg, expression=expression, cause=e) from e
        return cls(expression=expression, _rule=rule)

    def matches(self, context: Mapping[str, object]) -> bool:
        """Evaluate the expression against a context mapping.

        Raises:
            ExpressionError: If evaluation fails.
        """
        if self._rule is None:
            return True
        try:
            return bool(self._rule.matches(dict(context)))
        except rule_errors.EngineError as e:
            msg = f"Expression evaluation failed: {e.message}"
            raise ExpressionError(msg, expression=self.expression, cause=e) from e
        except TypeError as e:
            msg = f"Expression evaluation failed: {e}"
            raise ExpressionError(msg, expression=self.expression, cause=e) from e
