"""Static analysis of parsed templates.

Walks a block tree without rendering it and reports the variables,
conditionals, loops and functions it contains. Used for introspection and
debugging; rendering never depends on it.
"""

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from promptforge.exceptions import TemplateError

from ._bindings import MISSING, Scope
from ._expression import ExpressionEvaluator
from ._functions import FunctionRegistry
from ._nodes import (
    CallNode,
    ConditionalNode,
    LoopNode,
    Node,
    RegionNode,
    VariableNode,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_PATH_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*")


@dataclass(frozen=True, slots=True)
class ConditionalResult:
    """A conditional found in a template.

    Attributes:
        condition: The condition expression as written.
        result: The branch it resolves to against the static bindings, or
            None when it depends on loop bindings or cannot be evaluated.
    """

    condition: str
    result: bool | None


@dataclass(frozen=True, slots=True)
class LoopResult:
    """A loop found in a template and how many times it would iterate."""

    variable: str
    item: str
    iterations: int


@dataclass(frozen=True, slots=True)
class TemplateAnalysis:
    """Introspection record for one template."""

    variables: list[str] = field(default_factory=list)
    conditionals: list[ConditionalResult] = field(default_factory=list)
    loops: list[LoopResult] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Convert to a JSON-serializable dictionary."""
        return {
            "variables": list(self.variables),
            "conditionals": [
                {"condition": c.condition, "result": c.result}
                for c in self.conditionals
            ],
            "loops": [
                {"variable": loop.variable, "item": loop.item, "iterations": loop.iterations}
                for loop in self.loops
            ],
            "functions": list(self.functions),
        }


@dataclass(frozen=True, slots=True)
class TemplateValidation:
    """Result of checking a template's required variables.

    Attributes:
        is_valid: True when every required variable is bound.
        missing: Required variables with no binding.
    """

    is_valid: bool
    missing: list[str] = field(default_factory=list)


def _root(path: str) -> str:
    return path.split(".", 1)[0]


def _loop_names(item_name: str) -> frozenset[str]:
    return frozenset({
        item_name,
        f"{item_name}_index",
        f"{item_name}_first",
        f"{item_name}_last",
    })


class TemplateAnalyzer:
    """Collects analysis data from a block tree.

    Variables introduced by an enclosing loop are not reported, since they
    are never supplied by the caller.
    """

    def __init__(
        self,
        scope: Scope,
        registry: FunctionRegistry,
        logger: "FilteringBoundLogger",  # noqa: UP037
    ) -> None:
        self._scope = scope
        self._registry = registry
        self._logger = logger
        self.variables: list[str] = []
        self.required: list[str] = []
        self.conditionals: list[ConditionalResult] = []
        self.loops: list[LoopResult] = []
        self.functions: list[str] = []

    def walk(self, nodes: tuple[Node, ...], local: frozenset[str] = frozenset()) -> None:
        for node in nodes:
            match node:
                case VariableNode():
                    self._add_variable(node.path, local, required=True)
                case CallNode():
                    self._add_function(node.name)
                    for argument in node.arguments:
                        if (
                            _PATH_PATTERN.fullmatch(argument)
                            and _root(argument) not in local
                            and self._scope.lookup(argument) is not MISSING
                        ):
                            self._add_variable(argument, local, required=False)
                case ConditionalNode():
                    self._conditional(node, local)
                    self.walk(node.true_body, local)
                    self.walk(node.false_body, local)
                case LoopNode():
                    self._add_variable(node.array_name, local, required=True)
                    self.loops.append(
                        LoopResult(
                            variable=node.array_name,
                            item=node.item_name,
                            iterations=self._iterations(node, local),
                        )
                    )
                    self.walk(node.body, local | _loop_names(node.item_name))
                case RegionNode():
                    self.walk(node.body, local)
                case _:
                    pass

    def result(self) -> TemplateAnalysis:
        return TemplateAnalysis(
            variables=list(self.variables),
            conditionals=list(self.conditionals),
            loops=list(self.loops),
            functions=list(self.functions),
        )

    def _add_variable(self, path: str, local: frozenset[str], *, required: bool) -> None:
        name = _root(path)
        if name in local:
            return
        if name not in self.variables:
            self.variables.append(name)
        if required and name not in self.required:
            self.required.append(name)

    def _add_function(self, name: str) -> None:
        if name not in self.functions:
            self.functions.append(name)

    def _iterations(self, node: LoopNode, local: frozenset[str]) -> int:
        if _root(node.array_name) in local:
            return 0
        items = self._scope.lookup(node.array_name)
        if isinstance(items, (list, tuple)):
            return len(items)  # pyright: ignore[reportUnknownArgumentType]
        return 0

    def _conditional(self, node: ConditionalNode, local: frozenset[str]) -> None:
        try:
            evaluator = ExpressionEvaluator.compile(node.condition)
        except TemplateError as e:
            self._logger.warning(
                "condition_analysis_failed",
                condition=node.condition,
                error=str(e),
            )
            self.conditionals.append(ConditionalResult(node.condition, None))
            return

        for name in evaluator.references():
            self._add_variable(name, local, required=False)
        for name in evaluator.function_names():
            self._add_function(name)

        if any(_root(name) in local for name in evaluator.references()):
            self.conditionals.append(ConditionalResult(node.condition, None))
            return

        try:
            result = evaluator.evaluate(self._scope, self._registry)
        except (TemplateError, TypeError, ValueError, ArithmeticError) as e:
            self._logger.warning(
                "condition_analysis_failed",
                condition=node.condition,
                error=str(e),
            )
            self.conditionals.append(ConditionalResult(node.condition, None))
            return
        self.conditionals.append(ConditionalResult(node.condition, result))
