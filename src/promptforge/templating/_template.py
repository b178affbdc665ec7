"""Immutable template values and the tree-walking renderer.

A Template holds its source text, static bindings, custom functions and
render flags. Rendering parses the (possibly inherited) source into a block
tree and walks it once, so loop bindings are in scope before any nested
function call or condition is evaluated and only the branch a condition
selects is ever evaluated.
"""

import html
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Self

from promptforge.exceptions import (
    MissingVariableError,
    NotIterableError,
    UnknownFunctionError,
)
from promptforge.utils import get_logger

from ._analysis import TemplateAnalysis, TemplateAnalyzer, TemplateValidation
from ._bindings import MISSING, Scope, merge_bindings, to_number, to_text
from ._blocks import extract_blocks, splice_blocks
from ._expression import ExpressionEvaluator
from ._functions import FunctionRegistry, create_function_registry
from ._nodes import (
    CallNode,
    ConditionalNode,
    LoopNode,
    Node,
    RegionNode,
    TextNode,
    VariableNode,
)
from ._parser import parse_template

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from promptforge.config import Config

_WHITESPACE_PATTERN = re.compile(r"\s+")
_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")


@dataclass(frozen=True, slots=True)
class TemplateFlags:
    """Switches for the optional render stages.

    Attributes:
        conditionals: Evaluate ``{{#if}}`` blocks. When off, the markers are
            left in the output as written.
        loops: Expand ``{{#each}}`` blocks. When off, the markers are left in
            the output as written.
        inheritance: Splice child blocks into ``base_source`` when one is set.
    """

    conditionals: bool = True
    loops: bool = True
    inheritance: bool = True


def parse_literal(text: str) -> object:
    """Parse a function argument written as a literal.

    Quoted text becomes a string without its quotes, ``true``/``false``
    become booleans and numeric text becomes a number. Anything else is
    returned unchanged as a bare word.
    """
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":  # noqa: PLR2004
        return text[1:-1]
    if text == "true":
        return True
    if text == "false":
        return False
    if _NUMBER_PATTERN.fullmatch(text):
        return to_number(text)
    return text


def resolve_argument(text: str, scope: Scope) -> object:
    """Resolve one raw function argument against the render scope.

    A bound name (including dotted paths such as ``item.name``) resolves to
    its value; everything else is parsed as a literal.
    """
    if text and text[0] not in "\"'":
        value = scope.lookup(text)
        if value is not MISSING:
            return value
    return parse_literal(text)


class _Renderer:
    """Walks a block tree for one render call."""

    def __init__(
        self,
        registry: FunctionRegistry,
        *,
        escape_html: bool,
        logger: "FilteringBoundLogger",  # noqa: UP037
    ) -> None:
        self._registry = registry
        self._escape_html = escape_html
        self._logger = logger
        self._conditions: dict[str, ExpressionEvaluator] = {}

    def render(self, nodes: tuple[Node, ...], scope: Scope) -> str:
        parts: list[str] = []
        for node in nodes:
            match node:
                case TextNode():
                    parts.append(node.text)
                case VariableNode():
                    parts.append(self._interpolate(node, scope))
                case CallNode():
                    parts.append(self._call(node, scope))
                case ConditionalNode():
                    parts.append(self._conditional(node, scope))
                case LoopNode():
                    parts.append(self._loop(node, scope))
                case RegionNode():
                    parts.append(self.render(node.body, scope))
        return "".join(parts)

    def _output(self, value: object) -> str:
        text = to_text(value)
        return html.escape(text) if self._escape_html else text

    def _interpolate(self, node: VariableNode, scope: Scope) -> str:
        value = scope.lookup(node.path)
        if value is MISSING:
            msg = f"Variable '{node.path}' not found in template variables"
            raise MissingVariableError(msg, variable=node.path)
        return self._output(value)

    def _call(self, node: CallNode, scope: Scope) -> str:
        function = self._registry.get(node.name)
        if function is None:
            msg = f"Function '{node.name}' not found"
            raise UnknownFunctionError(msg, function=node.name)
        arguments = [resolve_argument(argument, scope) for argument in node.arguments]
        self._logger.debug("function_called", function=node.name, argc=len(arguments))
        return self._output(function(*arguments))

    def _conditional(self, node: ConditionalNode, scope: Scope) -> str:
        evaluator = self._conditions.get(node.condition)
        if evaluator is None:
            evaluator = ExpressionEvaluator.compile(node.condition)
            self._conditions[node.condition] = evaluator
        taken = evaluator.evaluate(scope, self._registry)
        self._logger.debug("condition_evaluated", condition=node.condition, result=taken)
        return self.render(node.true_body if taken else node.false_body, scope)

    def _loop(self, node: LoopNode, scope: Scope) -> str:
        items = scope.lookup(node.array_name)
        if items is MISSING:
            msg = f"Variable '{node.array_name}' not found in template variables"
            raise MissingVariableError(msg, variable=node.array_name)
        if not isinstance(items, (list, tuple)):
            msg = f"Variable '{node.array_name}' is not an array for loop"
            raise NotIterableError(msg, variable=node.array_name)

        name = node.item_name
        count = len(items)  # pyright: ignore[reportUnknownArgumentType]
        parts: list[str] = []
        for index, item in enumerate(items):  # pyright: ignore[reportUnknownVariableType, reportUnknownArgumentType]
            iteration = scope.child({
                name: item,
                f"{name}_index": index,
                f"{name}_first": index == 0,
                f"{name}_last": index == count - 1,
            })
            parts.append(self.render(node.body, iteration))
        return "".join(parts)


@dataclass(frozen=True, slots=True)
class Template:
    """An immutable, renderable template.

    Every ``with_*`` method returns a new Template; the receiver is never
    changed.

    Example:
        >>> Template("Hello {{#if x > 5}}big{{#else}}small{{/if}}").render({"x": 10})
        'Hello big'

    Attributes:
        source: Template text.
        bindings: Static variable bindings.
        functions: Custom functions; these override built-ins of the same name.
        flags: Which optional render stages are enabled.
        base_source: Base template text whose blocks this source overrides.
        escape_html: HTML-escape interpolated values and function results.
        preserve_whitespace: When False, whitespace runs in the output are
            collapsed to single spaces and the output is stripped.
        logger: Logger for render diagnostics.
    """

    source: str
    bindings: Mapping[str, object] = field(default_factory=dict)
    functions: Mapping[str, Callable[..., object]] = field(default_factory=dict)
    flags: TemplateFlags = field(default_factory=TemplateFlags)
    base_source: str | None = None
    escape_html: bool = False
    preserve_whitespace: bool = True
    logger: "FilteringBoundLogger | None" = field(  # noqa: UP037
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "bindings", MappingProxyType(dict(self.bindings)))
        object.__setattr__(self, "functions", MappingProxyType(dict(self.functions)))

    @classmethod
    def from_config(
        cls,
        source: str,
        config: "Config",  # noqa: UP037
        *,
        bindings: Mapping[str, object] | None = None,
        functions: Mapping[str, Callable[..., object]] | None = None,
        base_source: str | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> Self:
        """Create a template using the render defaults from configuration."""
        render = config.render
        return cls(
            source=source,
            bindings=bindings or {},
            functions=functions or {},
            flags=TemplateFlags(
                conditionals=render.conditionals,
                loops=render.loops,
                inheritance=render.inheritance,
            ),
            base_source=base_source,
            escape_html=render.escape_html,
            preserve_whitespace=render.preserve_whitespace,
            logger=logger,
        )

    @property
    def function_registry(self) -> FunctionRegistry:
        """Built-in functions merged with this template's custom functions."""
        return create_function_registry(self.functions)

    def _logger(self) -> "FilteringBoundLogger":  # noqa: UP037
        return self.logger if self.logger is not None else get_logger("template")

    def effective_source(self) -> str:
        """Return the source that will be parsed, after inheritance.

        Child blocks that match no block in the base are dropped with a
        warning.
        """
        if not self.flags.inheritance or self.base_source is None:
            return self.source

        spliced, unmatched = splice_blocks(self.base_source, extract_blocks(self.source))
        if unmatched:
            self._logger().warning("unmatched_child_blocks", blocks=unmatched)
        return spliced

    def _parse(self) -> tuple[Node, ...]:
        return parse_template(
            self.effective_source(),
            conditionals=self.flags.conditionals,
            loops=self.flags.loops,
        )

    def render(self, overrides: Mapping[str, object] | None = None) -> str:
        """Render the template.

        Args:
            overrides: Bindings for this call; they win over static bindings.

        Returns:
            The rendered text.

        Raises:
            TemplateSyntaxError: If block markers are unbalanced.
            ExpressionError: If a condition cannot be parsed.
            MissingVariableError: If an interpolated name is unbound.
            NotIterableError: If a loop's source is not a list.
            UnknownFunctionError: If an unregistered function is called.
        """
        logger = self._logger()
        scope = Scope(merge_bindings(self.bindings, overrides))
        renderer = _Renderer(
            self.function_registry, escape_html=self.escape_html, logger=logger
        )
        output = renderer.render(self._parse(), scope)

        if not self.preserve_whitespace:
            output = _WHITESPACE_PATTERN.sub(" ", output).strip()

        logger.debug("template_rendered", length=len(output))
        return output

    def with_variables(self, bindings: Mapping[str, object]) -> Self:
        """Return a copy with ``bindings`` merged over the static bindings."""
        return replace(self, bindings=merge_bindings(self.bindings, bindings))

    def with_functions(self, functions: Mapping[str, Callable[..., object]]) -> Self:
        """Return a copy with ``functions`` added to the custom functions."""
        return replace(self, functions={**self.functions, **functions})

    def with_base(self, base_source: str | None) -> Self:
        """Return a copy that inherits from ``base_source``."""
        return replace(self, base_source=base_source)

    def with_flags(
        self,
        *,
        conditionals: bool | None = None,
        loops: bool | None = None,
        inheritance: bool | None = None,
    ) -> Self:
        """Return a copy with the given flags changed."""
        flags = TemplateFlags(
            conditionals=self.flags.conditionals if conditionals is None else conditionals,
            loops=self.flags.loops if loops is None else loops,
            inheritance=self.flags.inheritance if inheritance is None else inheritance,
        )
        return replace(self, flags=flags)

    def _analyzer(self, overrides: Mapping[str, object] | None) -> TemplateAnalyzer:
        analyzer = TemplateAnalyzer(
            Scope(merge_bindings(self.bindings, overrides)),
            self.function_registry,
            self._logger(),
        )
        analyzer.walk(self._parse())
        return analyzer

    def variables(self) -> list[str]:
        """Return the top-level names the template references, in order.

        Loop item names are excluded.
        """
        return self._analyzer(None).variables

    def validate(self, overrides: Mapping[str, object] | None = None) -> TemplateValidation:
        """Check that every interpolated or looped-over name is bound."""
        analyzer = self._analyzer(overrides)
        scope = Scope(merge_bindings(self.bindings, overrides))
        missing = [name for name in analyzer.required if name not in scope]
        return TemplateValidation(is_valid=not missing, missing=missing)

    def analyze(self, overrides: Mapping[str, object] | None = None) -> TemplateAnalysis:
        """Describe the template's variables, conditionals, loops and functions."""
        return self._analyzer(overrides).result()
