"""Context-driven template selection.

A TemplateComposer holds named templates and composition rules. For a given
context, every template with at least one matching rule is applicable, at
the highest priority among its matching rules. The highest-priority
applicable template is rendered; ties go to the template registered first.
"""

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import pendulum

from promptforge.exceptions import (
    ExpressionError,
    NoApplicableTemplateError,
    TemplateNotFoundError,
)
from promptforge.templating import Template, TemplateFlags, merge_bindings
from promptforge.utils import get_logger

from ._conditions import evaluate_behavior_pattern, evaluate_condition
from ._expression import RuleExpression
from ._models import CompositionRule, parse_rule

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_BLOCK_NAME_PATTERN = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]*")


@dataclass(frozen=True, slots=True)
class ApplicableTemplate:
    """A registered template with at least one matching rule.

    Attributes:
        name: Template name.
        template: The registered template.
        priority: Highest priority among the matching rules.
        applied_rules: Names of the matching rules, in rule order.
        registration_order: Position of the template in the registry.
    """

    name: str
    template: Template
    priority: int
    applied_rules: list[str]
    registration_order: int


@dataclass(frozen=True, slots=True)
class CompositionResult:
    """Outcome of one compose() call."""

    template_name: str
    output: str
    applied_rules: list[str]
    priority: int
    context: dict[str, object]
    template_count: int
    composed_at: pendulum.DateTime = field(default_factory=pendulum.now)

    def to_dict(self) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
        """Convert to a dictionary, with the timestamp in ISO 8601."""
        return {
            "template_name": self.template_name,
            "output": self.output,
            "applied_rules": list(self.applied_rules),
            "priority": self.priority,
            "context": dict(self.context),
            "template_count": self.template_count,
            "composed_at": self.composed_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class CompositionStats:
    """Registry size and rule priority summary."""

    template_count: int
    rule_count: int
    average_priority: float


def _sort_key(applicable: ApplicableTemplate) -> tuple[int, int]:
    return (-applicable.priority, applicable.registration_order)


class TemplateComposer:
    """Selects and renders one registered template per context.

    Args:
        defaults: Bindings merged under every compose() context.
        logger: Logger for rule evaluation diagnostics.
    """

    def __init__(
        self,
        defaults: Mapping[str, object] | None = None,
        *,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        self._defaults: dict[str, object] = dict(defaults or {})
        self._logger = logger if logger is not None else get_logger("composition")
        self._templates: dict[str, Template] = {}
        self._rules: list[CompositionRule] = []
        self._expressions: dict[str, RuleExpression] = {}

    @property
    def defaults(self) -> dict[str, object]:
        """Bindings merged under every context."""
        return dict(self._defaults)

    @property
    def rules(self) -> list[CompositionRule]:
        """Registered rules in the order they were added."""
        return list(self._rules)

    def register_template(self, name: str, template: Template | str) -> None:
        """Register a template under ``name``.

        Re-registering a name replaces the template but keeps its original
        position for tie-breaking.
        """
        if isinstance(template, str):
            template = Template(template)
        self._templates[name] = template
        self._logger.debug("template_registered", template=name)

    def add_rule(self, rule: CompositionRule | Mapping[str, Any]) -> CompositionRule:  # pyright: ignore[reportExplicitAny]
        """Add a rule, validating it first when given as a mapping.

        Raises:
            InvalidRuleError: If a mapping does not describe a valid rule.
        """
        if not isinstance(rule, CompositionRule):
            rule = parse_rule(rule)
        self._rules.append(rule)
        self._logger.debug("rule_added", rule=rule.name, priority=rule.priority)
        return rule

    def template_names(self) -> list[str]:
        """Return registered template names in registration order."""
        return list(self._templates)

    def get_template(self, name: str) -> Template:
        """Return a registered template.

        Raises:
            TemplateNotFoundError: If no template has that name.
        """
        try:
            return self._templates[name]
        except KeyError:
            msg = f"Template '{name}' not found"
            raise TemplateNotFoundError(msg, template_name=name) from None

    def _expression_matches(self, rule: CompositionRule, context: Mapping[str, object]) -> bool:
        """Evaluate a rule's expression, returning False on error (fail-open)."""
        try:
            evaluator = self._expressions.get(rule.expression)
            if evaluator is None:
                evaluator = RuleExpression.compile(rule.expression)
                self._expressions[rule.expression] = evaluator
            return evaluator.matches(context)
        except ExpressionError as e:
            self._logger.warning(
                "rule_expression_failed",
                rule=rule.name,
                expression=rule.expression,
                error=str(e),
            )
            return False

    def _rule_matches(
        self, rule: CompositionRule, context: Mapping[str, object], template_name: str
    ) -> bool:
        if not rule.matches_template(template_name):
            return False
        if not all(evaluate_condition(c, context) for c in rule.conditions):
            return False
        if not all(evaluate_behavior_pattern(p, context) for p in rule.behavior_patterns):
            return False
        return self._expression_matches(rule, context)

    def find_applicable(self, context: Mapping[str, object]) -> list[ApplicableTemplate]:
        """Return applicable templates, best first.

        Args:
            context: The merged composition context.
        """
        applicable: list[ApplicableTemplate] = []

        for order, (name, template) in enumerate(self._templates.items()):
            matching: list[CompositionRule] = []
            for rule in self._rules:
                if not rule.enabled:
                    self._logger.debug("rule_skipped_disabled", rule=rule.name)
                    continue
                if self._rule_matches(rule, context, name):
                    matching.append(rule)
                    self._logger.debug(
                        "rule_matched", rule=rule.name, template=name, priority=rule.priority
                    )
            if matching:
                applicable.append(
                    ApplicableTemplate(
                        name=name,
                        template=template,
                        priority=max(rule.priority for rule in matching),
                        applied_rules=[rule.name for rule in matching],
                        registration_order=order,
                    )
                )

        applicable.sort(key=_sort_key)
        return applicable

    def compose(self, context: Mapping[str, object] | None = None) -> CompositionResult:
        """Select the best template for ``context`` and render it.

        Raises:
            NoApplicableTemplateError: If no template has a matching rule.
        """
        merged = merge_bindings(self._defaults, context)
        applicable = self.find_applicable(merged)
        if not applicable:
            msg = "No applicable templates found for the given context"
            raise NoApplicableTemplateError(
                msg, template_count=len(self._templates), rule_count=len(self._rules)
            )

        selected = applicable[0]
        output = selected.template.render(merged)
        self._logger.info(
            "template_composed",
            template=selected.name,
            priority=selected.priority,
            applied_rules=selected.applied_rules,
            candidates=len(applicable),
        )
        return CompositionResult(
            template_name=selected.name,
            output=output,
            applied_rules=selected.applied_rules,
            priority=selected.priority,
            context=merged,
            template_count=len(applicable),
        )

    def create_composite(self, names: Sequence[str], separator: str = "\n\n") -> Template:
        """Join registered templates into one template.

        Each part is wrapped in a block named after its template (when the
        name is a valid block name) so the composite can serve as a base.
        Bindings and functions of later parts win over earlier ones.

        Raises:
            TemplateNotFoundError: If any name is not registered.
        """
        parts: list[str] = []
        bindings: dict[str, object] = dict(self._defaults)
        functions: dict[str, Callable[..., object]] = {}

        for name in names:
            template = self.get_template(name)
            source = template.effective_source()
            if _BLOCK_NAME_PATTERN.fullmatch(name):
                source = f"{{{{#block {name}}}}}{source}{{{{/block}}}}"
            parts.append(source)
            bindings.update(template.bindings)
            functions.update(template.functions)

        return Template(
            source=separator.join(parts),
            bindings=bindings,
            functions=functions,
            flags=TemplateFlags(),
            logger=self._logger,
        )

    def stats(self) -> CompositionStats:
        """Summarize the registry."""
        rule_count = len(self._rules)
        average = sum(rule.priority for rule in self._rules) / rule_count if rule_count else 0.0
        return CompositionStats(
            template_count=len(self._templates),
            rule_count=rule_count,
            average_priority=average,
        )
