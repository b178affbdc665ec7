"""Rule-based template selection.

Example:
    >>> from promptforge.composition import TemplateComposer
    >>> composer = TemplateComposer()
    >>> composer.register_template("detailed", "Detailed plan for {goal}")
    >>> _ = composer.add_rule({
    ...     "name": "complex",
    ...     "conditions": [{"field": "complexity", "operator": ">", "value": 7}],
    ...     "priority": 10,
    ... })
    >>> composer.compose({"complexity": 8, "goal": "launch"}).output
    'Detailed plan for launch'
"""

from promptforge.exceptions import (
    CompositionError,
    InvalidRuleError,
    NoApplicableTemplateError,
    TemplateNotFoundError,
)

from ._composer import (
    ApplicableTemplate,
    CompositionResult,
    CompositionStats,
    TemplateComposer,
)
from ._conditions import (
    BEHAVIOR_KEY,
    evaluate_behavior_pattern,
    evaluate_condition,
    get_nested_value,
)
from ._defaults import create_common_rules, create_template_composer
from ._expression import RuleExpression
from ._loader import load_composition_rules
from ._models import (
    BehaviorPattern,
    BehaviorPatternType,
    CompositionRule,
    ConditionOperator,
    ContextCondition,
    parse_rule,
)

__all__ = [
    "BEHAVIOR_KEY",
    "ApplicableTemplate",
    "BehaviorPattern",
    "BehaviorPatternType",
    "CompositionError",
    "CompositionResult",
    "CompositionRule",
    "CompositionStats",
    "ConditionOperator",
    "ContextCondition",
    "InvalidRuleError",
    "NoApplicableTemplateError",
    "RuleExpression",
    "TemplateComposer",
    "TemplateNotFoundError",
    "create_common_rules",
    "create_template_composer",
    "evaluate_behavior_pattern",
    "evaluate_condition",
    "get_nested_value",
    "load_composition_rules",
    "parse_rule",
]
