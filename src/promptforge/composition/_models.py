# pyright: reportExplicitAny=false, reportAny=false
"""Composition rule models.

Rules are plain data: they can be built in code, from dictionaries, or
loaded from TOML. Validation happens when the model is created.
"""

import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from promptforge.exceptions import InvalidRuleError


class ConditionOperator(StrEnum):
    """Comparison applied by a ContextCondition."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    CONTAINS = "contains"
    EXISTS = "exists"
    IN = "in"


_OPERATOR_ALIASES: dict[str, ConditionOperator] = {
    "==": ConditionOperator.EQUALS,
    "!=": ConditionOperator.NOT_EQUALS,
    ">": ConditionOperator.GREATER_THAN,
    "<": ConditionOperator.LESS_THAN,
    ">=": ConditionOperator.GREATER_OR_EQUAL,
    "<=": ConditionOperator.LESS_OR_EQUAL,
}


class BehaviorPatternType(StrEnum):
    """Usage-history predicate evaluated against ``context["user_behavior"]``."""

    USAGE_FREQUENCY = "usage_frequency"
    SUCCESS_RATE = "success_rate"
    TIME_OF_DAY = "time_of_day"
    DOMAIN_EXPERTISE = "domain_expertise"


class ContextCondition(BaseModel):
    """A predicate over one dotted field of the composition context."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    field: str = Field(..., description="Dotted path into the context, e.g. task.complexity.")
    operator: ConditionOperator = Field(..., description="Comparison to apply.")
    value: Any = Field(default=None, description="Value compared against the field.")

    @field_validator("operator", mode="before")
    @classmethod
    def _expand_alias(cls, value: object) -> object:
        if isinstance(value, str):
            return _OPERATOR_ALIASES.get(value, value)
        return value


class BehaviorPattern(BaseModel):
    """A predicate over the caller's usage history."""

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    type: BehaviorPatternType = Field(..., description="Which usage signal to test.")
    threshold: float | None = Field(
        default=None, description="Minimum value for frequency, rate or expertise."
    )
    time_range: tuple[int, int] | None = Field(
        default=None, description="Inclusive [start_hour, end_hour] for time_of_day."
    )
    domain: str | None = Field(
        default=None, description="Expertise domain for domain_expertise."
    )


class CompositionRule(BaseModel):
    """A named, prioritized predicate that makes templates eligible.

    A rule matches a template when ``template_pattern`` (if set) is found in
    the template name and every condition, behavior pattern and the optional
    rule-engine ``expression`` hold for the context.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = Field(..., description="Unique rule name.")
    template_pattern: str | None = Field(
        default=None, description="Regular expression searched for in template names."
    )
    conditions: list[ContextCondition] = Field(
        default_factory=list, description="Context conditions; all must hold."
    )
    behavior_patterns: list[BehaviorPattern] = Field(
        default_factory=list, description="Behavior patterns; all must hold."
    )
    expression: str = Field(
        default="", description="Optional rule-engine expression over the context."
    )
    priority: int = Field(default=0, description="Higher priorities win.")
    description: str | None = Field(default=None, description="Description of the rule.")
    enabled: bool = Field(default=True, description="Whether the rule is evaluated.")

    @field_validator("template_pattern")
    @classmethod
    def _check_pattern(cls, value: str | None) -> str | None:
        if value is not None:
            try:
                re.compile(value)
            except re.error as e:
                msg = f"invalid regular expression: {e}"
                raise ValueError(msg) from e
        return value

    def matches_template(self, template_name: str) -> bool:
        """Return True when the rule applies to a template name."""
        return self.template_pattern is None or (
            re.search(self.template_pattern, template_name) is not None
        )


def parse_rule(data: Mapping[str, Any]) -> CompositionRule:
    """Validate a mapping as a CompositionRule.

    Raises:
        InvalidRuleError: If the mapping does not describe a valid rule.
    """
    try:
        return CompositionRule.model_validate(dict(data))
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        ]
        name = data.get("name")
        msg = f"Invalid composition rule: {'; '.join(errors)}"
        raise InvalidRuleError(
            msg, rule_name=name if isinstance(name, str) else None, errors=errors
        ) from e
