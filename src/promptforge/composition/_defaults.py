"""Stock composition rules."""

from collections.abc import Mapping
from typing import TYPE_CHECKING

from ._composer import TemplateComposer
from ._models import (
    BehaviorPattern,
    BehaviorPatternType,
    CompositionRule,
    ConditionOperator,
    ContextCondition,
)

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


def create_common_rules() -> list[CompositionRule]:
    """Return rules matching common template naming conventions.

    Templates named ``*complex*``/``*detailed*``, ``*simple*``/``*basic*``,
    ``*advanced*``/``*expert*``, ``*focused*``/``*productive*`` and
    ``*creative*``/``*brainstorm*`` are picked up by these rules.
    """
    return [
        CompositionRule(
            name="high_complexity_task",
            template_pattern=".*complex.*|.*detailed.*",
            conditions=[
                ContextCondition(
                    field="task.complexity",
                    operator=ConditionOperator.GREATER_THAN,
                    value=7,
                )
            ],
            priority=10,
            description="Use detailed templates for complex tasks",
        ),
        CompositionRule(
            name="beginner_user",
            template_pattern=".*simple.*|.*basic.*",
            behavior_patterns=[
                BehaviorPattern(type=BehaviorPatternType.USAGE_FREQUENCY, threshold=5)
            ],
            priority=8,
            description="Use simple templates for new users",
        ),
        CompositionRule(
            name="expert_user",
            template_pattern=".*advanced.*|.*expert.*",
            behavior_patterns=[
                BehaviorPattern(type=BehaviorPatternType.SUCCESS_RATE, threshold=0.8),
                BehaviorPattern(type=BehaviorPatternType.USAGE_FREQUENCY, threshold=50),
            ],
            priority=9,
            description="Use advanced templates for expert users",
        ),
        CompositionRule(
            name="morning_productivity",
            template_pattern=".*focused.*|.*productive.*",
            behavior_patterns=[
                BehaviorPattern(type=BehaviorPatternType.TIME_OF_DAY, time_range=(6, 12))
            ],
            priority=6,
            description="Use focused templates during morning hours",
        ),
        CompositionRule(
            name="creative_task",
            template_pattern=".*creative.*|.*brainstorm.*",
            conditions=[
                ContextCondition(
                    field="task.type",
                    operator=ConditionOperator.IN,
                    value=["creative", "brainstorming", "ideation"],
                )
            ],
            priority=7,
            description="Use creative templates for creative tasks",
        ),
    ]


def create_template_composer(
    defaults: Mapping[str, object] | None = None,
    *,
    logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
) -> TemplateComposer:
    """Create a composer with the common rules added."""
    composer = TemplateComposer(defaults, logger=logger)
    for rule in create_common_rules():
        composer.add_rule(rule)
    return composer
