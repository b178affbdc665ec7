"""Evaluation of context conditions and behavior patterns."""

from collections.abc import Mapping

import pendulum

from promptforge.templating import to_number, to_text

from ._models import (
    BehaviorPattern,
    BehaviorPatternType,
    ConditionOperator,
    ContextCondition,
)

BEHAVIOR_KEY = "user_behavior"


def get_nested_value(data: Mapping[str, object], path: str) -> object:
    """Follow a dotted path through nested mappings.

    Returns:
        The value found, or None when any segment is absent.
    """
    value: object = data
    for segment in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(segment)  # pyright: ignore[reportUnknownMemberType]
    return value


def _strict_equals(left: object, right: object) -> bool:
    # Booleans never equal numbers, and numeric strings never equal numbers.
    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def _as_float(value: object) -> float | None:
    number = to_number(value)
    return None if number is None else float(number)


def _contains(container: object, item: object) -> bool:
    match container:
        case None:
            return False
        case list() | tuple() | set() | frozenset():
            return item in container
        case Mapping():
            return item in container
        case _:
            return to_text(item) in to_text(container)


def evaluate_condition(condition: ContextCondition, context: Mapping[str, object]) -> bool:
    """Evaluate one condition against the composition context.

    Ordering operators compare numerically and are false when either side
    is not a number.
    """
    value = get_nested_value(context, condition.field)
    expected = condition.value

    match condition.operator:
        case ConditionOperator.EQUALS:
            return _strict_equals(value, expected)
        case ConditionOperator.NOT_EQUALS:
            return not _strict_equals(value, expected)
        case ConditionOperator.CONTAINS:
            return _contains(value, expected)
        case ConditionOperator.EXISTS:
            return value is not None
        case ConditionOperator.IN:
            return isinstance(expected, (list, tuple)) and any(
                _strict_equals(value, candidate) for candidate in expected  # pyright: ignore[reportUnknownVariableType]
            )
        case _:
            pass

    left = _as_float(value)
    right = _as_float(expected)
    if left is None or right is None:
        return False

    match condition.operator:
        case ConditionOperator.GREATER_THAN:
            return left > right
        case ConditionOperator.LESS_THAN:
            return left < right
        case ConditionOperator.GREATER_OR_EQUAL:
            return left >= right
        case ConditionOperator.LESS_OR_EQUAL:
            return left <= right
        case _:
            return False


def _behavior_number(behavior: Mapping[str, object], key: str) -> float:
    return _as_float(behavior.get(key)) or 0.0


def evaluate_behavior_pattern(
    pattern: BehaviorPattern, context: Mapping[str, object]
) -> bool:
    """Evaluate one behavior pattern against ``context["user_behavior"]``.

    Recognized behavior keys are ``usage_count``, ``successful_prompts``,
    ``total_prompts``, ``domain_expertise`` (domain to score) and
    ``hour_of_day``. When ``hour_of_day`` is absent the current local hour
    is used.
    """
    raw = context.get(BEHAVIOR_KEY)
    behavior: Mapping[str, object] = raw if isinstance(raw, Mapping) else {}  # pyright: ignore[reportUnknownVariableType]
    threshold = pattern.threshold or 0.0

    match pattern.type:
        case BehaviorPatternType.USAGE_FREQUENCY:
            return _behavior_number(behavior, "usage_count") >= threshold

        case BehaviorPatternType.SUCCESS_RATE:
            successful = _behavior_number(behavior, "successful_prompts")
            total = _behavior_number(behavior, "total_prompts") or 1.0
            return successful / total >= threshold

        case BehaviorPatternType.TIME_OF_DAY:
            if pattern.time_range is None:
                return True
            hour = to_number(behavior.get("hour_of_day"))
            if hour is None:
                hour = pendulum.now().hour
            start, end = pattern.time_range
            return start <= hour <= end

        case BehaviorPatternType.DOMAIN_EXPERTISE:
            expertise = behavior.get("domain_expertise")
            if not isinstance(expertise, Mapping):
                return False
            score = _as_float(expertise.get(pattern.domain or ""))  # pyright: ignore[reportUnknownMemberType]
            return score is not None and score >= threshold
