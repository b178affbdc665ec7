from collections.abc import Callable
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

import pytest

from promptforge.composition import (
    CompositionRule,
    InvalidRuleError,
    NoApplicableTemplateError,
    RuleExpression,
    TemplateComposer,
    TemplateNotFoundError,
    create_common_rules,
    create_template_composer,
)
from promptforge.templating import Template

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


def complexity_rules() -> list[dict[str, object]]:
    return [
        {
            "name": "complex",
            "template_pattern": "^templateA$",
            "conditions": [{"field": "complexity", "operator": ">", "value": 7}],
            "priority": 10,
        },
        {
            "name": "simple",
            "template_pattern": "^templateB$",
            "conditions": [{"field": "complexity", "operator": "<", "value": 5}],
            "priority": 5,
        },
    ]


@pytest.fixture
def composer(mock_logger: MagicMock) -> TemplateComposer:
    return TemplateComposer(logger=mock_logger)


class TestRegistry:
    def test_register_template_from_string(self, composer: TemplateComposer) -> None:
        composer.register_template("greeting", "Hello {name}")

        assert composer.template_names() == ["greeting"]
        assert composer.get_template("greeting").render({"name": "Ada"}) == "Hello Ada"

    def test_register_template_instance(self, composer: TemplateComposer) -> None:
        template = Template("Hi {name}", bindings={"name": "Bo"})
        composer.register_template("hi", template)

        assert composer.get_template("hi") is template

    def test_get_unknown_template(self, composer: TemplateComposer) -> None:
        with pytest.raises(TemplateNotFoundError, match="Template 'nope' not found") as exc_info:
            _ = composer.get_template("nope")

        assert exc_info.value.template_name == "nope"

    def test_add_rule_from_mapping(self, composer: TemplateComposer) -> None:
        rule = composer.add_rule({"name": "r", "priority": 3})

        assert isinstance(rule, CompositionRule)
        assert composer.rules == [rule]

    def test_add_invalid_rule(self, composer: TemplateComposer) -> None:
        with pytest.raises(InvalidRuleError):
            _ = composer.add_rule({"name": "r", "priority": "high"})

        assert composer.rules == []

    def test_rules_property_is_a_copy(self, composer: TemplateComposer) -> None:
        _ = composer.add_rule({"name": "r"})
        composer.rules.clear()

        assert len(composer.rules) == 1

    def test_reregistration_keeps_position(self, composer: TemplateComposer) -> None:
        composer.register_template("a", "first")
        composer.register_template("b", "second")
        composer.register_template("a", "replaced")

        assert composer.template_names() == ["a", "b"]
        assert composer.get_template("a").source == "replaced"


class TestCompose:
    @pytest.mark.parametrize("order", [("templateA", "templateB"), ("templateB", "templateA")])
    def test_priority_selects_regardless_of_registration_order(
        self, composer: TemplateComposer, order: tuple[str, str]
    ) -> None:
        for name in order:
            composer.register_template(name, f"{name} for {{complexity}}")
        for rule in complexity_rules():
            _ = composer.add_rule(rule)

        result = composer.compose({"complexity": 8})

        assert result.template_name == "templateA"
        assert result.output == "templateA for 8"
        assert result.applied_rules == ["complex"]
        assert result.priority == 10
        assert result.template_count == 1

    def test_low_complexity_selects_other_template(self, composer: TemplateComposer) -> None:
        composer.register_template("templateA", "A")
        composer.register_template("templateB", "B")
        for rule in complexity_rules():
            _ = composer.add_rule(rule)

        assert composer.compose({"complexity": 2}).template_name == "templateB"

    def test_no_applicable_template(self, composer: TemplateComposer) -> None:
        composer.register_template("templateA", "A")
        composer.register_template("templateB", "B")
        for rule in complexity_rules():
            _ = composer.add_rule(rule)

        with pytest.raises(
            NoApplicableTemplateError,
            match="No applicable templates found for the given context",
        ) as exc_info:
            _ = composer.compose({"complexity": 6})

        assert exc_info.value.template_count == 2
        assert exc_info.value.rule_count == 2

    def test_empty_registry(self, composer: TemplateComposer) -> None:
        with pytest.raises(NoApplicableTemplateError):
            _ = composer.compose()

    def test_tie_goes_to_first_registered(self, composer: TemplateComposer) -> None:
        composer.register_template("second_detailed", "2")
        composer.register_template("first_detailed", "1")
        _ = composer.add_rule({"name": "detailed", "template_pattern": "detailed", "priority": 4})

        result = composer.compose()

        assert result.template_name == "second_detailed"
        assert result.template_count == 2

    def test_template_priority_is_max_of_matching_rules(
        self, composer: TemplateComposer
    ) -> None:
        composer.register_template("a", "A")
        composer.register_template("b", "B")
        _ = composer.add_rule({"name": "low", "template_pattern": "a", "priority": 1})
        _ = composer.add_rule({"name": "high", "template_pattern": "a", "priority": 9})
        _ = composer.add_rule({"name": "mid", "template_pattern": "b", "priority": 5})

        result = composer.compose()

        assert result.template_name == "a"
        assert result.applied_rules == ["low", "high"]
        assert result.priority == 9

    def test_disabled_rules_are_skipped(self, composer: TemplateComposer) -> None:
        composer.register_template("a", "A")
        _ = composer.add_rule({"name": "off", "enabled": False})

        with pytest.raises(NoApplicableTemplateError):
            _ = composer.compose()

    def test_defaults_are_merged_under_context(self, mock_logger: MagicMock) -> None:
        composer = TemplateComposer({"tone": "calm", "name": "you"}, logger=mock_logger)
        composer.register_template("t", "{tone} {name}")
        _ = composer.add_rule({"name": "all"})

        result = composer.compose({"name": "Ada"})

        assert result.output == "calm Ada"
        assert result.context == {"tone": "calm", "name": "Ada"}
        assert composer.defaults == {"tone": "calm", "name": "you"}

    def test_expression_rules(self, composer: TemplateComposer) -> None:
        composer.register_template("creative", "C")
        composer.register_template("plain", "P")
        _ = composer.add_rule({
            "name": "creative_mode",
            "template_pattern": "creative",
            "expression": 'mode == "creative"',
            "priority": 5,
        })
        _ = composer.add_rule({"name": "fallback", "template_pattern": "plain", "priority": 1})

        assert composer.compose({"mode": "creative"}).template_name == "creative"
        assert composer.compose({"mode": "plain"}).template_name == "plain"

    def test_failing_expression_skips_rule(
        self, composer: TemplateComposer, mock_logger: MagicMock
    ) -> None:
        composer.register_template("a", "A")
        _ = composer.add_rule({"name": "broken", "expression": "level >", "priority": 9})
        _ = composer.add_rule({"name": "fallback", "priority": 1})

        result = composer.compose()

        assert result.applied_rules == ["fallback"]
        mock_logger.warning.assert_called()
        assert mock_logger.warning.call_args.args[0] == "rule_expression_failed"

    def test_result_to_dict(self, composer: TemplateComposer) -> None:
        composer.register_template("a", "A")
        _ = composer.add_rule({"name": "all"})

        data = composer.compose({"x": 1}).to_dict()

        assert data["template_name"] == "a"
        assert data["output"] == "A"
        assert data["applied_rules"] == ["all"]
        assert data["context"] == {"x": 1}
        assert isinstance(data["composed_at"], str)

    def test_compose_logs_selection(
        self, composer: TemplateComposer, mock_logger: MagicMock
    ) -> None:
        composer.register_template("a", "A")
        _ = composer.add_rule({"name": "all"})

        _ = composer.compose()

        mock_logger.info.assert_called_once()
        assert mock_logger.info.call_args.args[0] == "template_composed"


class TestCreateComposite:
    def test_joins_templates_in_blocks(self, composer: TemplateComposer) -> None:
        composer.register_template("intro", "Hello {name}")
        composer.register_template("outro", "Bye {name}")

        composite = composer.create_composite(["intro", "outro"])

        assert composite.source == (
            "{{#block intro}}Hello {name}{{/block}}\n\n{{#block outro}}Bye {name}{{/block}}"
        )
        assert composite.render({"name": "Ada"}) == "Hello Ada\n\nBye Ada"

    def test_custom_separator_and_bindings(self, mock_logger: MagicMock) -> None:
        composer = TemplateComposer({"name": "default"}, logger=mock_logger)
        composer.register_template("a", Template("{name}-{suffix}", bindings={"suffix": "x"}))
        composer.register_template("b", "{name}")

        composite = composer.create_composite(["a", "b"], separator=" | ")

        assert composite.render() == "default-x | default"

    def test_composite_can_serve_as_base(self, composer: TemplateComposer) -> None:
        composer.register_template("intro", "Hello")
        composer.register_template("body", "Body")
        base = composer.create_composite(["intro", "body"])

        child = Template("{{#block body}}Custom{{/block}}", base_source=base.source)

        assert child.render() == "Hello\n\nCustom"

    def test_names_that_are_not_block_names_are_not_wrapped(
        self, composer: TemplateComposer
    ) -> None:
        composer.register_template("two words", "A")

        assert composer.create_composite(["two words"]).source == "A"

    def test_unknown_template(self, composer: TemplateComposer) -> None:
        with pytest.raises(TemplateNotFoundError):
            _ = composer.create_composite(["missing"])


class TestStats:
    def test_empty(self, composer: TemplateComposer) -> None:
        stats = composer.stats()

        assert stats.template_count == 0
        assert stats.rule_count == 0
        assert stats.average_priority == 0.0

    def test_average_priority(self, composer: TemplateComposer) -> None:
        composer.register_template("a", "A")
        _ = composer.add_rule({"name": "one", "priority": 4})
        _ = composer.add_rule({"name": "two", "priority": 8})

        stats = composer.stats()

        assert stats.template_count == 1
        assert stats.rule_count == 2
        assert stats.average_priority == 6.0


class TestCommonRules:
    def test_rule_names(self) -> None:
        names = [rule.name for rule in create_common_rules()]

        assert names == [
            "high_complexity_task",
            "beginner_user",
            "expert_user",
            "morning_productivity",
            "creative_task",
        ]

    def test_complex_task_selects_detailed_template(self, mock_logger: MagicMock) -> None:
        composer = create_template_composer(logger=mock_logger)
        composer.register_template("simple_prompt", "Simple: {goal}")
        composer.register_template("detailed_prompt", "Detailed: {goal}")

        result = composer.compose({
            "goal": "ship",
            "task": {"complexity": 9},
            "user_behavior": {"usage_count": 10},
        })

        assert result.template_name == "detailed_prompt"
        assert result.output == "Detailed: ship"
        assert result.template_count == 2

    def test_creative_task(self, mock_logger: MagicMock) -> None:
        composer = create_template_composer(logger=mock_logger)
        composer.register_template("brainstorm", "Ideas about {topic}")

        result = composer.compose({"topic": "tea", "task": {"type": "ideation"}})

        assert result.applied_rules == ["creative_task"]
        assert result.priority == 7

    def test_morning_focus(
        self, mock_logger: MagicMock, freeze_time: Callable[..., object]
    ) -> None:
        composer = create_template_composer(logger=mock_logger)
        composer.register_template("focused", "Focus")

        _ = freeze_time(2024, 3, 4, 8)
        assert composer.compose().template_name == "focused"

        _ = freeze_time(2024, 3, 4, 20)
        with pytest.raises(NoApplicableTemplateError):
            _ = composer.compose()


class TestExpressionCache:
    def test_expressions_compile_once(
        self, composer: TemplateComposer, mocker: "MockerFixture"
    ) -> None:
        compile_spy = mocker.spy(RuleExpression, "compile")
        composer.register_template("a", "A")
        composer.register_template("b", "B")
        _ = composer.add_rule({"name": "r", "expression": "level > 1"})

        _ = composer.compose({"level": 2})
        _ = composer.compose({"level": 3})

        assert compile_spy.call_count == 1
