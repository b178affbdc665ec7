# pyright: reportUnknownArgumentType=false
from unittest.mock import MagicMock

import pytest

from promptforge.config import Config
from promptforge.exceptions import (
    ExpressionError,
    MissingVariableError,
    NotIterableError,
    TemplateSyntaxError,
    UnknownFunctionError,
)
from promptforge.templating import Template, TemplateFlags


class TestInterpolation:
    def test_single_and_double_braces(self) -> None:
        template = Template("Hi {name}, you are {{age}}")

        assert template.render({"name": "Ada", "age": 36}) == "Hi Ada, you are 36"

    def test_static_bindings_and_overrides(self) -> None:
        template = Template("{greeting} {name}", bindings={"greeting": "Hello", "name": "x"})

        assert template.render({"name": "Ada"}) == "Hello Ada"

    def test_dotted_path(self) -> None:
        assert Template("{user.name}").render({"user": {"name": "Lin"}}) == "Lin"

    def test_missing_variable(self) -> None:
        with pytest.raises(MissingVariableError) as exc_info:
            _ = Template("Hello {who}").render()

        assert exc_info.value.variable == "who"
        assert str(exc_info.value) == "Variable 'who' not found in template variables"

    def test_missing_variable_is_a_key_error(self) -> None:
        with pytest.raises(KeyError):
            _ = Template("{nope}").render()

    def test_value_rendering(self) -> None:
        template = Template("{flag} {ratio} {tags} {empty}")

        output = template.render({"flag": True, "ratio": 2.0, "tags": ["a", "b"], "empty": None})

        assert output == "true 2 a, b "

    def test_escape_html(self) -> None:
        template = Template("<p>{body}</p>", escape_html=True)

        assert template.render({"body": "<b>&</b>"}) == "<p>&lt;b&gt;&amp;&lt;/b&gt;</p>"

    def test_collapse_whitespace(self) -> None:
        template = Template("  a \n\n  {b}\t c  ", preserve_whitespace=False)

        assert template.render({"b": "B"}) == "a B c"


class TestConditionals:
    def test_true_and_false_branches(self) -> None:
        template = Template("Hello {{#if x > 5}}big{{#else}}small{{/if}}")

        assert template.render({"x": 10}) == "Hello big"
        assert template.render({"x": 3}) == "Hello small"

    def test_missing_else_renders_nothing(self) -> None:
        assert Template("a{{#if flag}}b{{/if}}c").render({"flag": False}) == "ac"

    def test_nested_conditionals(self) -> None:
        template = Template("{{#if a}}A{{#if b}}B{{#else}}-{{/if}}{{/if}}")

        assert template.render({"a": True, "b": False}) == "A-"
        assert template.render({"a": True, "b": True}) == "AB"
        assert template.render({"a": False, "b": True}) == ""

    def test_untaken_branch_is_not_evaluated(self) -> None:
        spy = MagicMock(return_value="called")
        template = Template("{{#if go}}{{spy()}}{{#else}}no{{/if}}", functions={"spy": spy})

        assert template.render({"go": False}) == "no"
        spy.assert_not_called()

    def test_untaken_branch_missing_variable_does_not_raise(self) -> None:
        assert Template("{{#if go}}{missing}{{/if}}done").render({"go": False}) == "done"

    def test_function_in_condition(self) -> None:
        template = Template("{{#if length(items) > 1}}many{{#else}}few{{/if}}")

        assert template.render({"items": [1, 2]}) == "many"

    def test_unbound_condition_name_is_false(self) -> None:
        assert Template("{{#if context}}Context: {context}{{/if}}ok").render() == "ok"

    def test_unquoted_word_compares_as_literal(self) -> None:
        template = Template("{{#if tier == premium}}yes{{#else}}no{{/if}}")

        assert template.render({"tier": "premium"}) == "yes"
        assert template.render({"tier": "basic"}) == "no"

    def test_zero_string_is_truthy(self) -> None:
        template = Template("{{#if count}}some{{#else}}none{{/if}}")

        assert template.render({"count": "0"}) == "some"
        assert template.render({"count": 0}) == "none"

    def test_invalid_condition(self) -> None:
        with pytest.raises(ExpressionError):
            _ = Template("{{#if a && b}}x{{/if}}").render({"a": 1, "b": 1})

    def test_disabled_conditionals_are_literal(self) -> None:
        template = Template("{{#if x}}y{{/if}}", flags=TemplateFlags(conditionals=False))

        assert template.render() == "{{#if x}}y{{/if}}"


class TestLoops:
    def test_basic_loop(self) -> None:
        template = Template("{{#each items as item}}{item}-{{/each}}")

        assert template.render({"items": ["a", "b", "c"]}) == "a-b-c-"
        assert template.render({"items": []}) == ""

    def test_loop_metadata(self) -> None:
        template = Template(
            "{{#each items as it}}{it_index}:{it}"
            "{{#if it_first}}(first){{/if}}{{#if it_last}}(last){{/if}} {{/each}}"
        )

        assert template.render({"items": ["x", "y", "z"]}) == "0:x(first) 1:y 2:z(last) "

    def test_object_items(self) -> None:
        template = Template(
            "{{#each tasks as task}}{{upper(task.name)}}"
            "{{#if task.done}} ok{{#else}} todo{{/if}};{{/each}}"
        )
        tasks = [{"name": "a", "done": True}, {"name": "b", "done": False}]

        assert template.render({"tasks": tasks}) == "A ok;B todo;"

    def test_loop_binding_shadows_outer_only_inside(self) -> None:
        template = Template("{{#each items as item}}{item}{{/each}}|{item}")

        assert template.render({"items": [1, 2], "item": "outer"}) == "12|outer"

    def test_nested_loops(self) -> None:
        template = Template(
            "{{#each groups as group}}{group.name}:"
            "{{#each group.members as member}}{member}{{#if member_last}}{{#else}},{{/if}}{{/each}}"
            ";{{/each}}"
        )
        groups = [{"name": "g1", "members": ["a", "b"]}, {"name": "g2", "members": ["c"]}]

        assert template.render({"groups": groups}) == "g1:a,b;g2:c;"

    def test_not_iterable(self) -> None:
        with pytest.raises(NotIterableError) as exc_info:
            _ = Template("{{#each items as item}}{item}{{/each}}").render({"items": "abc"})

        assert exc_info.value.variable == "items"
        assert "is not an array for loop" in str(exc_info.value)

    def test_missing_loop_source(self) -> None:
        with pytest.raises(MissingVariableError):
            _ = Template("{{#each items as item}}{item}{{/each}}").render()

    def test_item_equal_to_array_is_a_syntax_error(self) -> None:
        with pytest.raises(TemplateSyntaxError):
            _ = Template("{{#each items as items}}x{{/each}}").render({"items": []})

    def test_disabled_loops_are_literal(self) -> None:
        source = "{{#each items as item}}{item}{{/each}}"
        template = Template(source, flags=TemplateFlags(loops=False))

        # The marker text stays; the {item} token inside still interpolates.
        assert template.render({"items": [1], "item": "i"}) == "{{#each items as item}}i{{/each}}"


class TestFunctionCalls:
    def test_builtin(self) -> None:
        assert Template("{{upper(name)}}").render({"name": "alice"}) == "ALICE"

    def test_literal_arguments(self) -> None:
        template = Template('{{join(team, " / ")}} {{add(2, 3.5)}} {{default(nick, "friend")}}')

        assert template.render({"team": ["a", "b"], "nick": ""}) == "a / b 5.5 friend"

    def test_quoted_argument_is_never_a_lookup(self) -> None:
        assert Template('{{upper("name")}}').render({"name": "zed"}) == "NAME"

    def test_unbound_bare_word_is_literal(self) -> None:
        assert Template("{{upper(hello)}}").render() == "HELLO"

    def test_custom_function_overrides_builtin(self) -> None:
        template = Template("{{upper(x)}}", functions={"upper": lambda v: f"<{v}>"})

        assert template.render({"x": "a"}) == "<a>"

    def test_result_is_not_reinterpolated(self) -> None:
        template = Template('{{format("{0}", raw)}}')

        assert template.render({"raw": "{secret}"}) == "{secret}"

    def test_unknown_function(self) -> None:
        with pytest.raises(UnknownFunctionError) as exc_info:
            _ = Template("{{shout(x)}}").render({"x": 1})

        assert exc_info.value.function == "shout"

    def test_division_by_zero_propagates(self) -> None:
        with pytest.raises(ZeroDivisionError):
            _ = Template("{{divide(1, 0)}}").render()

    def test_function_results_are_escaped(self) -> None:
        template = Template('{{format("<{0}>", x)}}', escape_html=True)

        assert template.render({"x": "a"}) == "&lt;a&gt;"


class TestInheritanceStage:
    def test_child_block_replaces_base_block(self) -> None:
        base = "H\n{{#block c}}default{{/block}}\nF"
        template = Template("{{#block c}}Custom{{/block}}", base_source=base)

        assert template.render() == "H\nCustom\nF"

    def test_base_default_kept_without_override(self) -> None:
        base = "H\n{{#block c}}default{{/block}}\nF"

        assert Template("", base_source=base).render() == "H\ndefault\nF"

    def test_unmatched_child_block_is_dropped_with_warning(self) -> None:
        logger = MagicMock()
        template = Template(
            "{{#block other}}X{{/block}}", base_source="{{#block c}}d{{/block}}", logger=logger
        )

        assert template.render() == "d"
        logger.warning.assert_called_once_with("unmatched_child_blocks", blocks=["other"])

    def test_inheritance_disabled_renders_own_source(self) -> None:
        template = Template(
            "{{#block c}}mine{{/block}}",
            base_source="B{{#block c}}d{{/block}}",
            flags=TemplateFlags(inheritance=False),
        )

        assert template.render() == "mine"

    def test_multi_level_inheritance(self) -> None:
        grand = "<{{#block a}}A{{/block}}|{{#block b}}B{{/block}}>"
        parent = Template("{{#block a}}a{{/block}}", base_source=grand).effective_source()
        child = Template("{{#block b}}b{{/block}}", base_source=parent)

        assert child.render() == "<a|b>"


class TestImmutability:
    def test_with_variables_returns_new_template(self) -> None:
        original = Template("{a}{b}", bindings={"a": 1})
        updated = original.with_variables({"b": 2})

        assert updated.render() == "12"
        assert dict(original.bindings) == {"a": 1}

    def test_bindings_are_read_only(self) -> None:
        template = Template("{a}", bindings={"a": 1})

        with pytest.raises(TypeError):
            template.bindings["a"] = 2  # pyright: ignore[reportIndexIssue]

    def test_source_bindings_are_copied(self) -> None:
        bindings = {"a": 1}
        template = Template("{a}", bindings=bindings)
        bindings["a"] = 2

        assert template.render() == "1"

    def test_with_functions(self) -> None:
        template = Template("{{twice(x)}}").with_functions({"twice": lambda v: v * 2})

        assert template.render({"x": 4}) == "8"

    def test_with_base(self) -> None:
        template = Template("{{#block c}}X{{/block}}").with_base("[{{#block c}}{{/block}}]")

        assert template.render() == "[X]"

    def test_with_flags_changes_only_given_flags(self) -> None:
        template = Template("x").with_flags(loops=False)

        assert template.flags == TemplateFlags(conditionals=True, loops=False, inheritance=True)

    def test_frozen(self) -> None:
        template = Template("x")

        with pytest.raises(AttributeError):
            template.source = "y"  # pyright: ignore[reportAttributeAccessIssue]


class TestFromConfig:
    def test_uses_render_settings(self) -> None:
        config = Config.from_dict({"render": {"escape_html": True, "loops": False}})
        template = Template.from_config("{x}", config)

        assert template.escape_html is True
        assert template.flags.loops is False
        assert template.render({"x": "<"}) == "&lt;"


class TestIntrospection:
    def test_variables_excludes_loop_names(self) -> None:
        template = Template(
            "{title}{{#each items as item}}{item.name}{item_index}{{/each}}{{#if flag}}{{/if}}"
        )

        assert template.variables() == ["title", "items", "flag"]

    def test_validate_reports_missing(self) -> None:
        template = Template("{a} {b}", bindings={"a": 1})

        result = template.validate()

        assert result.is_valid is False
        assert result.missing == ["b"]
        assert template.validate({"b": 2}).is_valid is True

    def test_validate_ignores_condition_only_names(self) -> None:
        assert Template("{{#if maybe}}x{{/if}}").validate().is_valid is True

    def test_analyze(self) -> None:
        template = Template(
            "{{#if n > 1}}{{upper(name)}}{{/if}}{{#each items as item}}{{#if item}}.{{/if}}{{/each}}"
        )

        analysis = template.analyze({"n": 2, "name": "x", "items": [1, 2, 3]})

        assert analysis.variables == ["n", "name", "items"]
        assert analysis.functions == ["upper"]
        assert [(c.condition, c.result) for c in analysis.conditionals] == [
            ("n > 1", True),
            ("item", None),
        ]
        assert [(loop.variable, loop.iterations) for loop in analysis.loops] == [("items", 3)]

    def test_analysis_to_dict(self) -> None:
        analysis = Template("{{#each xs as x}}{x}{{/each}}").analyze({"xs": [1]})

        assert analysis.to_dict() == {
            "variables": ["xs"],
            "conditionals": [],
            "loops": [{"variable": "xs", "item": "x", "iterations": 1}],
            "functions": [],
        }
